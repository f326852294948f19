# backend/modules/commissions/services/proration.py

from decimal import Decimal

from core.exceptions import InvalidAmount
from core.money import ZERO, MoneyInput, exceeds_scale, round_money, to_decimal


class ProrationEngine:
    """Partial-period charges and refunds for subscription changes"""

    @staticmethod
    def prorate(full_amount: MoneyInput, days_used: int, total_days: int) -> Decimal:
        """Charge for ``days_used`` out of ``total_days``; zero-length periods yield 0"""
        if total_days <= 0:
            return ZERO
        amount = to_decimal(full_amount)
        return round_money(amount / Decimal(total_days) * Decimal(days_used))

    @classmethod
    def refund(cls, original_amount: MoneyInput, days_used: int, total_days: int) -> Decimal:
        amount = to_decimal(original_amount)
        return amount - cls.prorate(amount, days_used, total_days)

    @staticmethod
    def validate(amount: MoneyInput, days_used: int, total_days: int) -> Decimal:
        """Input checks applied at the API boundary"""
        try:
            value = to_decimal(amount)
        except (TypeError, ValueError) as e:
            raise InvalidAmount(str(e))
        if value < 0:
            raise InvalidAmount(f"Amount must not be negative, got {value}")
        if exceeds_scale(value, 2):
            raise InvalidAmount(f"Amount must have at most two decimal places, got {value}")
        if days_used < 0 or (total_days > 0 and days_used > total_days):
            raise InvalidAmount(f"days_used must be between 0 and {total_days}")
        return value
