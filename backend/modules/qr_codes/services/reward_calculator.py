# backend/modules/qr_codes/services/reward_calculator.py

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.money import ZERO, round_money, to_decimal, MoneyInput
from ..models.qr_models import QRCode, QRCodeType


@dataclass(frozen=True)
class ScanReward:
    points_awarded: int = 0
    discount_applied: Decimal = ZERO


class RewardCalculator:
    """Converts an admitted scan into points or a discount; no side effects"""

    def calculate(
        self, qr_code: QRCode, order_total: Optional[MoneyInput] = None
    ) -> ScanReward:
        code_type = QRCodeType(qr_code.code_type)

        if code_type == QRCodeType.LOYALTY:
            return ScanReward(points_awarded=qr_code.points_value or 0)

        if code_type == QRCodeType.DISCOUNT:
            if order_total is None or qr_code.discount_percentage is None:
                return ScanReward()
            discount = (
                to_decimal(order_total)
                * to_decimal(qr_code.discount_percentage)
                / Decimal(100)
            )
            return ScanReward(discount_applied=round_money(discount))

        if code_type == QRCodeType.INFO:
            # Logged for analytics only
            return ScanReward()

        raise ValueError(f"Unhandled QR code type: {code_type}")
