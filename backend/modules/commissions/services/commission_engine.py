# backend/modules/commissions/services/commission_engine.py

"""
Commission calculation for settled transactions.

The platform takes a fixed share of the gross amount, the business is
paid the remainder, and a referring sales agent earns a share of the
platform commission with a minimum floor. Agents recruited by another
agent additionally earn their recruiter a team override for a limited
window; the override is a separate platform-absorbed cost and never
reduces the business payout.

An agent without a personal rate earns the rate of their tier. Tiers are
earned by lifetime converted referrals and bronze pays the configured
default agent rate.

All amounts are Decimal. Each computed value is rounded exactly once,
half away from zero, and the business payout is derived by subtraction
so that platform_commission + business_payout == gross_amount always.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from dateutil.relativedelta import relativedelta

from core.config import settings
from core.exceptions import InvalidAmount
from core.money import MoneyInput, round_money, to_decimal
from core.time_utils import utc_now
from ..models.agent_models import AgentTier

logger = logging.getLogger(__name__)

# (minimum lifetime referrals, tier, rate); None means the policy default
TIER_SCHEDULE = (
    (500, AgentTier.DIAMOND, Decimal("0.15")),
    (200, AgentTier.PLATINUM, Decimal("0.14")),
    (100, AgentTier.GOLD, Decimal("0.13")),
    (25, AgentTier.SILVER, Decimal("0.12")),
    (0, AgentTier.BRONZE, None),
)


@dataclass(frozen=True)
class CommissionPolicy:
    """Rates and limits used by the engine"""

    platform_rate: Decimal
    agent_rate: Decimal
    min_agent_commission: Decimal
    override_rate: Decimal
    override_months: int
    signup_bonus: Decimal
    recruitment_bonus: Decimal
    recruitment_threshold: int

    @classmethod
    def from_settings(cls, config=settings) -> "CommissionPolicy":
        return cls(
            platform_rate=config.platform_commission_rate,
            agent_rate=config.agent_commission_rate,
            min_agent_commission=config.min_agent_commission,
            override_rate=config.team_override_rate,
            override_months=config.team_override_months,
            signup_bonus=config.referral_signup_bonus,
            recruitment_bonus=config.recruitment_bonus_amount,
            recruitment_threshold=config.recruitment_bonus_sales_threshold,
        )


@dataclass(frozen=True)
class CommissionSplit:
    """Result of splitting one gross amount"""

    gross_amount: Decimal
    platform_commission: Decimal
    business_payout: Decimal
    agent_id: Optional[int] = None
    agent_commission: Optional[Decimal] = None
    agent_rate: Optional[Decimal] = None
    override_agent_id: Optional[int] = None
    override_amount: Optional[Decimal] = None


class CommissionEngine:
    """Pure commission math; persists nothing"""

    def __init__(self, policy: Optional[CommissionPolicy] = None):
        self.policy = policy or CommissionPolicy.from_settings()

    def platform_commission(self, gross_amount: MoneyInput) -> Decimal:
        gross = self._validated_gross(gross_amount)
        return round_money(gross * self.policy.platform_rate)

    def business_payout(
        self, gross_amount: MoneyInput, platform_commission: Optional[Decimal] = None
    ) -> Decimal:
        gross = self._validated_gross(gross_amount)
        if platform_commission is None:
            platform_commission = self.platform_commission(gross)
        # Never rounded independently
        return gross - platform_commission

    def agent_commission(
        self, platform_commission: MoneyInput, rate: Optional[Decimal] = None
    ) -> Decimal:
        """Agent share of the platform commission, floored after rounding"""
        rate = self.policy.agent_rate if rate is None else to_decimal(rate)
        share = round_money(to_decimal(platform_commission) * rate)
        return max(share, self.policy.min_agent_commission)

    def team_override(self, agent_commission: MoneyInput) -> Decimal:
        return round_money(to_decimal(agent_commission) * self.policy.override_rate)

    def override_window_open(
        self, recruited_at: Optional[datetime], now: Optional[datetime] = None
    ) -> bool:
        if recruited_at is None:
            return False
        now = now or utc_now()
        return now < recruited_at + relativedelta(months=self.policy.override_months)

    def signup_bonus(self) -> Decimal:
        return round_money(self.policy.signup_bonus)

    def recruitment_bonus(self) -> Decimal:
        return round_money(self.policy.recruitment_bonus)

    def tier_for(self, lifetime_referrals: int) -> AgentTier:
        for threshold, tier, _ in TIER_SCHEDULE:
            if lifetime_referrals >= threshold:
                return tier
        return AgentTier.BRONZE

    def tier_rate(self, tier: Optional[AgentTier]) -> Decimal:
        for _, scheduled, rate in TIER_SCHEDULE:
            if scheduled == tier and rate is not None:
                return rate
        return self.policy.agent_rate

    def split(
        self, gross_amount: MoneyInput, agent=None, now: Optional[datetime] = None
    ) -> CommissionSplit:
        """
        Split a gross amount between platform, business and agent.

        ``agent`` is any object with ``id``, ``is_active``, ``tier``,
        ``commission_rate``, ``recruited_at`` and ``recruiter``. An inactive
        agent earns nothing and the transaction still settles as a
        platform-only split.
        """
        gross = self._validated_gross(gross_amount)
        platform = self.platform_commission(gross)
        payout = self.business_payout(gross, platform)

        if agent is None:
            return CommissionSplit(gross, platform, payout)

        if not agent.is_active:
            logger.warning(
                f"Agent {agent.id} is not active; settling {gross} without agent commission"
            )
            return CommissionSplit(gross, platform, payout)

        rate = (
            to_decimal(agent.commission_rate)
            if agent.commission_rate is not None
            else self.tier_rate(agent.tier)
        )
        agent_amount = self.agent_commission(platform, rate)

        override_agent_id = None
        override_amount = None
        recruiter = agent.recruiter
        if (
            recruiter is not None
            and recruiter.is_active
            and self.override_window_open(agent.recruited_at, now)
        ):
            override_agent_id = recruiter.id
            override_amount = self.team_override(agent_amount)

        return CommissionSplit(
            gross_amount=gross,
            platform_commission=platform,
            business_payout=payout,
            agent_id=agent.id,
            agent_commission=agent_amount,
            agent_rate=rate,
            override_agent_id=override_agent_id,
            override_amount=override_amount,
        )

    def _validated_gross(self, gross_amount: MoneyInput) -> Decimal:
        try:
            gross = to_decimal(gross_amount)
        except (TypeError, ValueError) as e:
            raise InvalidAmount(str(e))
        if gross <= 0:
            raise InvalidAmount(f"Gross amount must be positive, got {gross}")
        if gross != round_money(gross):
            raise InvalidAmount(f"Gross amount must have at most two decimal places, got {gross}")
        return gross
