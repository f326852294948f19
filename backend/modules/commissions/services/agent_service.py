# backend/modules/commissions/services/agent_service.py

from sqlalchemy.orm import Session
from sqlalchemy import and_, func, update
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import logging
import uuid

from core.exceptions import NotFoundError, ValidationError
from core.money import MoneyInput, exceeds_scale, round_money, to_decimal
from core.time_utils import utc_now, as_naive_utc
from ..models.agent_models import (
    SalesAgent,
    ReferralScan,
    AgentCommission,
    CommissionSource,
    CommissionStatus,
    AgentTier,
)
from .commission_engine import CommissionEngine


logger = logging.getLogger(__name__)

REFERRAL_CODE_PREFIX = "AGT-"


class SalesAgentNotFound(NotFoundError):
    def __init__(self, reference):
        super().__init__(
            detail=f"Sales agent {reference} not found", error_code="SALES_AGENT_NOT_FOUND"
        )


class ReferralScanNotFound(NotFoundError):
    def __init__(self, scan_id: int):
        super().__init__(
            detail=f"Referral scan {scan_id} not found", error_code="REFERRAL_SCAN_NOT_FOUND"
        )


class CommissionNotFound(NotFoundError):
    def __init__(self, commission_id: int):
        super().__init__(
            detail=f"Commission {commission_id} not found", error_code="COMMISSION_NOT_FOUND"
        )


class SalesAgentService:
    """Sales agents, their referral scans and their commission ledger"""

    def __init__(self, db: Session, engine: Optional[CommissionEngine] = None):
        self.db = db
        self.engine = engine or CommissionEngine()

    # ========== Agents ==========

    def create_agent(
        self,
        user_id: str,
        name: str,
        commission_rate: Optional[MoneyInput] = None,
        recruited_by_code: Optional[str] = None,
    ) -> SalesAgent:
        rate = None
        if commission_rate is not None:
            rate = to_decimal(commission_rate)
            if rate < 0 or rate > 1:
                raise ValidationError("commission_rate must be between 0 and 1")
            if exceeds_scale(rate, 4):
                raise ValidationError(
                    f"commission_rate must have at most four decimal places, got {rate}"
                )

        recruiter = None
        if recruited_by_code:
            recruiter = self.get_agent_by_code(recruited_by_code)

        agent = SalesAgent(
            user_id=user_id,
            name=name,
            referral_code=self._generate_referral_code(),
            commission_rate=rate,
            tier=AgentTier.BRONZE,
            lifetime_referrals=0,
            is_active=True,
            recruited_by_id=recruiter.id if recruiter else None,
            recruited_at=utc_now() if recruiter else None,
            total_earned=Decimal("0.00"),
            total_pending=Decimal("0.00"),
        )
        self.db.add(agent)
        self.db.commit()
        self.db.refresh(agent)

        logger.info(
            f"Created sales agent {agent.id} ({agent.referral_code})"
            + (f" recruited by {recruiter.id}" if recruiter else "")
        )
        return agent

    def get_agent(self, agent_id: int) -> SalesAgent:
        agent = self.db.get(SalesAgent, agent_id)
        if not agent:
            raise SalesAgentNotFound(agent_id)
        return agent

    def get_agent_by_code(self, referral_code: str) -> SalesAgent:
        agent = (
            self.db.query(SalesAgent)
            .filter(SalesAgent.referral_code == referral_code.strip().upper())
            .first()
        )
        if not agent:
            raise SalesAgentNotFound(referral_code)
        return agent

    def deactivate_agent(self, agent_id: int) -> SalesAgent:
        agent = self.get_agent(agent_id)
        if agent.is_active:
            agent.is_active = False
            self.db.commit()
            self.db.refresh(agent)
            logger.info(f"Deactivated sales agent {agent_id}")
        return agent

    # ========== Referral scans ==========

    def record_referral_scan(
        self, referral_code: str, user_agent: Optional[str] = None
    ) -> ReferralScan:
        agent = self.get_agent_by_code(referral_code)

        scan = ReferralScan(
            referral_code=agent.referral_code,
            agent_id=agent.id,
            scanned_at=utc_now(),
            user_agent=user_agent[:500] if user_agent else None,
            converted=False,
        )
        self.db.add(scan)
        self.db.commit()
        self.db.refresh(scan)

        logger.info(f"Recorded referral scan {scan.id} for agent {agent.id}")
        return scan

    def get_referral_scan(self, referral_scan_id: int) -> ReferralScan:
        scan = self.db.get(ReferralScan, referral_scan_id)
        if not scan:
            raise ReferralScanNotFound(referral_scan_id)
        return scan

    def mark_converted(
        self, referral_scan_id: int, now: Optional[datetime] = None, commit: bool = True
    ) -> bool:
        """
        Flip a referral scan to converted, exactly once.

        Returns True only for the call that performed the transition. That
        call also counts the referral towards the agent's tier, credits any
        signup bonus and checks whether the agent's recruiter has earned the
        recruitment bonus. With ``commit=False`` the caller owns the
        transaction and any failure is left for it to roll back.
        """
        scan = self.get_referral_scan(referral_scan_id)
        now = as_naive_utc(now) if now else utc_now()

        try:
            result = self.db.execute(
                update(ReferralScan)
                .where(
                    and_(
                        ReferralScan.id == referral_scan_id,
                        ReferralScan.converted.is_(False),
                    )
                )
                .values(converted=True, converted_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.expire(scan)

            if result.rowcount != 1:
                logger.info(f"Referral scan {referral_scan_id} already converted")
                return False

            agent = self.get_agent(scan.agent_id)
            logger.info(f"Referral scan {referral_scan_id} converted for agent {agent.id}")

            self._count_referral(agent)

            signup_bonus = self.engine.signup_bonus()
            if signup_bonus > 0:
                if agent.is_active:
                    self.credit(
                        agent.id,
                        CommissionSource.SIGNUP_BONUS,
                        signup_bonus,
                        referral_scan_id=referral_scan_id,
                    )
                else:
                    logger.warning(f"Agent {agent.id} is not active; signup bonus suppressed")

            self._check_recruitment_bonus(agent)

            if commit:
                self.db.commit()
        except Exception as e:
            if commit:
                self.db.rollback()
                logger.error(f"Failed to convert referral scan {referral_scan_id}: {e}")
            raise

        return True

    def converted_count(self, agent_id: int) -> int:
        return (
            self.db.query(func.count(ReferralScan.id))
            .filter(ReferralScan.agent_id == agent_id, ReferralScan.converted.is_(True))
            .scalar()
        )

    # ========== Ledger ==========

    def credit(
        self,
        agent_id: int,
        source: CommissionSource,
        amount: MoneyInput,
        transaction_id: Optional[str] = None,
        referral_scan_id: Optional[int] = None,
        recruited_agent_id: Optional[int] = None,
    ) -> AgentCommission:
        """Add a pending credit and raise the agent's pending total; does not commit"""
        amount = round_money(amount)

        commission = AgentCommission(
            agent_id=agent_id,
            source=source,
            amount=amount,
            status=CommissionStatus.PENDING,
            transaction_id=transaction_id,
            referral_scan_id=referral_scan_id,
            recruited_agent_id=recruited_agent_id,
            created_at=utc_now(),
        )
        self.db.add(commission)
        self.db.flush()

        self._adjust_totals(agent_id, pending=amount)

        logger.info(f"Credited {amount} ({source.value}) to agent {agent_id}")
        return commission

    def get_commission(self, commission_id: int) -> AgentCommission:
        commission = self.db.get(AgentCommission, commission_id)
        if not commission:
            raise CommissionNotFound(commission_id)
        return commission

    def list_commissions(
        self, agent_id: int, status: Optional[CommissionStatus] = None
    ) -> List[AgentCommission]:
        self.get_agent(agent_id)
        query = self.db.query(AgentCommission).filter(AgentCommission.agent_id == agent_id)
        if status:
            query = query.filter(AgentCommission.status == status)
        return query.order_by(AgentCommission.created_at.desc(), AgentCommission.id.desc()).all()

    def mark_commission_paid(
        self, commission_id: int, now: Optional[datetime] = None
    ) -> AgentCommission:
        """Move a pending credit into the agent's earned total; paying twice is a no-op"""
        commission = self.get_commission(commission_id)
        now = as_naive_utc(now) if now else utc_now()

        try:
            result = self.db.execute(
                update(AgentCommission)
                .where(
                    and_(
                        AgentCommission.id == commission_id,
                        AgentCommission.status == CommissionStatus.PENDING,
                    )
                )
                .values(status=CommissionStatus.PAID, paid_at=now)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 1:
                amount = round_money(commission.amount)
                self._adjust_totals(commission.agent_id, pending=-amount, earned=amount)
                logger.info(
                    f"Commission {commission_id} paid: {amount} to agent {commission.agent_id}"
                )

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark commission {commission_id} paid: {e}")
            raise

        self.db.refresh(commission)
        return commission

    # ========== Internals ==========

    def _count_referral(self, agent: SalesAgent) -> None:
        """Add one lifetime referral and promote the agent if a threshold is crossed"""
        self.db.execute(
            update(SalesAgent)
            .where(SalesAgent.id == agent.id)
            .values(lifetime_referrals=SalesAgent.lifetime_referrals + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.expire(agent)

        # Tiers only go up
        tier = self.engine.tier_for(agent.lifetime_referrals)
        if self._tier_rank(tier) > self._tier_rank(agent.tier):
            previous = agent.tier
            self.db.execute(
                update(SalesAgent)
                .where(SalesAgent.id == agent.id)
                .values(tier=tier)
                .execution_options(synchronize_session=False)
            )
            self.db.expire(agent)
            logger.info(
                f"Agent {agent.id} promoted from {previous.value} to {tier.value} "
                f"after {agent.lifetime_referrals} referrals"
            )

    @staticmethod
    def _tier_rank(tier: AgentTier) -> int:
        return list(AgentTier).index(tier)

    def _check_recruitment_bonus(self, agent: SalesAgent) -> Optional[AgentCommission]:
        if agent.recruited_by_id is None:
            return None
        if self.converted_count(agent.id) < self.engine.policy.recruitment_threshold:
            return None

        already_paid = (
            self.db.query(AgentCommission.id)
            .filter(
                AgentCommission.source == CommissionSource.RECRUITMENT_BONUS,
                AgentCommission.recruited_agent_id == agent.id,
            )
            .first()
        )
        if already_paid:
            return None

        recruiter = self.get_agent(agent.recruited_by_id)
        if not recruiter.is_active:
            logger.warning(
                f"Recruiter {recruiter.id} is not active; recruitment bonus for agent "
                f"{agent.id} suppressed"
            )
            return None

        return self.credit(
            recruiter.id,
            CommissionSource.RECRUITMENT_BONUS,
            self.engine.recruitment_bonus(),
            recruited_agent_id=agent.id,
        )

    def _adjust_totals(
        self, agent_id: int, pending: Decimal = Decimal("0"), earned: Decimal = Decimal("0")
    ) -> None:
        # Applied in SQL so concurrent credits never overwrite each other
        self.db.execute(
            update(SalesAgent)
            .where(SalesAgent.id == agent_id)
            .values(
                total_pending=SalesAgent.total_pending + pending,
                total_earned=SalesAgent.total_earned + earned,
            )
            .execution_options(synchronize_session=False)
        )
        cached = self.db.identity_map.get(self.db.identity_key(SalesAgent, agent_id))
        if cached is not None:
            self.db.expire(cached)

    def _generate_referral_code(self) -> str:
        for _ in range(5):
            code = f"{REFERRAL_CODE_PREFIX}{uuid.uuid4().hex[:8].upper()}"
            exists = (
                self.db.query(SalesAgent.id).filter(SalesAgent.referral_code == code).first()
            )
            if not exists:
                return code
        raise RuntimeError("Could not generate a unique referral code")
