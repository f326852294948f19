# backend/modules/settlement/services/settlement_coordinator.py

"""
Unit of work for scan redemption and transaction settlement.

A scan is validated, rewarded, counted and recorded in one database
transaction; a transaction is split and written to the ledger in one
database transaction. Notifications are dispatched only after the commit
and can never undo it.
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple
import logging

from core.exceptions import InvalidAmount
from core.money import ZERO, MoneyInput, exceeds_scale, to_decimal
from core.notification_service import NotificationType
from core.query_logger import log_query_performance
from core.time_utils import utc_now, as_naive_utc
from modules.qr_codes.models.qr_models import QRScan, ScanRejection
from modules.qr_codes.services.qr_registry import QRCodeRegistry
from modules.qr_codes.services.scan_validator import ScanValidator
from modules.qr_codes.services.reward_calculator import RewardCalculator
from modules.commissions.models.agent_models import CommissionSource
from modules.commissions.models.transaction_models import (
    Transaction,
    CommissionBreakdown,
    TransactionStatus,
    TransactionType,
)
from modules.commissions.services.agent_service import SalesAgentService
from modules.commissions.services.commission_engine import CommissionEngine


logger = logging.getLogger(__name__)

# (user_id, notification_type, payload)
Dispatcher = Callable[[str, str, Dict[str, Any]], Any]


@dataclass(frozen=True)
class ScanOutcome:
    admissible: bool
    reason: Optional[ScanRejection] = None
    points_awarded: Optional[int] = None
    discount_applied: Optional[Decimal] = None
    scan_id: Optional[int] = None
    referral_converted: bool = False

    @classmethod
    def rejected(cls, reason: ScanRejection) -> "ScanOutcome":
        return cls(admissible=False, reason=reason)


class SettlementCoordinator:
    """Orchestrates validation, reward, commission and persistence"""

    def __init__(
        self,
        db: Session,
        engine: Optional[CommissionEngine] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.db = db
        self.engine = engine or CommissionEngine()
        self.registry = QRCodeRegistry(db)
        self.validator = ScanValidator()
        self.calculator = RewardCalculator()
        self.agents = SalesAgentService(db, self.engine)
        self.dispatcher = dispatcher

    def process_scan(
        self,
        qr_id: str,
        customer_id: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        order_total: Optional[MoneyInput] = None,
        referral_scan_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ScanOutcome:
        now = as_naive_utc(now) if now else utc_now()

        qr_code = self.registry.get(qr_id)
        decision = self.validator.can_scan(qr_code, now)
        if not decision.admissible:
            logger.info(f"Scan of QR code {qr_id} rejected: {decision.reason.value}")
            return ScanOutcome.rejected(decision.reason)

        if order_total is not None:
            order_total = self._validated_order_total(order_total)
        if referral_scan_id is not None:
            self.agents.get_referral_scan(referral_scan_id)

        reward = self.calculator.calculate(qr_code, order_total)

        try:
            if not self.registry.record_scan(qr_id, now):
                self.db.rollback()
                return self._lost_race(qr_id, now)

            scan = QRScan(
                qr_code_id=qr_id,
                customer_id=customer_id,
                scanned_at=now,
                latitude=latitude,
                longitude=longitude,
                points_awarded=reward.points_awarded,
                discount_applied=reward.discount_applied,
                order_total=order_total,
                referral_scan_id=referral_scan_id,
            )
            self.db.add(scan)
            self.db.flush()

            converted = False
            if referral_scan_id is not None:
                converted = self.agents.mark_converted(referral_scan_id, now, commit=False)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record scan of QR code {qr_id}: {e}")
            raise

        logger.info(
            f"Scan {scan.id} of QR code {qr_id} by {customer_id}: "
            f"points={reward.points_awarded} discount={reward.discount_applied}"
        )

        self._dispatch(
            customer_id,
            NotificationType.SCAN_REWARDED,
            {
                "qr_code_id": qr_id,
                "scan_id": scan.id,
                "points_awarded": reward.points_awarded,
                "discount_applied": str(reward.discount_applied),
            },
        )
        if converted:
            referral = self.agents.get_referral_scan(referral_scan_id)
            agent = self.agents.get_agent(referral.agent_id)
            self._dispatch(
                agent.user_id,
                NotificationType.REFERRAL_CONVERTED,
                {"referral_scan_id": referral_scan_id, "agent_id": agent.id},
            )

        return ScanOutcome(
            admissible=True,
            points_awarded=reward.points_awarded,
            discount_applied=reward.discount_applied,
            scan_id=scan.id,
            referral_converted=converted,
        )

    def settle_transaction(
        self,
        transaction_id: str,
        gross_amount: MoneyInput,
        business_id: str,
        agent_id: Optional[int] = None,
        transaction_type: TransactionType = TransactionType.PURCHASE,
        now: Optional[datetime] = None,
    ) -> Tuple[CommissionBreakdown, bool]:
        """
        Split and persist one transaction.

        Returns the breakdown and whether this call created it. Settling a
        transaction id that already has a breakdown returns the stored one
        and writes nothing.
        """
        existing = self._find_breakdown(transaction_id)
        if existing is not None:
            logger.info(f"Transaction {transaction_id} already settled; returning stored breakdown")
            return existing, False

        now = as_naive_utc(now) if now else utc_now()
        agent = self.agents.get_agent(agent_id) if agent_id is not None else None
        split = self.engine.split(gross_amount, agent, now)

        with log_query_performance("settle_transaction"):
            try:
                transaction = Transaction(
                    transaction_id=transaction_id,
                    business_id=business_id,
                    transaction_type=TransactionType(transaction_type),
                    gross_amount=split.gross_amount,
                    agent_id=agent_id,
                    status=TransactionStatus.SETTLED,
                    settled_at=now,
                )
                self.db.add(transaction)
                self.db.flush()

                breakdown = CommissionBreakdown(
                    transaction_id=transaction_id,
                    gross_amount=split.gross_amount,
                    platform_commission=split.platform_commission,
                    business_payout=split.business_payout,
                    agent_id=split.agent_id,
                    agent_commission=split.agent_commission,
                    agent_rate=split.agent_rate,
                    override_agent_id=split.override_agent_id,
                    override_amount=split.override_amount,
                    created_at=now,
                )
                self.db.add(breakdown)
                self.db.flush()

                if split.agent_commission is not None:
                    self.agents.credit(
                        split.agent_id,
                        CommissionSource.TRANSACTION,
                        split.agent_commission,
                        transaction_id=transaction_id,
                    )
                if split.override_amount is not None:
                    self.agents.credit(
                        split.override_agent_id,
                        CommissionSource.TEAM_OVERRIDE,
                        split.override_amount,
                        transaction_id=transaction_id,
                    )

                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                existing = self._find_breakdown(transaction_id)
                if existing is None:
                    raise
                logger.warning(
                    f"Transaction {transaction_id} was settled concurrently; "
                    f"returning stored breakdown"
                )
                return existing, False
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to settle transaction {transaction_id}: {e}")
                raise

        self.db.refresh(breakdown)
        logger.info(
            f"Settled transaction {transaction_id}: gross={split.gross_amount} "
            f"platform={split.platform_commission} payout={split.business_payout} "
            f"agent={split.agent_commission} override={split.override_amount}"
        )

        self._dispatch(
            business_id,
            NotificationType.TRANSACTION_SETTLED,
            {
                "transaction_id": transaction_id,
                "gross_amount": str(split.gross_amount),
                "business_payout": str(split.business_payout),
            },
        )
        if split.agent_commission is not None:
            self._dispatch(
                agent.user_id,
                NotificationType.AGENT_COMMISSION_EARNED,
                {
                    "transaction_id": transaction_id,
                    "amount": str(split.agent_commission),
                },
            )

        return breakdown, True

    def _lost_race(self, qr_id: str, now: datetime) -> ScanOutcome:
        """Explain why the conditional increment matched no row"""
        decision = self.validator.can_scan(self.registry.get(qr_id), now)
        reason = decision.reason if not decision.admissible else ScanRejection.LIMIT_REACHED
        logger.warning(f"Scan of QR code {qr_id} lost the counter update: {reason.value}")
        return ScanOutcome.rejected(reason)

    def _find_breakdown(self, transaction_id: str) -> Optional[CommissionBreakdown]:
        return (
            self.db.query(CommissionBreakdown)
            .filter(CommissionBreakdown.transaction_id == transaction_id)
            .first()
        )

    def _validated_order_total(self, order_total: MoneyInput) -> Decimal:
        try:
            total = to_decimal(order_total)
        except (TypeError, ValueError) as e:
            raise InvalidAmount(str(e))
        if total < ZERO:
            raise InvalidAmount(f"order_total must not be negative, got {total}")
        if exceeds_scale(total, 2):
            raise InvalidAmount(f"order_total must have at most two decimal places, got {total}")
        return total

    def _dispatch(self, user_id: str, notification_type: str, payload: Dict[str, Any]) -> None:
        """Best effort; never raises"""
        if self.dispatcher is None:
            return
        try:
            self.dispatcher(user_id, notification_type, payload)
        except Exception as e:
            logger.warning(f"Notification {notification_type} to {user_id} failed: {e}")
