# backend/modules/commissions/models/transaction_models.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Numeric,
    CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    BOOKING = "booking"
    SUBSCRIPTION = "subscription"
    QR_REDEMPTION = "qr_redemption"


class TransactionStatus(str, Enum):
    SETTLED = "settled"


class Transaction(Base, TimestampMixin):
    """A monetary event that has been settled across platform, business and agent"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    # Caller supplied; the idempotency key for settlement
    transaction_id = Column(String(64), nullable=False, unique=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    transaction_type = Column(
        SQLEnum(TransactionType), nullable=False, default=TransactionType.PURCHASE
    )
    gross_amount = Column(Numeric(12, 2), nullable=False)
    agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=True, index=True)
    status = Column(
        SQLEnum(TransactionStatus), nullable=False, default=TransactionStatus.SETTLED
    )
    settled_at = Column(DateTime, nullable=True, index=True)

    breakdown = relationship(
        "CommissionBreakdown", back_populates="transaction", uselist=False
    )

    __table_args__ = (
        CheckConstraint("gross_amount > 0", name="ck_transactions_gross_amount"),
    )


class CommissionBreakdown(Base):
    """Audit record of how one transaction's gross amount was split"""

    __tablename__ = "commission_breakdowns"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(
        String(64),
        ForeignKey("transactions.transaction_id"),
        nullable=False,
        unique=True,
        index=True,
    )
    gross_amount = Column(Numeric(12, 2), nullable=False)
    platform_commission = Column(Numeric(12, 2), nullable=False)
    business_payout = Column(Numeric(12, 2), nullable=False)

    agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=True)
    agent_commission = Column(Numeric(12, 2), nullable=True)
    agent_rate = Column(Numeric(5, 4), nullable=True)

    override_agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=True)
    override_amount = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime, nullable=False, default=func.now())

    transaction = relationship("Transaction", back_populates="breakdown")

    def __repr__(self):
        return (
            f"<CommissionBreakdown(transaction='{self.transaction_id}', "
            f"platform={self.platform_commission}, payout={self.business_payout})>"
        )
