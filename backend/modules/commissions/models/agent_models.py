# backend/modules/commissions/models/agent_models.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Numeric,
    Index,
    UniqueConstraint,
    CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin


class CommissionSource(str, Enum):
    """What an agent credit was earned for"""

    TRANSACTION = "transaction"
    TEAM_OVERRIDE = "team_override"
    SIGNUP_BONUS = "signup_bonus"
    RECRUITMENT_BONUS = "recruitment_bonus"


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class AgentTier(str, Enum):
    """Rank earned through lifetime converted referrals"""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


class SalesAgent(Base, TimestampMixin):
    """Field agent who refers businesses and customers via a personal QR code"""

    __tablename__ = "sales_agents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    referral_code = Column(String(16), nullable=False, unique=True, index=True)

    # Overrides the tier rate when set
    commission_rate = Column(Numeric(5, 4), nullable=True)
    tier = Column(SQLEnum(AgentTier), nullable=False, default=AgentTier.BRONZE)
    lifetime_referrals = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Recruiter tree for team overrides
    recruited_by_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=True, index=True)
    recruited_at = Column(DateTime, nullable=True)

    # Lifetime totals
    total_earned = Column(Numeric(12, 2), nullable=False, default=0)
    total_pending = Column(Numeric(12, 2), nullable=False, default=0)

    recruiter = relationship("SalesAgent", remote_side=[id], back_populates="recruits")
    recruits = relationship("SalesAgent", back_populates="recruiter")
    referral_scans = relationship("ReferralScan", back_populates="agent")
    commissions = relationship(
        "AgentCommission", foreign_keys="AgentCommission.agent_id", back_populates="agent"
    )

    def __repr__(self):
        return f"<SalesAgent(id={self.id}, code='{self.referral_code}', active={self.is_active})>"


class ReferralScan(Base):
    """A visit through an agent's referral QR code"""

    __tablename__ = "referral_scans"

    id = Column(Integer, primary_key=True, index=True)
    referral_code = Column(String(16), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=False, index=True)
    scanned_at = Column(DateTime, nullable=False, default=func.now())
    user_agent = Column(String(500), nullable=True)

    # false -> true exactly once
    converted = Column(Boolean, nullable=False, default=False)
    converted_at = Column(DateTime, nullable=True)

    agent = relationship("SalesAgent", back_populates="referral_scans")

    __table_args__ = (Index("idx_referral_scans_agent_converted", "agent_id", "converted"),)


class AgentCommission(Base):
    """One credit to an agent's ledger"""

    __tablename__ = "agent_commissions"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=False, index=True)
    source = Column(SQLEnum(CommissionSource), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        SQLEnum(CommissionStatus), nullable=False, default=CommissionStatus.PENDING
    )

    # At most one of these identifies what was credited
    transaction_id = Column(String(64), nullable=True, index=True)
    referral_scan_id = Column(Integer, ForeignKey("referral_scans.id"), nullable=True)
    recruited_agent_id = Column(Integer, ForeignKey("sales_agents.id"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=func.now())
    paid_at = Column(DateTime, nullable=True)

    agent = relationship("SalesAgent", foreign_keys=[agent_id], back_populates="commissions")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_agent_commissions_amount"),
        UniqueConstraint(
            "source", "transaction_id", "agent_id", name="uq_agent_commission_transaction"
        ),
        UniqueConstraint("source", "referral_scan_id", name="uq_agent_commission_referral"),
        UniqueConstraint(
            "source", "recruited_agent_id", name="uq_agent_commission_recruit"
        ),
    )

    def __repr__(self):
        return (
            f"<AgentCommission(id={self.id}, agent={self.agent_id}, "
            f"source={self.source}, amount={self.amount}, status={self.status})>"
        )
