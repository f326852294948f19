# backend/modules/commissions/schemas/commission_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal

from core.money import Money
from ..models.agent_models import AgentTier, CommissionSource, CommissionStatus


# ========== Sales agents ==========


class SalesAgentCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    commission_rate: Optional[Money] = Field(
        None, description="Fraction of the platform commission; defaults to the tier rate"
    )
    recruited_by_code: Optional[str] = Field(None, max_length=16)


class SalesAgentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    referral_code: str
    commission_rate: Optional[Decimal] = None
    tier: AgentTier
    lifetime_referrals: int
    is_active: bool
    recruited_by_id: Optional[int] = None
    recruited_at: Optional[datetime] = None
    total_earned: Decimal
    total_pending: Decimal
    created_at: datetime


# ========== Referral scans ==========


class ReferralScanCreate(BaseModel):
    referral_code: str = Field(..., min_length=1, max_length=16)
    user_agent: Optional[str] = None


class ReferralScanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    referral_code: str
    agent_id: int
    scanned_at: datetime
    user_agent: Optional[str] = None
    converted: bool
    converted_at: Optional[datetime] = None


class ReferralConversionResponse(BaseModel):
    referral_scan: ReferralScanResponse
    converted_now: bool


# ========== Ledger ==========


class AgentCommissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agent_id: int
    source: CommissionSource
    amount: Decimal
    status: CommissionStatus
    transaction_id: Optional[str] = None
    referral_scan_id: Optional[int] = None
    recruited_agent_id: Optional[int] = None
    created_at: datetime
    paid_at: Optional[datetime] = None


class TransactionTypeSummary(BaseModel):
    count: int
    volume: Decimal
    commission: Decimal


class CommissionSummaryResponse(BaseModel):
    start_date: datetime
    end_date: datetime
    total_transaction_volume: Decimal
    total_platform_commission: Decimal
    total_agent_commissions: Decimal
    total_team_overrides: Decimal
    net_commission: Decimal
    total_transactions: int
    avg_transaction_amount: Decimal
    avg_commission_amount: Decimal
    by_type: Dict[str, TransactionTypeSummary]

