# backend/modules/settlement/schemas/settlement_schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from core.money import Money
from modules.qr_codes.models.qr_models import ScanRejection
from modules.commissions.models.transaction_models import TransactionType


class ScanLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ScanRequest(BaseModel):
    qr_code_id: str
    customer_id: str = Field(..., min_length=1, max_length=64)
    location: Optional[ScanLocation] = None
    order_total: Optional[Money] = Field(None, description="Required for a discount to apply")
    referral_scan_id: Optional[int] = None


class ScanResponse(BaseModel):
    """Rejections are normal responses carrying exactly one reason"""

    admissible: bool
    reason: Optional[ScanRejection] = None
    points_awarded: Optional[int] = None
    discount_applied: Optional[Decimal] = None
    scan_id: Optional[int] = None
    referral_converted: bool = False


class SettleTransactionRequest(BaseModel):
    transaction_id: str = Field(..., min_length=1, max_length=64)
    gross_amount: Money
    business_id: str = Field(..., min_length=1, max_length=64)
    agent_id: Optional[int] = None
    transaction_type: TransactionType = TransactionType.PURCHASE

    @field_validator("transaction_id", "business_id")
    @classmethod
    def strip_identifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CommissionBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: str
    gross_amount: Decimal
    platform_commission: Decimal
    business_payout: Decimal
    agent_id: Optional[int] = None
    agent_commission: Optional[Decimal] = None
    agent_rate: Optional[Decimal] = None
    override_agent_id: Optional[int] = None
    override_amount: Optional[Decimal] = None
    created_at: datetime
    already_settled: bool = False


class ProrateRequest(BaseModel):
    full_amount: Money
    days_used: int
    total_days: int


class ProrateResponse(BaseModel):
    prorated_amount: Decimal


class ProrateRefundRequest(BaseModel):
    original_amount: Money
    days_used: int
    total_days: int


class ProrateRefundResponse(BaseModel):
    refund_amount: Decimal
