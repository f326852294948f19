# backend/modules/qr_codes/schemas/qr_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from core.money import Money
from ..models.qr_models import QRCodeType


class QRCodeCreate(BaseModel):
    """Owner request for a new QR code"""

    business_id: str = Field(..., min_length=1, max_length=64)
    code_type: QRCodeType
    # Range checks live in the registry so they surface as INVALID_CONFIG
    discount_percentage: Optional[Money] = None
    points_value: Optional[int] = None
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = Field(None, description="0 or omitted means unlimited")


class QRCodeUpdate(BaseModel):
    discount_percentage: Optional[Money] = None
    points_value: Optional[int] = None
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = None


class QRCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    code_type: QRCodeType
    discount_percentage: Optional[Decimal] = None
    points_value: Optional[int] = None
    is_active: bool
    expiration_date: Optional[datetime] = None
    scan_limit: Optional[int] = None
    current_scans: int
    created_at: datetime
    updated_at: datetime


class QRScanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    qr_code_id: str
    customer_id: str
    scanned_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    points_awarded: int
    discount_applied: Decimal
    order_total: Optional[Decimal] = None
    referral_scan_id: Optional[int] = None


class QRCodeList(BaseModel):
    items: List[QRCodeResponse]
    total: int


class BusinessQRStats(BaseModel):
    business_id: str
    total_codes: int
    active_codes: int
    total_scans: int
    total_points_awarded: int
    total_discount_applied: Decimal
