# backend/modules/qr_codes/models/qr_models.py

"""
QR code and scan models
"""

import uuid
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    ForeignKey,
    DateTime,
    Numeric,
    Float,
    Index,
    CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.database import Base
from core.mixins import TimestampMixin


class QRCodeType(str, Enum):
    """Kind of reward a QR code produces"""

    DISCOUNT = "discount"
    LOYALTY = "loyalty"
    INFO = "info"


class ScanRejection(str, Enum):
    """Reason a scan was not admitted, in evaluation order"""

    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    LIMIT_REACHED = "LIMIT_REACHED"


def _new_qr_id() -> str:
    return str(uuid.uuid4())


class QRCode(Base, TimestampMixin):
    """A printed or displayed code belonging to one business"""

    __tablename__ = "qr_codes"

    id = Column(String(36), primary_key=True, default=_new_qr_id)
    business_id = Column(String(64), nullable=False, index=True)
    code_type = Column(SQLEnum(QRCodeType), nullable=False)

    # Exactly one of these is meaningful, selected by code_type
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    points_value = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    expiration_date = Column(DateTime, nullable=True)
    scan_limit = Column(Integer, nullable=True)  # NULL or 0 means unlimited
    current_scans = Column(Integer, nullable=False, default=0)

    scans = relationship(
        "QRScan", back_populates="qr_code", order_by="QRScan.scanned_at.desc()"
    )

    __table_args__ = (
        CheckConstraint("current_scans >= 0", name="ck_qr_codes_current_scans"),
        CheckConstraint(
            "scan_limit IS NULL OR scan_limit >= 0", name="ck_qr_codes_scan_limit"
        ),
        Index("idx_qr_codes_business_active", "business_id", "is_active"),
    )

    @property
    def has_scan_limit(self) -> bool:
        return bool(self.scan_limit)

    def __repr__(self):
        return (
            f"<QRCode(id='{self.id}', type={self.code_type}, "
            f"scans={self.current_scans}/{self.scan_limit or 'unlimited'})>"
        )


class QRScan(Base):
    """One admitted redemption; append-only"""

    __tablename__ = "qr_scans"

    id = Column(Integer, primary_key=True, index=True)
    qr_code_id = Column(
        String(36), ForeignKey("qr_codes.id"), nullable=False, index=True
    )
    customer_id = Column(String(64), nullable=False, index=True)
    scanned_at = Column(DateTime, nullable=False, default=func.now())

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    points_awarded = Column(Integer, nullable=False, default=0)
    discount_applied = Column(Numeric(12, 2), nullable=False, default=0)
    order_total = Column(Numeric(12, 2), nullable=True)

    referral_scan_id = Column(Integer, ForeignKey("referral_scans.id"), nullable=True)

    qr_code = relationship("QRCode", back_populates="scans")

    def __repr__(self):
        return f"<QRScan(id={self.id}, qr_code_id='{self.qr_code_id}')>"
