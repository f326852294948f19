# backend/modules/qr_codes/services/qr_registry.py

from sqlalchemy.orm import Session
from sqlalchemy import and_, or_, case, func, update
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal, InvalidOperation
import logging
import uuid

from core.exceptions import InvalidConfig, NotFoundError
from core.money import exceeds_scale
from core.time_utils import utc_now, as_naive_utc
from ..models.qr_models import QRCode, QRScan, QRCodeType


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("discount_percentage", "points_value", "expiration_date", "scan_limit")


class QRCodeNotFound(NotFoundError):
    def __init__(self, qr_id: str):
        super().__init__(detail=f"QR code {qr_id} not found", error_code="QR_CODE_NOT_FOUND")


class QRCodeRegistry:
    """Owns QR code lifecycle: creation, activation, limits and the scan counter"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self, business_id: str, code_type: QRCodeType, config: Dict[str, Any]
    ) -> QRCode:
        """Create an active QR code with a zero scan counter"""
        code_type = QRCodeType(code_type)
        values = self._validated_config(code_type, config)

        qr_code = QRCode(
            business_id=business_id,
            code_type=code_type,
            is_active=True,
            current_scans=0,
            **values,
        )
        self.db.add(qr_code)
        self.db.commit()
        self.db.refresh(qr_code)

        logger.info(
            f"Created {code_type.value} QR code {qr_code.id} for business {business_id}"
        )
        return qr_code

    def get(self, qr_id: str) -> QRCode:
        if not _is_uuid(qr_id):
            raise QRCodeNotFound(qr_id)

        qr_code = self.db.get(QRCode, qr_id)
        if not qr_code:
            raise QRCodeNotFound(qr_id)
        return qr_code

    def update(self, qr_id: str, changes: Dict[str, Any]) -> QRCode:
        """Owner update of limits, expiry and reward values; never touches current_scans"""
        qr_code = self.get(qr_id)

        merged = {field: getattr(qr_code, field) for field in UPDATABLE_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in UPDATABLE_FIELDS})
        values = self._validated_config(qr_code.code_type, merged)

        for field, value in values.items():
            setattr(qr_code, field, value)

        self.db.commit()
        self.db.refresh(qr_code)

        logger.info(f"Updated QR code {qr_id}: {sorted(changes)}")
        return qr_code

    def deactivate(self, qr_id: str) -> QRCode:
        return self._set_active(qr_id, False)

    def reactivate(self, qr_id: str) -> QRCode:
        return self._set_active(qr_id, True)

    def record_scan(self, qr_id: str, now: Optional[datetime] = None) -> bool:
        """
        Atomically increment current_scans if the code is still admissible.

        This is the only writer of current_scans. The eligibility checks
        are repeated inside the UPDATE so that concurrent callers cannot
        both take the last remaining scan; the row count tells the caller
        whether it won. The caller owns the surrounding transaction.
        """
        now = as_naive_utc(now) if now else utc_now()

        result = self.db.execute(
            update(QRCode)
            .where(
                and_(
                    QRCode.id == qr_id,
                    QRCode.is_active.is_(True),
                    or_(
                        QRCode.expiration_date.is_(None),
                        QRCode.expiration_date >= now,
                    ),
                    or_(
                        QRCode.scan_limit.is_(None),
                        QRCode.scan_limit == 0,
                        QRCode.current_scans < QRCode.scan_limit,
                    ),
                )
            )
            .values(current_scans=QRCode.current_scans + 1)
            .execution_options(synchronize_session=False)
        )

        cached = self.db.identity_map.get(self.db.identity_key(QRCode, qr_id))
        if cached is not None:
            self.db.expire(cached)

        return result.rowcount == 1

    def list_for_business(self, business_id: str, active_only: bool = False) -> List[QRCode]:
        query = self.db.query(QRCode).filter(QRCode.business_id == business_id)
        if active_only:
            query = query.filter(QRCode.is_active.is_(True))
        return query.order_by(QRCode.created_at.desc()).all()

    def list_scans(self, qr_id: str, limit: int = 50) -> List[QRScan]:
        self.get(qr_id)
        return (
            self.db.query(QRScan)
            .filter(QRScan.qr_code_id == qr_id)
            .order_by(QRScan.scanned_at.desc(), QRScan.id.desc())
            .limit(limit)
            .all()
        )

    def business_stats(self, business_id: str) -> Dict[str, Any]:
        """Scan totals across every QR code a business owns"""
        total_codes, active_codes = (
            self.db.query(
                func.count(QRCode.id),
                func.coalesce(func.sum(case((QRCode.is_active.is_(True), 1), else_=0)), 0),
            )
            .filter(QRCode.business_id == business_id)
            .one()
        )

        total_scans, total_points, total_discount = (
            self.db.query(
                func.count(QRScan.id),
                func.coalesce(func.sum(QRScan.points_awarded), 0),
                func.coalesce(func.sum(QRScan.discount_applied), 0),
            )
            .join(QRCode, QRCode.id == QRScan.qr_code_id)
            .filter(QRCode.business_id == business_id)
            .one()
        )

        return {
            "business_id": business_id,
            "total_codes": total_codes,
            "active_codes": int(active_codes),
            "total_scans": total_scans,
            "total_points_awarded": int(total_points),
            "total_discount_applied": Decimal(str(total_discount)).quantize(Decimal("0.01")),
        }

    def _set_active(self, qr_id: str, active: bool) -> QRCode:
        qr_code = self.get(qr_id)
        if qr_code.is_active != active:
            qr_code.is_active = active
            self.db.commit()
            self.db.refresh(qr_code)
            logger.info(f"QR code {qr_id} {'reactivated' if active else 'deactivated'}")
        return qr_code

    def _validated_config(
        self, code_type: QRCodeType, config: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Check the reward value against the code type and return column values"""
        values: Dict[str, Any] = {
            "discount_percentage": None,
            "points_value": None,
            "expiration_date": None,
            "scan_limit": None,
        }

        if code_type == QRCodeType.DISCOUNT:
            percentage = config.get("discount_percentage")
            if percentage is None:
                raise InvalidConfig("discount_percentage is required for discount codes")
            try:
                percentage = Decimal(str(percentage))
            except InvalidOperation:
                raise InvalidConfig("discount_percentage must be a number")
            if not percentage.is_finite() or percentage < 0 or percentage > 100:
                raise InvalidConfig("discount_percentage must be between 0 and 100")
            if exceeds_scale(percentage, 2):
                raise InvalidConfig("discount_percentage must have at most two decimal places")
            values["discount_percentage"] = percentage

        elif code_type == QRCodeType.LOYALTY:
            points = config.get("points_value")
            if points is None:
                raise InvalidConfig("points_value is required for loyalty codes")
            if isinstance(points, bool) or not isinstance(points, int) or points < 0:
                raise InvalidConfig("points_value must be a non-negative integer")
            values["points_value"] = points

        scan_limit = config.get("scan_limit")
        if scan_limit is not None:
            if isinstance(scan_limit, bool) or not isinstance(scan_limit, int) or scan_limit < 0:
                raise InvalidConfig("scan_limit must be a non-negative integer")
            values["scan_limit"] = scan_limit

        expiration_date = config.get("expiration_date")
        if expiration_date is not None:
            values["expiration_date"] = as_naive_utc(expiration_date)

        return values


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
