# backend/modules/qr_codes/services/scan_validator.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.time_utils import utc_now, as_naive_utc
from ..models.qr_models import QRCode, ScanRejection


@dataclass(frozen=True)
class ScanDecision:
    """Outcome of an eligibility check; rejections carry exactly one reason"""

    admissible: bool
    reason: Optional[ScanRejection] = None

    @classmethod
    def admit(cls) -> "ScanDecision":
        return cls(admissible=True)

    @classmethod
    def reject(cls, reason: ScanRejection) -> "ScanDecision":
        return cls(admissible=False, reason=reason)


class ScanValidator:
    """
    Decides whether a QR code may be scanned right now.

    Checks run in a fixed order and the first failure wins:
    inactive, then expired, then scan limit. A scan_limit of 0 means
    the code has no limit, not that it admits zero scans.
    """

    def can_scan(self, qr_code: QRCode, now: Optional[datetime] = None) -> ScanDecision:
        now = as_naive_utc(now) if now else utc_now()

        if not qr_code.is_active:
            return ScanDecision.reject(ScanRejection.INACTIVE)

        if qr_code.expiration_date is not None and qr_code.expiration_date < now:
            return ScanDecision.reject(ScanRejection.EXPIRED)

        if qr_code.scan_limit and qr_code.current_scans >= qr_code.scan_limit:
            return ScanDecision.reject(ScanRejection.LIMIT_REACHED)

        return ScanDecision.admit()
