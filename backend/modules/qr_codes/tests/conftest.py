# backend/modules/qr_codes/tests/conftest.py

import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from modules.qr_codes.models import QRCode, QRCodeType
from modules.qr_codes.services import QRCodeRegistry


@pytest.fixture
def registry(db_session: Session) -> QRCodeRegistry:
    return QRCodeRegistry(db_session)


@pytest.fixture
def loyalty_code(registry: QRCodeRegistry) -> QRCode:
    """Active loyalty code worth 50 points, unlimited"""
    return registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 50})


@pytest.fixture
def discount_code(registry: QRCodeRegistry) -> QRCode:
    """Active 15% discount code limited to 10 scans"""
    return registry.create(
        "biz-1",
        QRCodeType.DISCOUNT,
        {"discount_percentage": Decimal("15"), "scan_limit": 10},
    )


@pytest.fixture
def make_code():
    """Factory for unsaved QR codes with explicit state"""

    def _make(**overrides) -> QRCode:
        values = {
            "business_id": "biz-1",
            "code_type": QRCodeType.LOYALTY,
            "points_value": 10,
            "is_active": True,
            "expiration_date": None,
            "scan_limit": None,
            "current_scans": 0,
        }
        values.update(overrides)
        return QRCode(**values)

    return _make
