# backend/modules/settlement/tests/conftest.py

import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from modules.qr_codes.models import QRCode, QRCodeType
from modules.qr_codes.services import QRCodeRegistry
from modules.commissions.services import SalesAgentService
from modules.settlement.services import SettlementCoordinator


@pytest.fixture
def coordinator(db_session: Session, notifier) -> SettlementCoordinator:
    return SettlementCoordinator(db_session, dispatcher=notifier)


@pytest.fixture
def registry(db_session: Session) -> QRCodeRegistry:
    return QRCodeRegistry(db_session)


@pytest.fixture
def agents(db_session: Session) -> SalesAgentService:
    return SalesAgentService(db_session)


@pytest.fixture
def loyalty_code(registry: QRCodeRegistry) -> QRCode:
    return registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 50})


@pytest.fixture
def discount_code(registry: QRCodeRegistry) -> QRCode:
    return registry.create(
        "biz-1", QRCodeType.DISCOUNT, {"discount_percentage": Decimal("15")}
    )


@pytest.fixture
def set_scans(db_session: Session):
    """Force a code's counter without going through a scan"""

    def _set(qr_id: str, current_scans: int):
        db_session.query(QRCode).filter(QRCode.id == qr_id).update(
            {"current_scans": current_scans}, synchronize_session=False
        )
        db_session.commit()

    return _set
