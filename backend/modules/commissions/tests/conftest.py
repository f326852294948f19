# backend/modules/commissions/tests/conftest.py

import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from modules.commissions.models import SalesAgent
from modules.commissions.services import (
    CommissionEngine,
    CommissionPolicy,
    SalesAgentService,
)


def build_policy(**overrides) -> CommissionPolicy:
    values = {
        "platform_rate": Decimal("0.075"),
        "agent_rate": Decimal("0.10"),
        "min_agent_commission": Decimal("0.50"),
        "override_rate": Decimal("0.075"),
        "override_months": 6,
        "signup_bonus": Decimal("0.00"),
        "recruitment_bonus": Decimal("75.00"),
        "recruitment_threshold": 3,
    }
    values.update(overrides)
    return CommissionPolicy(**values)


@pytest.fixture
def agent_service(db_session: Session) -> SalesAgentService:
    return SalesAgentService(db_session, CommissionEngine(build_policy()))


@pytest.fixture
def recruiter(agent_service: SalesAgentService) -> SalesAgent:
    return agent_service.create_agent(user_id="user-recruiter", name="Rita Recruiter")


@pytest.fixture
def recruit(agent_service: SalesAgentService, recruiter: SalesAgent) -> SalesAgent:
    return agent_service.create_agent(
        user_id="user-recruit",
        name="Ray Recruit",
        recruited_by_code=recruiter.referral_code,
    )


@pytest.fixture
def make_engine():
    """Factory for engines with policy overrides"""

    def _make(**overrides) -> CommissionEngine:
        return CommissionEngine(build_policy(**overrides))

    return _make
