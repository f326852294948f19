# backend/modules/commissions/__init__.py

"""
Commission settlement math, proration, sales agents and the agent ledger.
"""

from .routes.commission_routes import agent_router, referral_router, commission_router
from .services.commission_engine import CommissionEngine
from .services.proration import ProrationEngine

__all__ = [
    "agent_router",
    "referral_router",
    "commission_router",
    "CommissionEngine",
    "ProrationEngine",
]
