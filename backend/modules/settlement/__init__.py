# backend/modules/settlement/__init__.py

"""
Scan redemption and transaction settlement as single units of work.
"""

from .routes.settlement_routes import router as settlement_router
from .services.settlement_coordinator import SettlementCoordinator, ScanOutcome

__all__ = ["settlement_router", "SettlementCoordinator", "ScanOutcome"]
