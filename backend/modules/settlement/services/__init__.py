from .settlement_coordinator import SettlementCoordinator, ScanOutcome

__all__ = ["SettlementCoordinator", "ScanOutcome"]
