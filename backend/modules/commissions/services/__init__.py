from .commission_engine import CommissionEngine, CommissionPolicy, CommissionSplit, TIER_SCHEDULE
from .proration import ProrationEngine
from .agent_service import (
    SalesAgentService,
    SalesAgentNotFound,
    ReferralScanNotFound,
    CommissionNotFound,
)
from .commission_summary import commission_summary

__all__ = [
    "CommissionEngine",
    "CommissionPolicy",
    "CommissionSplit",
    "TIER_SCHEDULE",
    "ProrationEngine",
    "SalesAgentService",
    "SalesAgentNotFound",
    "ReferralScanNotFound",
    "CommissionNotFound",
    "commission_summary",
]
