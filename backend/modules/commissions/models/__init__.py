from .agent_models import (
    SalesAgent,
    ReferralScan,
    AgentCommission,
    CommissionSource,
    CommissionStatus,
    AgentTier,
)
from .transaction_models import (
    Transaction,
    CommissionBreakdown,
    TransactionType,
    TransactionStatus,
)

__all__ = [
    "SalesAgent",
    "ReferralScan",
    "AgentCommission",
    "CommissionSource",
    "CommissionStatus",
    "AgentTier",
    "Transaction",
    "CommissionBreakdown",
    "TransactionType",
    "TransactionStatus",
]
