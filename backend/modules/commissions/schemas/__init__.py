from .commission_schemas import (
    SalesAgentCreate,
    SalesAgentResponse,
    ReferralScanCreate,
    ReferralScanResponse,
    ReferralConversionResponse,
    AgentCommissionResponse,
    TransactionTypeSummary,
    CommissionSummaryResponse,
)

__all__ = [
    "SalesAgentCreate",
    "SalesAgentResponse",
    "ReferralScanCreate",
    "ReferralScanResponse",
    "ReferralConversionResponse",
    "AgentCommissionResponse",
    "TransactionTypeSummary",
    "CommissionSummaryResponse",
]
