from .settlement_schemas import (
    ScanLocation,
    ScanRequest,
    ScanResponse,
    SettleTransactionRequest,
    CommissionBreakdownResponse,
    ProrateRequest,
    ProrateResponse,
    ProrateRefundRequest,
    ProrateRefundResponse,
)

__all__ = [
    "ScanLocation",
    "ScanRequest",
    "ScanResponse",
    "SettleTransactionRequest",
    "CommissionBreakdownResponse",
    "ProrateRequest",
    "ProrateResponse",
    "ProrateRefundRequest",
    "ProrateRefundResponse",
]
