# backend/modules/qr_codes/schemas/__init__.py

from .qr_schemas import (
    QRCodeCreate,
    QRCodeUpdate,
    QRCodeResponse,
    QRScanResponse,
    QRCodeList,
    BusinessQRStats,
)

__all__ = [
    "QRCodeCreate",
    "QRCodeUpdate",
    "QRCodeResponse",
    "QRScanResponse",
    "QRCodeList",
    "BusinessQRStats",
]
