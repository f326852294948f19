# backend/modules/qr_codes/__init__.py

"""
Merchant QR codes: lifecycle, scan eligibility and reward calculation.
"""

from .routes.qr_code_routes import router as qr_code_router
from .models.qr_models import QRCode, QRScan, QRCodeType, ScanRejection
from .services.qr_registry import QRCodeRegistry

__all__ = [
    "qr_code_router",
    "QRCode",
    "QRScan",
    "QRCodeType",
    "ScanRejection",
    "QRCodeRegistry",
]
