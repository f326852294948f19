# backend/modules/qr_codes/models/__init__.py

from .qr_models import QRCode, QRScan, QRCodeType, ScanRejection

__all__ = ["QRCode", "QRScan", "QRCodeType", "ScanRejection"]
