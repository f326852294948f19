# backend/modules/qr_codes/services/__init__.py

from .qr_registry import QRCodeRegistry, QRCodeNotFound
from .scan_validator import ScanValidator, ScanDecision
from .reward_calculator import RewardCalculator, ScanReward

__all__ = [
    "QRCodeRegistry",
    "QRCodeNotFound",
    "ScanValidator",
    "ScanDecision",
    "RewardCalculator",
    "ScanReward",
]
