# backend/core/notification_adapter.py

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging


logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    """Standard notification message structure"""

    notification_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


class NotificationAdapter(ABC):
    """
    Abstract base class for notification adapters

    Implement this interface to add new notification channels
    (Email, push notifications, webhooks, etc.)
    """

    @abstractmethod
    async def send_to_user(self, user_id: str, message: NotificationMessage) -> bool:
        """Send notification to a specific user"""
        pass

    @abstractmethod
    def get_adapter_name(self) -> str:
        """Return the name of this adapter"""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the adapter is currently available"""
        pass


class LoggingAdapter(NotificationAdapter):
    """
    Default logging adapter for notifications

    This adapter logs all notifications and can be used for
    development/testing or as a fallback
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    async def send_to_user(self, user_id: str, message: NotificationMessage) -> bool:
        logger.log(
            self.log_level,
            f"[NOTIFICATION] To User {user_id} - {message.notification_type}",
            extra={
                "notification_type": message.notification_type,
                "user_id": user_id,
                "timestamp": message.timestamp.isoformat(),
                "payload": message.payload,
            },
        )
        return True

    def get_adapter_name(self) -> str:
        return "logging"

    async def is_available(self) -> bool:
        return True
