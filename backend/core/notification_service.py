# backend/core/notification_service.py

from typing import Any, Dict, Optional
import logging

from .notification_adapter import (
    NotificationAdapter,
    NotificationMessage,
    LoggingAdapter,
)
from .config import settings


logger = logging.getLogger(__name__)


class NotificationType:
    """Notification types emitted by the settlement flow"""

    SCAN_REWARDED = "scan_rewarded"
    TRANSACTION_SETTLED = "transaction_settled"
    AGENT_COMMISSION_EARNED = "agent_commission_earned"
    REFERRAL_CONVERTED = "referral_converted"


class NotificationService:
    """
    Service for sending notifications to users

    Uses adapter pattern to support multiple notification channels.
    Delivery is best-effort: a single attempt is made and failures are
    logged, never raised to the caller.
    """

    def __init__(self, adapter: Optional[NotificationAdapter] = None):
        self._adapter = adapter or LoggingAdapter()

    def set_adapter(self, adapter: NotificationAdapter):
        """Set a custom notification adapter"""
        self._adapter = adapter

    async def notify(
        self,
        user_id: str,
        notification_type: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Send a notification to a specific user

        Args:
            user_id: Recipient
            notification_type: One of NotificationType
            payload: JSON-serialisable details

        Returns:
            Success status
        """
        if not settings.notifications_enabled:
            return False

        try:
            message = NotificationMessage(
                notification_type=notification_type, payload=payload or {}
            )
            return await self._adapter.send_to_user(user_id, message)

        except Exception as e:
            logger.error(
                f"Failed to send {notification_type} notification to {user_id}: {str(e)}"
            )
            return False


notification_service = NotificationService()
