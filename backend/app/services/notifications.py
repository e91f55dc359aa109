from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationService(Protocol):
    """Interface for outbound notifications (email or similar)."""

    async def send(self, recipient: str, subject: str, body: str) -> None:
        """Deliver a message. Best effort; callers do not retry."""
        ...


class LogNotificationService:
    """Development stand-in that writes each message to the log instead of mailing it."""

    async def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info("Mock email to %s: %s - %s", recipient, subject, body)


_notification_service: NotificationService = LogNotificationService()


def get_notification_service() -> NotificationService:
    """FastAPI dependency for the notification service."""
    return _notification_service


def set_notification_service(service: NotificationService) -> None:
    """Override the service (for testing or production wiring)."""
    global _notification_service
    _notification_service = service
