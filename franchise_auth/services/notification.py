"""
Notification publisher.

Turns account events into queue messages for the mail/workflow workers.
Delivery is best-effort: a failed or unavailable queue is logged and
reported as False, never raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from franchise_auth.config import Settings, get_settings
from franchise_auth.core.models import AccountSummary
from franchise_auth.core.utils import utc_now
from franchise_auth.storage.base import QueueStorage

logger = logging.getLogger(__name__)


@dataclass
class NotificationRequest:
    """A message destined for a queue."""

    template: str  # verify_email, welcome
    queue_name: str
    recipient_email: str
    recipient_name: str = ""

    # Template variables
    context: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "template": self.template,
            "email": self.recipient_email,
            "username": self.recipient_name,
            "context": self.context,
            "queued_at": utc_now().isoformat(),
        }


class NotificationPublisher:
    """Publishes verification and welcome-workflow messages."""

    def __init__(self, queue: QueueStorage, settings: Settings | None = None):
        self.queue = queue
        self.settings = settings or get_settings()

    def verify_url(self, magic_token: str) -> str:
        return f"{self.settings.app_url.rstrip('/')}/auth/verify?{urlencode({'token': magic_token})}"

    async def send_verification(self, account: AccountSummary, magic_token: str) -> bool:
        """Ask the mail worker to send the magic verification link."""
        return await self.publish(NotificationRequest(
            template="verify_email",
            queue_name=self.settings.rabbitmq_queue,
            recipient_email=account.email,
            recipient_name=account.username,
            context={
                "magic_token": magic_token,
                "verify_url": self.verify_url(magic_token),
            },
        ))

    async def send_welcome(self, account: AccountSummary) -> bool:
        """Kick off the welcome workflow for a new account."""
        return await self.publish(NotificationRequest(
            template="welcome",
            queue_name=self.settings.welcome_queue,
            recipient_email=account.email,
            recipient_name=account.username,
            context={"account_id": account.id},
        ))

    async def publish(self, notification: NotificationRequest) -> bool:
        """Send one notification. Any queue failure becomes a warning."""
        try:
            sent = await self.queue.send_message(notification.to_payload(), notification.queue_name)
        except Exception as e:
            logger.warning(
                f"Queue error sending '{notification.template}' to {notification.queue_name}: {e}"
            )
            return False

        if not sent:
            logger.warning(f"Queue rejected '{notification.template}' for {notification.queue_name}")
        return sent
