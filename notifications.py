# notifications.py  ──  where cost-of-delay reports go once generated
# The engine only builds the email; a sink decides how (or whether) it leaves the process.

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from config import WEBHOOK_TIMEOUT_SECONDS, WEBHOOK_URL

logger = logging.getLogger(__name__)


@dataclass
class OutgoingMessage:
    recipient: Optional[str]
    subject: str
    content: str


class NotificationSink(ABC):

    @abstractmethod
    async def send(self, message: OutgoingMessage) -> bool:
        """Deliver a message. Returns False instead of raising on delivery failure."""


class MockEmailSink(NotificationSink):
    """No transport: logs the email and keeps it in `outbox`."""

    def __init__(self):
        self.outbox: list[OutgoingMessage] = []

    async def send(self, message: OutgoingMessage) -> bool:
        logger.info(f"📧 Email to be sent to {message.recipient}: {message.subject}")
        logger.debug(message.content)
        self.outbox.append(message)
        return True


class WebhookSink(NotificationSink):
    """POST a short summary to a Slack/Discord webhook."""

    def __init__(self, url: Optional[str] = WEBHOOK_URL, timeout: float = WEBHOOK_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout

    async def send(self, message: OutgoingMessage) -> bool:
        if not self.url:
            logger.warning("WEBHOOK_URL not set, notification dropped")
            return False

        payload = {
            "text": (
                f"💸 *{message.subject}*\n"
                f"*To:* {message.recipient}\n"
                f"{message.content[:1500]}"
            )
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  Webhook delivery failed: {e}")
            return False

        logger.info(f"📣  Webhook fired → HTTP {resp.status_code}")
        return True


def build_sink(webhook_url: Optional[str] = WEBHOOK_URL) -> NotificationSink:
    return WebhookSink(webhook_url) if webhook_url else MockEmailSink()
