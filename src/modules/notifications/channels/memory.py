"""In-memory channel adapters that record deliveries for tests and local runs.

Each adapter renders the notification the way its real transport
would (chat markdown, e-mail subject, socket rooms) and appends the
rendered record to ``sent``.  Behaviour can be tuned per test:

- ``configure(should_succeed=False)`` fails every attempt;
- ``fail_for("u2")`` fails attempts for specific recipients;
- ``latency`` simulates a slow transport, bounded by ``timeout``.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set
from uuid import uuid4

from config import settings
from modules.notifications.channels.base import ChannelAdapter, DeliveryOutcome
from modules.notifications.channels.formatting import (
    render_email_body,
    render_email_subject,
    render_telegram_message,
)
from modules.notifications.constants import (
    URGENT_PRIORITIES,
    NotificationChannel,
    NotificationPriority,
)


class InMemoryChannelAdapter(ChannelAdapter):
    """Base for adapters that record rendered deliveries in memory."""

    channel = ""
    failure_reason_default = "Delivery failed"

    def __init__(
        self,
        latency: float = 0.0,
        timeout: float = settings.NOTIFICATION_CHANNEL_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.attempts = 0
        self.latency = latency
        self.timeout = timeout
        self.should_succeed = True
        self.failure_reason = self.failure_reason_default
        self._failing_recipients: Set[str] = set()
        self._sleep = sleep
        self._lock = threading.Lock()

    def configure(
        self, should_succeed: bool = True, failure_reason: Optional[str] = None
    ) -> None:
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or self.failure_reason_default

    def fail_for(self, *recipient_ids: str) -> None:
        self._failing_recipients.update(recipient_ids)

    def attempt_deliver(
        self,
        recipient_id: str,
        title: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DeliveryOutcome:
        with self._lock:
            self.attempts += 1
        if self.latency:
            if self.latency > self.timeout:
                self._sleep(self.timeout)
                return DeliveryOutcome.failed(
                    f"{self.channel} delivery timed out after {self.timeout}s"
                )
            self._sleep(self.latency)
        if not self.should_succeed or recipient_id in self._failing_recipients:
            return DeliveryOutcome.failed(self.failure_reason)

        message_id = f"{self.channel.lower()}-{uuid4().hex[:12]}"
        record = {
            "message_id": message_id,
            "recipient_id": recipient_id,
            **self.render(recipient_id, title, message, metadata or {}),
        }
        with self._lock:
            self.sent.append(record)
        return DeliveryOutcome.delivered(message_id)

    def render(
        self, recipient_id: str, title: str, message: str, metadata: Dict[str, Any]
    ) -> Dict[str, Any]:
        return {"title": title, "message": message, "metadata": metadata}

    def recipients(self) -> List[str]:
        with self._lock:
            return [record["recipient_id"] for record in self.sent]

    def reset(self) -> None:
        """Clear sent records (useful between tests)."""
        with self._lock:
            self.sent.clear()
            self.attempts = 0
        self.should_succeed = True
        self.failure_reason = self.failure_reason_default
        self._failing_recipients.clear()


class InMemorySocketAdapter(InMemoryChannelAdapter):
    """Real-time push to connected admin panel sessions.

    Every delivery targets the recipient's room; urgent notifications
    are mirrored to the admins room and store-scoped ones to the
    store room.
    """

    channel = NotificationChannel.SOCKET.value
    failure_reason_default = "Socket emit failed"

    def render(self, recipient_id, title, message, metadata):
        priority = metadata.get("priority", NotificationPriority.MEDIUM)
        data = metadata.get("data") or {}
        rooms = [f"user_{recipient_id}"]
        if priority in URGENT_PRIORITIES:
            rooms.append("admins")
        if data.get("store_id"):
            rooms.append(f"store_{data['store_id']}")
        return {
            "event": "notification",
            "rooms": rooms,
            "notification": {
                "title": title,
                "message": message,
                "priority": str(priority),
                "type": str(metadata.get("type", "")),
                "data": data,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }


class InMemoryTelegramAdapter(InMemoryChannelAdapter):
    """Chat-bot messages; LOW priority messages are sent silently."""

    channel = NotificationChannel.TELEGRAM.value
    failure_reason_default = "Telegram delivery failed"

    def render(self, recipient_id, title, message, metadata):
        priority = metadata.get("priority", NotificationPriority.MEDIUM)
        return {
            "chat_id": recipient_id,
            "text": render_telegram_message(
                title, message, priority, metadata.get("data")
            ),
            "parse_mode": "Markdown",
            "disable_notification": priority == NotificationPriority.LOW,
        }


class InMemoryEmailAdapter(InMemoryChannelAdapter):
    channel = NotificationChannel.EMAIL.value
    failure_reason_default = "Email delivery failed"

    def __init__(self, addresses: Optional[Dict[str, str]] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.addresses = dict(addresses or {})

    def attempt_deliver(self, recipient_id, title, message, metadata=None):
        if self.addresses and recipient_id not in self.addresses:
            return DeliveryOutcome.failed(f"No e-mail address for {recipient_id}")
        return super().attempt_deliver(recipient_id, title, message, metadata)

    def render(self, recipient_id, title, message, metadata):
        return {
            "to": self.addresses.get(recipient_id, recipient_id),
            "subject": render_email_subject(title, metadata.get("priority")),
            "body": render_email_body(title, message, metadata.get("data")),
        }


class InMemoryPushAdapter(InMemoryChannelAdapter):
    channel = NotificationChannel.PUSH.value
    failure_reason_default = "Push delivery failed"

    def render(self, recipient_id, title, message, metadata):
        return {
            "device_token": recipient_id,
            "title": title,
            "body": message,
            "data": metadata.get("data"),
        }


def default_adapters(**kwargs) -> List[InMemoryChannelAdapter]:
    """One in-memory adapter per built-in channel."""
    return [
        InMemorySocketAdapter(**kwargs),
        InMemoryTelegramAdapter(**kwargs),
        InMemoryEmailAdapter(**kwargs),
        InMemoryPushAdapter(**kwargs),
    ]
