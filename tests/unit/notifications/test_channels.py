from datetime import datetime, timezone

import pytest

from modules.notifications.channels import (
    ChannelRegistry,
    InMemoryEmailAdapter,
    InMemorySocketAdapter,
    InMemoryTelegramAdapter,
    default_adapters,
)
from modules.notifications.channels.formatting import (
    render_email_body,
    render_email_subject,
    render_telegram_message,
)
from modules.notifications.constants import NotificationChannel, NotificationPriority
from modules.notifications.exceptions import UnrecognizedChannel

pytestmark = pytest.mark.unit


class TestChannelRegistry:
    def test_adapters_registered_by_channel(self):
        registry = ChannelRegistry(default_adapters())
        assert registry.channels == ["SOCKET", "TELEGRAM", "EMAIL", "PUSH"]
        assert NotificationChannel.EMAIL in registry
        assert isinstance(registry.get("TELEGRAM"), InMemoryTelegramAdapter)

    def test_unknown_channel(self):
        with pytest.raises(UnrecognizedChannel, match="Unknown channel type: SMS"):
            ChannelRegistry().get("SMS")

    def test_register_under_custom_tag(self, socket_adapter):
        registry = ChannelRegistry()
        registry.register(socket_adapter, channel="WEBSOCKET")
        assert registry.get("WEBSOCKET") is socket_adapter


class TestInMemoryAdapters:
    def test_successful_delivery_is_recorded(self, push_adapter):
        outcome = push_adapter.attempt_deliver("device-1", "Hi", "Body", {"data": {"a": 1}})

        assert outcome.success is True
        assert outcome.message_id.startswith("push-")
        assert push_adapter.sent[0]["device_token"] == "device-1"
        assert push_adapter.attempts == 1

    def test_configure_failure(self, push_adapter):
        push_adapter.configure(should_succeed=False, failure_reason="token expired")

        outcome = push_adapter.attempt_deliver("device-1", "Hi", "Body")

        assert outcome.success is False
        assert outcome.error == "token expired"
        assert push_adapter.sent == []

    def test_reset_restores_defaults(self, push_adapter):
        push_adapter.configure(should_succeed=False)
        push_adapter.fail_for("device-1")
        push_adapter.attempt_deliver("device-1", "Hi", "Body")

        push_adapter.reset()

        assert push_adapter.attempts == 0
        assert push_adapter.attempt_deliver("device-1", "Hi", "Body").success is True

    def test_latency_beyond_timeout_fails(self):
        slept = []
        adapter = InMemorySocketAdapter(latency=5.0, timeout=1.0, sleep=slept.append)

        outcome = adapter.attempt_deliver("u1", "Hi", "Body")

        assert outcome.success is False
        assert "timed out after 1.0s" in outcome.error
        assert slept == [1.0]

    def test_latency_within_timeout_succeeds(self):
        slept = []
        adapter = InMemorySocketAdapter(latency=0.5, timeout=1.0, sleep=slept.append)

        assert adapter.attempt_deliver("u1", "Hi", "Body").success is True
        assert slept == [0.5]

    def test_socket_rooms(self, socket_adapter):
        socket_adapter.attempt_deliver(
            "u1",
            "Hi",
            "Body",
            {"priority": NotificationPriority.HIGH, "data": {"store_id": "store-1"}},
        )
        socket_adapter.attempt_deliver("u2", "Hi", "Body", {"priority": NotificationPriority.LOW})

        assert socket_adapter.sent[0]["rooms"] == ["user_u1", "admins", "store_store-1"]
        assert socket_adapter.sent[1]["rooms"] == ["user_u2"]

    def test_telegram_low_priority_is_silent(self, telegram_adapter):
        telegram_adapter.attempt_deliver("chat-1", "Hi", "Body", {"priority": NotificationPriority.LOW})
        telegram_adapter.attempt_deliver("chat-1", "Hi", "Body", {"priority": NotificationPriority.HIGH})

        assert telegram_adapter.sent[0]["disable_notification"] is True
        assert telegram_adapter.sent[1]["disable_notification"] is False
        assert telegram_adapter.sent[0]["parse_mode"] == "Markdown"

    def test_email_requires_known_address(self):
        adapter = InMemoryEmailAdapter(addresses={"owner-1": "owner@example.com"})

        ok = adapter.attempt_deliver("owner-1", "New order", "Body", {"priority": "HIGH"})
        missing = adapter.attempt_deliver("admin-9", "New order", "Body")

        assert ok.success is True
        assert adapter.sent[0]["to"] == "owner@example.com"
        assert adapter.sent[0]["subject"] == "[HIGH] New order"
        assert missing.success is False
        assert "admin-9" in missing.error


class TestFormatting:
    def test_telegram_message_layout(self):
        text = render_telegram_message(
            "Payment confirmed",
            "Order o-1 is paid",
            NotificationPriority.CRITICAL,
            {"order_id": "o-1"},
            now=datetime(2026, 5, 4, 10, 30, tzinfo=timezone.utc),
        )

        assert text.splitlines()[0] == "🚨 *Payment confirmed*"
        assert "• order_id: o-1" in text
        assert "⏰ 2026-05-04 10:30:00 UTC" in text
        assert text.endswith("Priority: CRITICAL")

    def test_unknown_priority_falls_back_to_medium(self):
        assert render_email_subject("Hi", "URGENT") == "[MEDIUM] Hi"

    def test_email_body_lists_data(self):
        body = render_email_body("New order", "Order o-1", {"total": "10.00"}, "Maria")

        assert body.startswith("Hello, Maria!")
        assert "  total: 10.00" in body
