"""Unit tests for NotificationService admin helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.notifications.constants import NotificationPriority, NotificationType
from modules.notifications.repositories import InMemoryStoreDirectory
from modules.notifications.services import NotificationService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service(dispatcher, store_directory):
    return NotificationService(dispatcher, store_directory)


class TestStoreScopedHelpers:
    def test_order_created_reaches_owner_and_admins(
        self,
        service,
        dispatcher,
        email_adapter,
        telegram_adapter,
        socket_adapter,
        audit_repository,
    ):
        results = service.notify_order_created(
            "o-1", "store-1", customer_name="Ana", total_amount=Decimal("59.90"), currency="USD"
        )
        dispatcher.flush(timeout=5)

        assert len(results) == 9
        assert all(r.success for r in results)
        assert email_adapter.sent[0]["subject"] == "[HIGH] New order"
        assert "admins" in socket_adapter.sent[0]["rooms"]
        row = audit_repository.rows[0]
        assert row["type"] == NotificationType.ORDER_CREATED.value
        assert row["data"]["total_amount"] == "59.90"
        assert row["order_id"] == "o-1"

    def test_payment_proof_uploaded(self, service, telegram_adapter):
        service.notify_payment_proof_uploaded("o-1", "store-1", customer_name="Ana")

        text = telegram_adapter.sent[0]["text"]
        assert "Payment proof uploaded" in text
        assert "Ana" in text

    def test_low_stock(
        self, service, dispatcher, email_adapter, telegram_adapter, audit_repository
    ):
        results = service.notify_low_stock("store-1", "Blue mug", current_stock=2, threshold=5)
        dispatcher.flush(timeout=5)

        assert {r.channel for r in results} == {"EMAIL", "SOCKET"}
        assert telegram_adapter.sent == []
        assert audit_repository.rows[0]["priority"] == NotificationPriority.MEDIUM.value
        assert audit_repository.rows[0]["data"]["current_stock"] == 2

    def test_unknown_store_yields_no_results(self, service, email_adapter):
        assert service.notify_low_stock("nope", "Mug", 1, 5) == []
        assert email_adapter.attempts == 0


class TestSystemError:
    def test_critical_alert_to_system_owners(self, service, email_adapter, telegram_adapter):
        results = service.notify_system_error("payment gateway down", {"code": 502})

        assert [(r.channel, r.recipient_id) for r in results] == [
            ("EMAIL", "owner-1"),
            ("TELEGRAM", "owner-1"),
        ]
        assert email_adapter.sent[0]["subject"] == "[CRITICAL] System error"
        assert telegram_adapter.sent[0]["text"].startswith("🚨")

    def test_no_owners_sends_nothing(self, dispatcher, email_adapter):
        service = NotificationService(dispatcher, InMemoryStoreDirectory())

        assert service.notify_system_error("boom") == []
        assert email_adapter.attempts == 0
