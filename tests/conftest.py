from decimal import Decimal

import pytest

from config.settings import configure_logging
from modules.notifications.channels import (
    ChannelRegistry,
    InMemoryEmailAdapter,
    InMemoryPushAdapter,
    InMemorySocketAdapter,
    InMemoryTelegramAdapter,
)
from modules.notifications.dispatcher import NotificationDispatcher
from modules.notifications.repositories import (
    InMemoryNotificationAuditRepository,
    InMemoryStoreDirectory,
    StoreContacts,
)
from modules.orders.inventory import InMemoryInventoryHook
from modules.orders.models import Order, OrderItem
from shared.infrastructure.locks import InMemoryLockProvider

configure_logging()


@pytest.fixture()
def socket_adapter():
    return InMemorySocketAdapter()


@pytest.fixture()
def telegram_adapter():
    return InMemoryTelegramAdapter()


@pytest.fixture()
def email_adapter():
    return InMemoryEmailAdapter()


@pytest.fixture()
def push_adapter():
    return InMemoryPushAdapter()


@pytest.fixture()
def registry(socket_adapter, telegram_adapter, email_adapter, push_adapter):
    return ChannelRegistry(
        [socket_adapter, telegram_adapter, email_adapter, push_adapter]
    )


@pytest.fixture()
def audit_repository():
    return InMemoryNotificationAuditRepository()


@pytest.fixture()
def store_directory():
    return InMemoryStoreDirectory(
        stores=[
            StoreContacts(
                store_id="store-1",
                name="Main Street",
                owner_id="owner-1",
                admin_ids=["admin-1", "admin-2"],
            )
        ],
        system_owners=["owner-1"],
    )


@pytest.fixture()
def dispatcher(registry, audit_repository, store_directory):
    """Dispatcher over the in-memory adapters; audit retries never sleep."""
    instance = NotificationDispatcher(
        registry,
        audit_repository=audit_repository,
        store_directory=store_directory,
        workers_per_channel=4,
        background_workers=2,
        audit_backoff_seconds=0,
        sleep=lambda seconds: None,
    )
    yield instance
    instance.shutdown(wait=True)


@pytest.fixture()
def lock_provider():
    return InMemoryLockProvider()


@pytest.fixture()
def inventory_hook():
    return InMemoryInventoryHook({("prod-1", None): 10, ("prod-2", "blue"): 5})


@pytest.fixture()
def order():
    """A fresh PENDING_ADMIN order for customer ``cust-1`` at ``store-1``."""
    return Order(
        id="ord-1",
        customer_id="cust-1",
        store_id="store-1",
        items=(
            OrderItem(product_id="prod-1", quantity=2),
            OrderItem(product_id="prod-2", variant_id="blue", quantity=1),
        ),
        total_amount=Decimal("59.90"),
    )


@pytest.fixture()
def paid_metadata():
    return {"admin_id": "admin-1", "payment_proof": "proofs/ord-1.jpg"}
