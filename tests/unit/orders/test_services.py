"""Unit tests for OrderService.

Covers:
- Order creation in PENDING_ADMIN with the store notification.
- Status transitions routed through one state machine per order.
- History and lookups.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from modules.notifications.services import NotificationService
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import OrderItem
from modules.orders.repositories import InMemoryOrderRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def repository():
    return InMemoryOrderRepository()


@pytest.fixture()
def notification_service():
    return MagicMock(spec=NotificationService)


@pytest.fixture()
def service(repository, inventory_hook, notification_service, lock_provider):
    return OrderService(
        order_repository=repository,
        inventory_hook=inventory_hook,
        notification_service=notification_service,
        lock_provider=lock_provider,
    )


@pytest.fixture()
def dto():
    return CreateOrderDTO(
        customer_id="cust-1",
        store_id="store-1",
        items=[OrderItem(product_id="prod-1", quantity=3)],
        total_amount=Decimal("30.00"),
        customer_name="Ana",
    )


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_new_order_is_pending_admin(self, service, repository, dto):
        order = service.create_order(dto)

        assert order.status == OrderStatus.PENDING_ADMIN
        assert order.customer_id == "cust-1"
        assert order.items == tuple(dto.items)
        assert repository.get_by_id(order.id) == order

    def test_store_is_notified(self, service, notification_service, dto):
        order = service.create_order(dto)

        notification_service.notify_order_created.assert_called_once_with(
            order_id=order.id,
            store_id="store-1",
            customer_name="Ana",
            total_amount=Decimal("30.00"),
            currency="USD",
        )

    def test_notification_failure_does_not_block_creation(
        self, service, repository, notification_service, dto
    ):
        notification_service.notify_order_created.side_effect = RuntimeError("boom")

        order = service.create_order(dto)

        assert repository.get_by_id(order.id) is not None

    def test_empty_items_rejected(self):
        with pytest.raises(ValueError):
            CreateOrderDTO(customer_id="c", store_id="s", items=[])


# ---------------------------------------------------------------------------
# update_status
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_transition_is_persisted(self, service, repository, dto, paid_metadata):
        order = service.create_order(dto)

        result = service.update_status(order.id, OrderStatus.PAID, paid_metadata)

        assert result.success is True
        assert repository.get_by_id(order.id).status == OrderStatus.PAID
        assert service.get_order(order.id).status == OrderStatus.PAID
        assert len(repository.get_history(order.id)) == 1

    def test_paid_reserves_stock(self, service, inventory_hook, dto, paid_metadata):
        order = service.create_order(dto)
        service.update_status(order.id, "PAID", paid_metadata)
        assert inventory_hook.available("prod-1") == 7

    def test_invalid_transition_returns_failure(self, service, dto):
        order = service.create_order(dto)

        result = service.update_status(order.id, OrderStatus.DELIVERED)

        assert result.success is False
        assert result.error_code == "InvalidTransition"
        assert service.get_order(order.id).status == OrderStatus.PENDING_ADMIN

    def test_unknown_order_raises(self, service):
        with pytest.raises(OrderNotFound):
            service.update_status("missing", OrderStatus.PAID)

    def test_order_loaded_from_repository_gets_machine(
        self, service, repository, order, paid_metadata
    ):
        repository.save(order)

        result = service.update_status(order.id, OrderStatus.PAID, paid_metadata)

        assert result.success is True
        assert service.history(order.id)[0].to_status == OrderStatus.PAID

    def test_same_order_shares_one_lock(self, service, lock_provider, dto, paid_metadata):
        order = service.create_order(dto)
        token = lock_provider.acquire(f"order:{order.id}")

        result = service.update_status(order.id, OrderStatus.PAID, paid_metadata)

        assert result.error_code == "OrderLocked"
        lock_provider.release(f"order:{order.id}", token)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_get_order_not_found(self, service):
        with pytest.raises(OrderNotFound, match="missing"):
            service.get_order("missing")

    def test_history_lists_transitions(self, service, dto, paid_metadata):
        order = service.create_order(dto)
        service.update_status(order.id, OrderStatus.PAID, paid_metadata)
        service.update_status(order.id, OrderStatus.SHIPPED)

        assert [r.to_status for r in service.history(order.id)] == [
            OrderStatus.PAID,
            OrderStatus.SHIPPED,
        ]

    def test_list_orders_filters(self, service, dto, paid_metadata):
        first = service.create_order(dto)
        service.create_order(dto)
        service.update_status(first.id, OrderStatus.PAID, paid_metadata)

        paid = service.list_orders({"status": OrderStatus.PAID})

        assert [o.id for o in paid] == [first.id]
