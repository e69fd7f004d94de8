import pytest

from modules.orders.exceptions import InsufficientStock
from modules.orders.inventory import InMemoryInventoryHook
from modules.orders.models import OrderItem

pytestmark = pytest.mark.unit


class TestReserve:
    def test_reserve_decrements_stock(self, inventory_hook, order):
        inventory_hook.reserve(order.id, order.items)

        assert inventory_hook.available("prod-1") == 8
        assert inventory_hook.available("prod-2", "blue") == 4
        assert inventory_hook.is_reserved(order.id) is True

    def test_reserve_is_all_or_nothing(self, inventory_hook):
        items = [
            OrderItem(product_id="prod-1", quantity=1),
            OrderItem(product_id="prod-2", variant_id="blue", quantity=50),
        ]

        with pytest.raises(InsufficientStock, match="prod-2/blue"):
            inventory_hook.reserve("ord-9", items)

        assert inventory_hook.available("prod-1") == 10
        assert inventory_hook.is_reserved("ord-9") is False

    def test_repeat_reserve_is_ignored(self, inventory_hook, order):
        inventory_hook.reserve(order.id, order.items)
        inventory_hook.reserve(order.id, order.items)
        assert inventory_hook.available("prod-1") == 8

    def test_lines_for_same_product_are_summed(self):
        hook = InMemoryInventoryHook({("p", None): 3})
        items = [OrderItem(product_id="p", quantity=2), OrderItem(product_id="p", quantity=2)]

        with pytest.raises(InsufficientStock, match="requested 4, available 3"):
            hook.reserve("o", items)


class TestRestore:
    def test_restore_returns_reserved_stock(self, inventory_hook, order):
        inventory_hook.reserve(order.id, order.items)
        inventory_hook.restore(order.id, order.items)

        assert inventory_hook.available("prod-1") == 10
        assert inventory_hook.available("prod-2", "blue") == 5
        assert inventory_hook.is_reserved(order.id) is False

    def test_restore_without_reservation_is_noop(self, inventory_hook, order):
        inventory_hook.restore(order.id, order.items)
        assert inventory_hook.available("prod-1") == 10

    def test_restore_twice_only_returns_once(self, inventory_hook, order):
        inventory_hook.reserve(order.id, order.items)
        inventory_hook.restore(order.id, order.items)
        inventory_hook.restore(order.id, order.items)
        assert inventory_hook.available("prod-1") == 10

    def test_reserve_after_restore_takes_nothing(self, inventory_hook, order):
        inventory_hook.restore(order.id, order.items)
        inventory_hook.reserve(order.id, order.items)

        assert inventory_hook.available("prod-1") == 10
        assert inventory_hook.available("prod-2", "blue") == 5
        assert inventory_hook.is_reserved(order.id) is False

    def test_released_order_does_not_affect_others(self, inventory_hook, order):
        inventory_hook.restore(order.id, order.items)
        inventory_hook.reserve("ord-2", order.items)

        assert inventory_hook.available("prod-1") == 8
        assert inventory_hook.is_reserved("ord-2") is True
