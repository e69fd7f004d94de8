"""Order domain constants.

Defines the status enumeration, terminal states and inventory
actions used by the order state machine.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING_ADMIN = "PENDING_ADMIN"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


class InventoryAction(str, Enum):
    NONE = "NONE"
    RESERVE = "RESERVE"
    RESTORE = "RESTORE"


INITIAL_STATUS = OrderStatus.PENDING_ADMIN

TERMINAL_STATES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.REJECTED, OrderStatus.CANCELLED}
)

ORDER_LOCK_PREFIX = "order:"
