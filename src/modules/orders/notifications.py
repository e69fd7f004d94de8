"""Customer notifications describing committed order transitions."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from modules.notifications.constants import NotificationPriority, NotificationType
from modules.notifications.dtos import NotificationPayload
from modules.orders.constants import OrderStatus
from modules.orders.dtos import TransitionRecord
from modules.orders.models import Order

# target status -> (type, priority, title)
_TEMPLATES = {
    OrderStatus.PAID: (
        NotificationType.ORDER_PAID,
        NotificationPriority.HIGH,
        "Payment confirmed",
    ),
    OrderStatus.REJECTED: (
        NotificationType.ORDER_REJECTED,
        NotificationPriority.HIGH,
        "Order rejected",
    ),
    OrderStatus.SHIPPED: (
        NotificationType.ORDER_SHIPPED,
        NotificationPriority.MEDIUM,
        "Order shipped",
    ),
    OrderStatus.DELIVERED: (
        NotificationType.ORDER_DELIVERED,
        NotificationPriority.LOW,
        "Order delivered",
    ),
    OrderStatus.CANCELLED: (
        NotificationType.ORDER_CANCELLED,
        NotificationPriority.MEDIUM,
        "Order cancelled",
    ),
}

_PASSTHROUGH_KEYS = ("reason", "tracking_number", "carrier")


def _message(order: Order, status: OrderStatus, metadata: Mapping[str, Any]) -> str:
    reason = metadata.get("reason")
    if status == OrderStatus.PAID:
        return f"Your payment for order #{order.id} is confirmed. The order will be processed shortly."
    if status == OrderStatus.REJECTED:
        return f"Your order #{order.id} was rejected. Reason: {reason}"
    if status == OrderStatus.SHIPPED:
        tracking = metadata.get("tracking_number") or metadata.get("trackingNumber")
        suffix = f". Tracking number: {tracking}" if tracking else ""
        return f"Your order #{order.id} has been shipped{suffix}"
    if status == OrderStatus.DELIVERED:
        return f"Your order #{order.id} has been delivered"
    if reason:
        return f"Your order #{order.id} was cancelled. Reason: {reason}"
    return f"Your order #{order.id} was cancelled"


def build_transition_payload(
    order: Order,
    record: TransitionRecord,
    channels: Sequence[str],
) -> Optional[NotificationPayload]:
    """Describe *record* to the order's customer.

    Returns ``None`` for statuses that have no customer-facing message.
    """
    template = _TEMPLATES.get(record.to_status)
    if template is None:
        return None
    notification_type, priority, title = template

    data: Dict[str, Any] = {
        "order_id": order.id,
        "store_id": order.store_id,
        "from_status": record.from_status.value,
        "to_status": record.to_status.value,
    }
    for key in _PASSTHROUGH_KEYS:
        if record.metadata.get(key) is not None:
            data[key] = record.metadata[key]

    return NotificationPayload(
        title=title,
        message=_message(order, record.to_status, record.metadata),
        type=notification_type,
        priority=priority,
        recipients=[order.customer_id],
        channels=list(channels),
        data=data,
        store_id=order.store_id,
        order_id=order.id,
    )
