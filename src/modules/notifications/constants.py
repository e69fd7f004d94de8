"""Notification domain constants."""

from enum import Enum


class NotificationChannel(str, Enum):
    SOCKET = "SOCKET"
    TELEGRAM = "TELEGRAM"
    EMAIL = "EMAIL"
    PUSH = "PUSH"

    def __str__(self) -> str:
        return self.value


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value


class NotificationType(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_PAID = "ORDER_PAID"
    ORDER_REJECTED = "ORDER_REJECTED"
    ORDER_SHIPPED = "ORDER_SHIPPED"
    ORDER_DELIVERED = "ORDER_DELIVERED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    PAYMENT_PROOF_UPLOADED = "PAYMENT_PROOF_UPLOADED"
    LOW_STOCK = "LOW_STOCK"
    SYSTEM_ERROR = "SYSTEM_ERROR"

    def __str__(self) -> str:
        return self.value


# Lower rank runs first when a worker lane is saturated.
PRIORITY_RANK: dict[NotificationPriority, int] = {
    NotificationPriority.CRITICAL: 0,
    NotificationPriority.HIGH: 1,
    NotificationPriority.MEDIUM: 2,
    NotificationPriority.LOW: 3,
}

URGENT_PRIORITIES = frozenset({NotificationPriority.HIGH, NotificationPriority.CRITICAL})
