"""Notification service layer (Use Cases).

Ready-made notifications for recurring admin events.  Store-scoped
helpers resolve recipients through the dispatcher; unlike
``NotificationDispatcher.send_to_store`` they treat a missing store
as "nobody to notify" and return no results.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog

from modules.notifications.constants import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from modules.notifications.dispatcher import NotificationDispatcher
from modules.notifications.dtos import NotificationPayload, NotificationResult, StoreNotification
from modules.notifications.exceptions import StoreNotFound
from modules.notifications.repositories.interfaces import IStoreDirectory

logger = structlog.get_logger(__name__)

ADMIN_CHANNELS = [
    NotificationChannel.EMAIL,
    NotificationChannel.TELEGRAM,
    NotificationChannel.SOCKET,
]


class NotificationService:
    """Application service for admin-facing notifications.

    Receives the dispatcher and store directory via constructor
    injection.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        store_directory: IStoreDirectory,
    ) -> None:
        self._dispatcher = dispatcher
        self._store_directory = store_directory

    def notify_order_created(
        self,
        order_id: str,
        store_id: str,
        customer_name: Optional[str] = None,
        total_amount: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ) -> List[NotificationResult]:
        data: Dict[str, Any] = {"order_id": order_id, "customer_name": customer_name}
        if total_amount is not None:
            data.update(total_amount=str(total_amount), currency=currency)
        return self._send_to_store(
            store_id,
            StoreNotification(
                title="New order",
                message=(
                    f"New order {order_id} from {customer_name or 'a customer'}. "
                    "Payment confirmation is required."
                ),
                type=NotificationType.ORDER_CREATED,
                priority=NotificationPriority.HIGH,
                channels=ADMIN_CHANNELS,
                data=data,
                order_id=order_id,
            ),
        )

    def notify_payment_proof_uploaded(
        self, order_id: str, store_id: str, customer_name: Optional[str] = None
    ) -> List[NotificationResult]:
        return self._send_to_store(
            store_id,
            StoreNotification(
                title="Payment proof uploaded",
                message=(
                    f"{customer_name or 'The customer'} uploaded a payment proof for "
                    f"order {order_id}. Review and confirmation are required."
                ),
                type=NotificationType.PAYMENT_PROOF_UPLOADED,
                priority=NotificationPriority.HIGH,
                channels=ADMIN_CHANNELS,
                data={"order_id": order_id, "customer_name": customer_name},
                order_id=order_id,
            ),
        )

    def notify_low_stock(
        self,
        store_id: str,
        product_name: str,
        current_stock: int,
        threshold: int,
    ) -> List[NotificationResult]:
        return self._send_to_store(
            store_id,
            StoreNotification(
                title=f"Low stock: {product_name}",
                message=f'"{product_name}" is running out. {current_stock} left.',
                type=NotificationType.LOW_STOCK,
                priority=NotificationPriority.MEDIUM,
                channels=[NotificationChannel.EMAIL, NotificationChannel.SOCKET],
                data={
                    "product_name": product_name,
                    "current_stock": current_stock,
                    "threshold": threshold,
                },
            ),
        )

    def notify_system_error(
        self, error: str, details: Optional[Dict[str, Any]] = None
    ) -> List[NotificationResult]:
        owners = self._store_directory.list_system_owners()
        if not owners:
            logger.warning("notification.no_system_owners", error=error)
            return []
        return self._dispatcher.send(
            NotificationPayload(
                title="System error",
                message=f"An error occurred in the system: {error}",
                type=NotificationType.SYSTEM_ERROR,
                priority=NotificationPriority.CRITICAL,
                channels=[NotificationChannel.EMAIL, NotificationChannel.TELEGRAM],
                recipients=owners,
                data={"error": error, "details": details or {}},
            )
        )

    def _send_to_store(
        self, store_id: str, notification: StoreNotification
    ) -> List[NotificationResult]:
        try:
            return self._dispatcher.send_to_store(store_id, notification)
        except StoreNotFound:
            logger.warning(
                "notification.skipped_unknown_store",
                store_id=store_id,
                type=notification.type.value,
            )
            return []
