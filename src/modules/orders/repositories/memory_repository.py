"""In-memory implementation of the Order repository."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from modules.orders.constants import OrderStatus
from modules.orders.dtos import TransitionRecord
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository


class InMemoryOrderRepository(IOrderRepository):
    """Thread-safe dict-backed store of orders and their history."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}
        self._history: Dict[str, List[TransitionRecord]] = {}

    def get_by_id(self, id: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(id)

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        filters = filters or {}
        with self._lock:
            orders = list(self._orders.values())
        return [
            order
            for order in orders
            if all(getattr(order, field) == value for field, value in filters.items())
        ]

    def save(self, entity: Order) -> Order:
        with self._lock:
            self._orders[entity.id] = entity
            self._history.setdefault(entity.id, [])
        return entity

    def delete(self, id: str) -> bool:
        with self._lock:
            self._history.pop(id, None)
            return self._orders.pop(id, None) is not None

    def update_status(
        self, order_id: str, status: OrderStatus, record: TransitionRecord
    ) -> None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            self._orders[order_id] = order.with_status(status)
            self._history[order_id].append(record)

    def get_history(self, order_id: str) -> List[TransitionRecord]:
        with self._lock:
            return list(self._history.get(order_id, []))
