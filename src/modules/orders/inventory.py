"""Inventory hook consumed by the order state machine.

``IInventoryHook`` is the collaborator contract: the state machine
calls ``reserve`` when an order is paid and ``restore`` when it is
rejected or cancelled.  Errors raised by a hook are caught and logged
by the state machine; they never undo a committed transition.

``InMemoryInventoryHook`` is the reference implementation.  It keeps
a stock ledger per (product, variant) and a reservation ledger per
order, so ``restore`` gives back exactly what was reserved and is a
no-op for orders that never reserved anything.  Once an order has been
restored it is released for good: a reserve that arrives afterwards
(a paid side effect overtaken by the cancel) takes nothing.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set, Tuple

import structlog

from modules.orders.exceptions import InsufficientStock
from modules.orders.models import OrderItem

logger = structlog.get_logger(__name__)

StockKey = Tuple[str, Optional[str]]


class IInventoryHook(ABC):
    """Inventory side effects of order transitions."""

    @abstractmethod
    def reserve(self, order_id: str, items: Sequence[OrderItem]) -> None:
        """Take *items* out of available stock for *order_id*."""

    @abstractmethod
    def restore(self, order_id: str, items: Sequence[OrderItem]) -> None:
        """Return stock previously reserved for *order_id*."""


class InMemoryInventoryHook(IInventoryHook):
    """Thread-safe in-memory stock ledger."""

    def __init__(self, stock: Optional[Mapping[StockKey, int]] = None) -> None:
        self._lock = threading.Lock()
        self._stock: Dict[StockKey, int] = dict(stock or {})
        self._reservations: Dict[str, Counter] = {}
        self._released: Set[str] = set()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reserve(self, order_id: str, items: Sequence[OrderItem]) -> None:
        """Reserve all items or none.

        Raises:
            InsufficientStock: a line asks for more than is available.
        """
        requested = _aggregate(items)
        log = logger.bind(order_id=order_id)
        with self._lock:
            if order_id in self._reservations:
                log.info("inventory.already_reserved")
                return
            if order_id in self._released:
                log.info("inventory.reserve_skipped", reason="order released")
                return
            for key, quantity in requested.items():
                available = self._stock.get(key, 0)
                if available < quantity:
                    raise InsufficientStock(
                        f"Product {_describe(key)}: requested {quantity}, "
                        f"available {available}."
                    )
            for key, quantity in requested.items():
                self._stock[key] = self._stock.get(key, 0) - quantity
            self._reservations[order_id] = requested
        log.info("inventory.reserved", lines=len(requested))

    def restore(self, order_id: str, items: Sequence[OrderItem]) -> None:
        log = logger.bind(order_id=order_id)
        with self._lock:
            reserved = self._reservations.pop(order_id, None)
            self._released.add(order_id)
            if reserved is None:
                log.info("inventory.restore_skipped", reason="nothing reserved")
                return
            for key, quantity in reserved.items():
                self._stock[key] = self._stock.get(key, 0) + quantity
        log.info("inventory.restored", lines=len(reserved))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def available(self, product_id: str, variant_id: Optional[str] = None) -> int:
        with self._lock:
            return self._stock.get((product_id, variant_id), 0)

    def is_reserved(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._reservations


def _aggregate(items: Iterable[OrderItem]) -> Counter:
    totals: Counter = Counter()
    for item in items:
        totals[item.stock_key] += item.quantity
    return totals


def _describe(key: StockKey) -> str:
    product_id, variant_id = key
    return f"{product_id}/{variant_id}" if variant_id else product_id
