"""Order service layer (Use Cases).

Orchestrates order creation and status management.  Every status
change goes through the order's ``OrderStateMachine``; the service
keeps one machine per order so concurrent requests for the same order
race on the same lock.

Business rules enforced:
- New orders start in PENDING_ADMIN and the store's admins are told.
- Status transitions are validated by the state machine's rule table.
- History is recorded on every committed status change.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import structlog

from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order
from modules.orders.state_machine import OrderStateMachine
from shared.infrastructure.locks import build_lock_provider

if TYPE_CHECKING:
    from modules.notifications.dispatcher import NotificationDispatcher
    from modules.notifications.services import NotificationService
    from modules.orders.dtos import CreateOrderDTO, TransitionRecord, TransitionResult
    from modules.orders.inventory import IInventoryHook
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.locks import ILockProvider

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory_hook: Optional[IInventoryHook] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        notification_service: Optional[NotificationService] = None,
        lock_provider: Optional[ILockProvider] = None,
    ) -> None:
        self._order_repo = order_repository
        self._inventory_hook = inventory_hook
        self._dispatcher = dispatcher
        self._notifications = notification_service
        self._locks = lock_provider or build_lock_provider()
        self._machines: Dict[str, OrderStateMachine] = {}
        self._machines_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Persist a new PENDING_ADMIN order and notify the store.

        A failing store notification is logged; the order is still
        created.
        """
        order = Order(
            customer_id=dto.customer_id,
            store_id=dto.store_id,
            items=tuple(dto.items),
            total_amount=dto.total_amount,
            currency=dto.currency,
        )
        log = logger.bind(order_id=order.id, store_id=order.store_id)
        self._order_repo.save(order)
        self._machine_for(order)
        log.info("order.created", items=len(order.items))

        if self._notifications is not None:
            try:
                self._notifications.notify_order_created(
                    order_id=order.id,
                    store_id=order.store_id,
                    customer_name=dto.customer_name,
                    total_amount=order.total_amount,
                    currency=order.currency,
                )
            except Exception as exc:
                log.error("order.created_notification_failed", error=str(exc))
        return order

    def update_status(
        self,
        order_id: str,
        target: Any,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> TransitionResult:
        """Transition an order to *target*.

        Validation, lock and persistence failures come back inside the
        result.

        Raises:
            OrderNotFound: order does not exist.
        """
        machine = self._machine_for(self.get_order(order_id))
        return machine.transition_to(target, metadata)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        with self._machines_lock:
            machine = self._machines.get(order_id)
        if machine is not None:
            return machine.order
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    def history(self, order_id: str) -> List[TransitionRecord]:
        """Committed transitions of the order, oldest first.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        return list(self._machine_for(self.get_order(order_id)).history)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _machine_for(self, order: Order) -> OrderStateMachine:
        with self._machines_lock:
            machine = self._machines.get(order.id)
            if machine is None:
                machine = OrderStateMachine(
                    order,
                    inventory_hook=self._inventory_hook,
                    dispatcher=self._dispatcher,
                    repository=self._order_repo,
                    lock_provider=self._locks,
                )
                self._machines[order.id] = machine
            return machine
