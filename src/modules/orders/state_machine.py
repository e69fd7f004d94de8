"""Order state machine.

One instance owns one order for its lifetime.  ``transition_to`` is
the only way the order's status changes:

1. parse the target status;
2. take the per-order lock without waiting (a concurrent attempt
   fails with ``OrderLocked``);
3. check the rule table and the rule's metadata schema;
4. persist through the order repository, if one is injected;
5. commit in memory and append the audit record;
6. release the lock, then run side effects (inventory hook, customer
   notification).  Side-effect failures are logged and never undo
   the committed transition.

Validation failures are returned as ``TransitionResult(success=False)``
and leave the order untouched.
"""

from __future__ import annotations

from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from config import settings
from modules.notifications.dispatcher import NotificationDispatcher
from modules.orders.constants import (
    ORDER_LOCK_PREFIX,
    TERMINAL_STATES,
    InventoryAction,
    OrderStatus,
)
from modules.orders.dtos import TransitionRecord, TransitionResult
from modules.orders.exceptions import (
    InvalidMetadata,
    InvalidStatus,
    InvalidTransition,
    OrderLocked,
    OrderPersistenceError,
    OrderStateError,
)
from modules.orders.inventory import IInventoryHook
from modules.orders.models import Order
from modules.orders.notifications import build_transition_payload
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.rules import (
    TransitionRule,
    entry_validator,
    get_available_transitions,
    get_rule,
)
from shared.domain.locks import ILockProvider, LockUnavailable, single_flight
from shared.infrastructure.locks import InMemoryLockProvider

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStateMachine:
    """Authoritative status holder for a single order.

    Collaborators are injected and never owned: the inventory hook,
    dispatcher, repository and lock provider belong to the caller.
    """

    def __init__(
        self,
        order: Order,
        inventory_hook: Optional[IInventoryHook] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        repository: Optional[IOrderRepository] = None,
        lock_provider: Optional[ILockProvider] = None,
        notification_channels: Optional[Sequence[str]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order = order
        self._history: List[TransitionRecord] = []
        self._inventory_hook = inventory_hook
        self._dispatcher = dispatcher
        self._repository = repository
        self._locks = lock_provider or InMemoryLockProvider()
        self._notification_channels = list(
            notification_channels
            if notification_channels is not None
            else settings.ORDER_NOTIFICATION_CHANNELS
        )
        self._clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def order(self) -> Order:
        return self._order

    @property
    def current_status(self) -> OrderStatus:
        return self._order.status

    @property
    def history(self) -> Tuple[TransitionRecord, ...]:
        return tuple(self._history)

    @property
    def is_terminal(self) -> bool:
        return self._order.is_terminal

    @property
    def lock_key(self) -> str:
        return f"{ORDER_LOCK_PREFIX}{self._order.id}"

    def available_transitions(self) -> List[OrderStatus]:
        return get_available_transitions(self._order.status)

    def can_transition_to(self, target: Any) -> bool:
        try:
            status = _parse_status(target)
        except InvalidStatus:
            return False
        return get_rule(self._order.status, status) is not None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def transition_to(
        self, target: Any, metadata: Optional[Mapping[str, Any]] = None
    ) -> TransitionResult:
        """Move the order to *target*.

        Never raises for validation, lock or persistence failures; they
        come back as ``success=False`` with an error naming both the
        current and the requested status.
        """
        metadata = dict(metadata or {})
        current = self._order.status
        log = logger.bind(order_id=self._order.id, from_status=current.value)

        try:
            status = _parse_status(target)
        except InvalidStatus as exc:
            log.warning("order.invalid_status", target=str(target))
            return TransitionResult.failed(exc, from_status=current)

        log = log.bind(to_status=status.value)
        try:
            with single_flight(self._locks, self.lock_key):
                current = self._order.status
                record, rule = self._commit(current, status, metadata)
        except LockUnavailable:
            log.warning("order.transition_locked")
            return TransitionResult.failed(
                OrderLocked(
                    f"Cannot transition order {self._order.id} from {current} to "
                    f"{status}: another transition is in progress."
                ),
                from_status=current,
                to_status=status,
            )
        except OrderStateError as exc:
            log.warning("order.transition_rejected", error=str(exc))
            return TransitionResult.failed(exc, from_status=current, to_status=status)

        if record is None:
            log.info("order.transition_idempotent")
            return TransitionResult(success=True, from_status=current, to_status=status)

        log.info("order.status_updated")
        self._sync_inventory(rule)
        notification = self._notify(record)
        return TransitionResult(
            success=True,
            from_status=record.from_status,
            to_status=record.to_status,
            notification=notification,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(
        self, current: OrderStatus, target: OrderStatus, metadata: Dict[str, Any]
    ) -> Tuple[Optional[TransitionRecord], Optional[TransitionRule]]:
        """Validate and apply the transition while the lock is held.

        Returns ``(None, None)`` for an accepted self-transition.
        Terminal states accept nothing, not even themselves.

        Raises:
            InvalidTransition, InvalidMetadata, OrderPersistenceError
        """
        if current in TERMINAL_STATES:
            raise InvalidTransition(
                f"Cannot transition from {current} to {target}: "
                f"{current} is a terminal status."
            )

        if target == current:
            validator = entry_validator(current)
            error = validator(metadata) if validator else None
            if error:
                raise InvalidMetadata(
                    f"Cannot transition from {current} to {target}: {error}."
                )
            return None, None

        rule = get_rule(current, target)
        if rule is None:
            raise InvalidTransition(f"Cannot transition from {current} to {target}.")

        error = rule.validate(metadata)
        if error:
            raise InvalidMetadata(f"Cannot transition from {current} to {target}: {error}.")

        record = TransitionRecord(
            from_status=current,
            to_status=target,
            metadata=metadata,
            occurred_at=self._clock(),
        )
        if self._repository is not None:
            try:
                self._repository.update_status(self._order.id, target, record)
            except Exception as exc:
                raise OrderPersistenceError(
                    f"Cannot transition from {current} to {target}: {exc}"
                ) from exc

        self._order = self._order.with_status(target)
        self._history.append(record)
        return record, rule

    def _sync_inventory(self, rule: TransitionRule) -> None:
        action = rule.inventory_action
        if action == InventoryAction.NONE or self._inventory_hook is None:
            return
        log = logger.bind(order_id=self._order.id, action=action.value)
        try:
            if action == InventoryAction.RESERVE:
                self._inventory_hook.reserve(self._order.id, self._order.items)
            else:
                self._inventory_hook.restore(self._order.id, self._order.items)
        except Exception as exc:
            log.error("inventory.sync_failed", error=str(exc), exc_info=True)
        else:
            log.info("inventory.synced")

    def _notify(self, record: TransitionRecord) -> Optional[Future]:
        if self._dispatcher is None or not self._notification_channels:
            return None
        try:
            payload = build_transition_payload(
                self._order, record, self._notification_channels
            )
            if payload is None:
                return None
            return self._dispatcher.dispatch(payload)
        except Exception as exc:
            logger.error(
                "order.notification_failed",
                order_id=self._order.id,
                to_status=record.to_status.value,
                error=str(exc),
            )
            return None


def _parse_status(value: Any) -> OrderStatus:
    """Raises ``InvalidStatus`` for anything outside ``OrderStatus``."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatus(
            f"Unknown order status {value!r}; expected one of "
            f"{', '.join(s.value for s in OrderStatus)}."
        ) from None
