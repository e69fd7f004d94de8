"""Order domain exceptions.

State-machine validation errors are returned inside a
``TransitionResult`` rather than raised to the caller; the classes
still exist so results carry a stable ``error_code`` and so the
service layer can raise the lookup errors (``OrderNotFound``).
"""

from __future__ import annotations


class OrderStateError(Exception):
    """Base class for failures that leave the order unchanged."""


class InvalidStatus(OrderStateError):
    """The requested target is not a member of ``OrderStatus``."""


class InvalidTransition(OrderStateError):
    """No rule exists for the requested (current, target) pair."""


class InvalidMetadata(OrderStateError):
    """The metadata required by the transition rule is missing or malformed."""


class OrderLocked(OrderStateError):
    """Another transition on the same order is in flight."""


class OrderPersistenceError(OrderStateError):
    """The order repository rejected the status update."""


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InsufficientStock(Exception):
    """Not enough stock to reserve the order items."""
