"""Order repository interface.

Extends ``IRepository[Order]`` with the status update the state
machine performs while it holds the order lock.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.constants import OrderStatus
    from modules.orders.dtos import TransitionRecord
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate."""

    @abstractmethod
    def update_status(
        self, order_id: str, status: OrderStatus, record: TransitionRecord
    ) -> None:
        """Persist a status change and its audit record.

        Must raise if the change could not be stored; the state machine
        then reports the transition as failed and keeps the old status.
        """
