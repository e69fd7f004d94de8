"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation.
- ``TransitionRecord``: one entry of an order's audit trail.
- ``TransitionResult``: outcome of ``OrderStateMachine.transition_to``.
"""

from __future__ import annotations

from concurrent.futures import Future
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderStateError
from modules.orders.models import OrderItem

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates that ``items`` contains at least one line.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: str
    store_id: str
    items: List[OrderItem]
    total_amount: Decimal = Decimal("0.00")
    currency: str = "USD"
    customer_name: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[OrderItem]) -> List[OrderItem]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class TransitionRecord(BaseModel):
    """Append-only audit entry for a committed status change."""

    model_config = ConfigDict(frozen=True)

    from_status: OrderStatus
    to_status: OrderStatus
    metadata: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime


class TransitionResult(BaseModel):
    """Outcome of a transition attempt.

    ``notification`` is the future of the background fan-out started
    after a committed transition; callers may ignore it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    from_status: Optional[OrderStatus] = None
    to_status: Optional[OrderStatus] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    notification: Optional[Future] = Field(default=None, exclude=True, repr=False)

    @classmethod
    def failed(
        cls,
        exc: OrderStateError,
        from_status: Optional[OrderStatus] = None,
        to_status: Optional[OrderStatus] = None,
    ) -> TransitionResult:
        return cls(
            success=False,
            from_status=from_status,
            to_status=to_status,
            error=str(exc),
            error_code=type(exc).__name__,
        )
