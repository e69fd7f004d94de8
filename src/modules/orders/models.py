"""Order and OrderItem models.

Both are immutable: the state machine is the only component that
produces an Order with a different status, and it does so by copy
(``Order.with_status``).  External code may read any field but can
never assign one.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import INITIAL_STATUS, TERMINAL_STATES, OrderStatus


class OrderItem(BaseModel):
    """Line item: product (and optional variant) with a positive quantity."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    variant_id: Optional[str] = None
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def stock_key(self) -> Tuple[str, Optional[str]]:
        return (self.product_id, self.variant_id)


class Order(BaseModel):
    """Order aggregate as owned by a state machine instance."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    status: OrderStatus = INITIAL_STATUS
    items: Tuple[OrderItem, ...] = ()
    total_amount: Decimal = Decimal("0.00")
    currency: str = "USD"
    customer_id: str
    store_id: str

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def with_status(self, status: OrderStatus) -> Order:
        return self.model_copy(update={"status": status})

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"
