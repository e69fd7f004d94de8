"""Unit tests for Order DTOs.

Covers:
- CreateOrderDTO: items list validation, frozen immutability.
- TransitionResult: failure factory and dump shape.
"""

from __future__ import annotations

from concurrent.futures import Future

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, TransitionResult
from modules.orders.exceptions import InvalidTransition
from modules.orders.models import OrderItem

pytestmark = pytest.mark.unit


class TestCreateOrderDTO:
    def test_valid_dto(self):
        dto = CreateOrderDTO(
            customer_id="c",
            store_id="s",
            items=[OrderItem(product_id="p", quantity=2)],
        )
        assert dto.currency == "USD"
        assert dto.items[0].quantity == 2

    def test_items_required(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(customer_id="c", store_id="s", items=[])

    def test_frozen(self):
        dto = CreateOrderDTO(
            customer_id="c", store_id="s", items=[{"product_id": "p", "quantity": 1}]
        )
        with pytest.raises(ValidationError):
            dto.customer_id = "other"


class TestTransitionResult:
    def test_failed_carries_error_code(self):
        result = TransitionResult.failed(
            InvalidTransition("Cannot transition from PAID to PENDING_ADMIN."),
            from_status=OrderStatus.PAID,
            to_status=OrderStatus.PENDING_ADMIN,
        )

        assert result.success is False
        assert result.error_code == "InvalidTransition"
        assert result.error == "Cannot transition from PAID to PENDING_ADMIN."

    def test_notification_future_excluded_from_dump(self):
        result = TransitionResult(
            success=True,
            from_status=OrderStatus.PAID,
            to_status=OrderStatus.SHIPPED,
            notification=Future(),
        )

        assert result.model_dump() == {
            "success": True,
            "from_status": OrderStatus.PAID,
            "to_status": OrderStatus.SHIPPED,
            "error": None,
            "error_code": None,
        }
