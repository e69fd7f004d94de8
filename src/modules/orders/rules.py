"""Order transition rules.

The table below is the complete set of allowed status changes; every
pair not listed is rejected, including every exit from a terminal
state.  Each rule may carry a metadata schema (a pydantic model whose
validation is the rule's pre-condition) and an inventory action that
runs after the transition commits.

Metadata keys are accepted in snake_case and camelCase so requests
from the admin panel (``adminId``) and from Python callers
(``admin_id``) validate the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from modules.orders.constants import InventoryAction, OrderStatus

MetadataValidator = Callable[[Mapping[str, Any]], Optional[str]]


# ---------------------------------------------------------------------------
# Metadata schemas
# ---------------------------------------------------------------------------


class _TransitionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)


class PaymentConfirmationMetadata(_TransitionMetadata):
    """PENDING_ADMIN -> PAID: the approving admin and the payment proof."""

    admin_id: str = Field(
        min_length=1, validation_alias=AliasChoices("admin_id", "adminId")
    )
    payment_proof: str = Field(
        min_length=1, validation_alias=AliasChoices("payment_proof", "paymentProof")
    )


class RejectionMetadata(_TransitionMetadata):
    """PENDING_ADMIN -> REJECTED: why the payment was refused."""

    reason: str = Field(min_length=1)


def schema_validator(schema: Type[BaseModel]) -> MetadataValidator:
    """Build a pure ``metadata -> error | None`` validator from *schema*."""

    def validate(metadata: Mapping[str, Any]) -> Optional[str]:
        try:
            schema.model_validate(dict(metadata))
        except ValidationError as exc:
            fields = sorted(
                {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            )
            return f"metadata requires {', '.join(fields)}"
        return None

    validate.__name__ = f"validate_{schema.__name__}"
    return validate


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransitionRule:
    from_status: OrderStatus
    to_status: OrderStatus
    validator: Optional[MetadataValidator] = None
    inventory_action: InventoryAction = InventoryAction.NONE

    def validate(self, metadata: Mapping[str, Any]) -> Optional[str]:
        if self.validator is None:
            return None
        return self.validator(metadata)


_RULES: List[TransitionRule] = [
    TransitionRule(
        OrderStatus.PENDING_ADMIN,
        OrderStatus.PAID,
        validator=schema_validator(PaymentConfirmationMetadata),
        inventory_action=InventoryAction.RESERVE,
    ),
    TransitionRule(
        OrderStatus.PENDING_ADMIN,
        OrderStatus.REJECTED,
        validator=schema_validator(RejectionMetadata),
        inventory_action=InventoryAction.RESTORE,
    ),
    TransitionRule(OrderStatus.PAID, OrderStatus.SHIPPED),
    TransitionRule(
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
        inventory_action=InventoryAction.RESTORE,
    ),
    TransitionRule(OrderStatus.SHIPPED, OrderStatus.DELIVERED),
]

TRANSITION_RULES: Dict[Tuple[OrderStatus, OrderStatus], TransitionRule] = {
    (rule.from_status, rule.to_status): rule for rule in _RULES
}


def get_rule(
    from_status: OrderStatus, to_status: OrderStatus
) -> Optional[TransitionRule]:
    return TRANSITION_RULES.get((from_status, to_status))


def entry_validator(status: OrderStatus) -> Optional[MetadataValidator]:
    """Return the validator of the rule leading into *status*, if any.

    Self-transitions (idempotent retries) re-check the metadata that
    was required to reach the status in the first place.
    """
    for rule in _RULES:
        if rule.to_status == status and rule.validator is not None:
            return rule.validator
    return None


def get_available_transitions(status: OrderStatus) -> List[OrderStatus]:
    """Statuses reachable from *status* in one step (self excluded)."""
    return [rule.to_status for rule in _RULES if rule.from_status == status]


def can_transition_to(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    """``True`` only for edges of the rule table."""
    return (from_status, to_status) in TRANSITION_RULES


def validate_order_transition(
    from_status: OrderStatus, to_status: OrderStatus
) -> bool:
    """``True`` for table edges and for staying in the same status."""
    return from_status == to_status or can_transition_to(from_status, to_status)
