"""Channel adapter port: abstract interface for one delivery transport."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DeliveryOutcome:
    """What an adapter reports for a single delivery attempt."""

    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def delivered(cls, message_id: Optional[str] = None) -> DeliveryOutcome:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> DeliveryOutcome:
        return cls(success=False, error=error)


class ChannelAdapter(ABC):
    """Delivers to exactly one transport.

    Implementations must not raise: any internal failure, including
    their own per-attempt timeout, is reported as
    ``DeliveryOutcome.failed``.
    """

    channel: str

    @abstractmethod
    def attempt_deliver(
        self,
        recipient_id: str,
        title: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DeliveryOutcome:
        """Attempt delivery of one notification to one recipient."""
        ...
