"""Collaborator contracts consumed by the notification dispatcher.

- ``INotificationAuditRepository``: best-effort audit trail of sent
  notifications.  Failures are logged by the dispatcher, never raised.
- ``IStoreDirectory``: resolves a store to the people who run it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.notifications.dtos import NotificationPayload


class StoreContacts(BaseModel):
    """Owner and admins of a store."""

    model_config = ConfigDict(frozen=True)

    store_id: str
    name: str = ""
    owner_id: str
    admin_ids: List[str] = Field(default_factory=list)

    @property
    def recipients(self) -> List[str]:
        return list(dict.fromkeys([self.owner_id, *self.admin_ids]))


class INotificationAuditRepository(ABC):
    @abstractmethod
    def record(self, payload: NotificationPayload) -> None:
        """Store one audit row per recipient of *payload*."""


class IStoreDirectory(ABC):
    @abstractmethod
    def get_store(self, store_id: str) -> Optional[StoreContacts]:
        """Return the store's contacts, or ``None`` if it does not exist."""

    @abstractmethod
    def list_system_owners(self) -> List[str]:
        """Return the ids of active platform owners."""
