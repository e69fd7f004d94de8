"""In-memory implementations of the notification collaborators."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from modules.notifications.dtos import NotificationPayload
from modules.notifications.repositories.interfaces import (
    INotificationAuditRepository,
    IStoreDirectory,
    StoreContacts,
)


class InMemoryNotificationAuditRepository(INotificationAuditRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.rows: List[Dict[str, Any]] = []

    def record(self, payload: NotificationPayload) -> None:
        created_at = datetime.now(timezone.utc)
        rows = [
            {
                "user_id": recipient_id,
                "type": payload.type.value,
                "title": payload.title,
                "message": payload.message,
                "priority": payload.priority.value,
                "channels": list(payload.channels),
                "data": dict(payload.data),
                "store_id": payload.store_id,
                "order_id": payload.order_id,
                "created_at": created_at,
            }
            for recipient_id in payload.recipients
        ]
        with self._lock:
            self.rows.extend(rows)


class InMemoryStoreDirectory(IStoreDirectory):
    def __init__(
        self,
        stores: Iterable[StoreContacts] = (),
        system_owners: Iterable[str] = (),
    ) -> None:
        self._stores: Dict[str, StoreContacts] = {s.store_id: s for s in stores}
        self._system_owners = list(system_owners)

    def add(self, store: StoreContacts) -> None:
        self._stores[store.store_id] = store

    def get_store(self, store_id: str) -> Optional[StoreContacts]:
        return self._stores.get(store_id)

    def list_system_owners(self) -> List[str]:
        return list(self._system_owners)
