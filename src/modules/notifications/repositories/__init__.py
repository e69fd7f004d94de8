"""Notification repositories package."""

from modules.notifications.repositories.interfaces import (
    INotificationAuditRepository,
    IStoreDirectory,
    StoreContacts,
)
from modules.notifications.repositories.memory_repository import (
    InMemoryNotificationAuditRepository,
    InMemoryStoreDirectory,
)

__all__ = [
    "INotificationAuditRepository",
    "IStoreDirectory",
    "InMemoryNotificationAuditRepository",
    "InMemoryStoreDirectory",
    "StoreContacts",
]
