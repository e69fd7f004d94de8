"""Channel adapters package."""

from modules.notifications.channels.base import ChannelAdapter, DeliveryOutcome
from modules.notifications.channels.memory import (
    InMemoryChannelAdapter,
    InMemoryEmailAdapter,
    InMemoryPushAdapter,
    InMemorySocketAdapter,
    InMemoryTelegramAdapter,
    default_adapters,
)
from modules.notifications.channels.registry import ChannelRegistry

__all__ = [
    "ChannelAdapter",
    "ChannelRegistry",
    "DeliveryOutcome",
    "InMemoryChannelAdapter",
    "InMemoryEmailAdapter",
    "InMemoryPushAdapter",
    "InMemorySocketAdapter",
    "InMemoryTelegramAdapter",
    "default_adapters",
]
