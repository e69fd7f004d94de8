"""Channel adapter registry, mapping channel tags to adapters.

Adapters are injected by whoever builds the dispatcher; the registry
never creates them and never owns their lifecycle.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from modules.notifications.channels.base import ChannelAdapter
from modules.notifications.exceptions import UnrecognizedChannel

ChannelTag = Union[str, Enum]


def _key(channel: ChannelTag) -> str:
    return channel.value if isinstance(channel, Enum) else str(channel)


class ChannelRegistry:
    def __init__(self, adapters: Iterable[ChannelAdapter] = ()) -> None:
        self._adapters: Dict[str, ChannelAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ChannelAdapter, channel: Optional[ChannelTag] = None) -> None:
        """Register *adapter* under *channel* (defaults to ``adapter.channel``)."""
        self._adapters[_key(channel if channel is not None else adapter.channel)] = adapter

    def get(self, channel: ChannelTag) -> ChannelAdapter:
        """Return the adapter for *channel*.

        Raises:
            UnrecognizedChannel: nothing is registered under the tag.
        """
        try:
            return self._adapters[_key(channel)]
        except KeyError:
            raise UnrecognizedChannel(f"Unknown channel type: {_key(channel)}") from None

    def __contains__(self, channel: ChannelTag) -> bool:
        return _key(channel) in self._adapters

    @property
    def channels(self) -> List[str]:
        return list(self._adapters)
