"""Notification domain exceptions.

``InvalidPayload`` and ``StoreNotFound`` are raised to the caller
before any delivery is attempted.  ``ChannelDeliveryFailure`` and
``UnrecognizedChannel`` never reach the caller: the first becomes a
``success=False`` result, the second makes the dispatcher skip the
channel.
"""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification failures."""


class InvalidPayload(NotificationError, ValueError):
    """The payload is missing a title, message, recipients or channels."""


class StoreNotFound(NotificationError):
    """The store whose owner and admins should be notified does not exist."""


class UnrecognizedChannel(NotificationError):
    """No adapter is registered for the channel tag."""


class ChannelDeliveryFailure(NotificationError):
    """A single (recipient, channel) delivery attempt failed."""

    def __init__(self, channel: str, recipient_id: str, reason: str) -> None:
        self.channel = channel
        self.recipient_id = recipient_id
        self.reason = reason
        super().__init__(f"{channel} delivery to {recipient_id} failed: {reason}")
