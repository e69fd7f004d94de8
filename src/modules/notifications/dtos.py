"""Notification DTOs.

- ``StoreNotification``: title/message/type/priority/channels/data,
  addressed to a store's owner and admins.
- ``NotificationPayload``: the same plus an explicit recipient list.
- ``NotificationResult``: outcome of one (recipient, channel) attempt.

Payloads validate on construction; ``parse_payload`` turns a pydantic
``ValidationError`` into the domain ``InvalidPayload``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modules.notifications.constants import NotificationPriority, NotificationType
from modules.notifications.exceptions import InvalidPayload


def _tag(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class StoreNotification(BaseModel):
    """Notification content without recipients."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.ORDER_STATUS_CHANGED
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: List[str] = Field(min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    store_id: Optional[str] = None
    order_id: Optional[str] = None

    @field_validator("channels", mode="before")
    @classmethod
    def channel_tags(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [_tag(channel) for channel in v]
        return v

    @field_validator("channels")
    @classmethod
    def channels_unique(cls, v: List[str]) -> List[str]:
        if any(not channel for channel in v):
            raise ValueError("Channel tags must not be empty.")
        return _unique(v)


class NotificationPayload(StoreNotification):
    """A notification addressed to explicit recipients over explicit channels."""

    recipients: List[str] = Field(min_length=1)

    @field_validator("recipients")
    @classmethod
    def recipients_unique(cls, v: List[str]) -> List[str]:
        if any(not recipient for recipient in v):
            raise ValueError("Recipient ids must not be empty.")
        return _unique(v)

    @classmethod
    def for_recipients(
        cls, notification: StoreNotification, recipients: List[str]
    ) -> NotificationPayload:
        return parse_payload({**notification.model_dump(), "recipients": recipients})


class NotificationResult(BaseModel):
    """Outcome of one delivery attempt."""

    model_config = ConfigDict(frozen=True)

    recipient_id: str
    channel: str
    success: bool
    error: Optional[str] = None


PayloadInput = Union[NotificationPayload, Mapping[str, Any]]


def parse_payload(payload: PayloadInput) -> NotificationPayload:
    """Validate *payload* (model or mapping) into a ``NotificationPayload``.

    Raises:
        InvalidPayload: a required field is missing or empty.
    """
    data = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
    try:
        return NotificationPayload.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise InvalidPayload(
            f"Invalid notification payload: {', '.join(fields) or 'payload'}"
        ) from exc


def parse_store_notification(
    notification: Union[StoreNotification, Mapping[str, Any]],
) -> StoreNotification:
    """Validate a recipient-less notification.

    Raises:
        InvalidPayload: a required field is missing or empty.
    """
    if isinstance(notification, StoreNotification):
        data = notification.model_dump(exclude={"recipients"})
    else:
        data = {k: v for k, v in dict(notification).items() if k != "recipients"}
    try:
        return StoreNotification.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise InvalidPayload(
            f"Invalid notification payload: {', '.join(fields) or 'payload'}"
        ) from exc
