"""Notification dispatcher: fans one notification out to every
(recipient, channel) pair.

Guarantees:
- Invalid payloads and unknown stores fail before any attempt.
- Unrecognized channel tags are skipped (logged, not in results).
- Each channel has its own bounded worker lane, so a slow transport
  only queues its own work; priority orders work within a lane.
  No thread ever waits on a lane on behalf of a payload.
- One failing pair never prevents or alters the others: adapter
  exceptions become ``success=False`` results.
- The audit write runs on the background pool after the results are
  known.  It is best-effort with bounded retries and never delays or
  changes the returned results.

A dispatcher is an ordinary object: build one per configuration and
inject it where it is needed.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from concurrent.futures import wait as wait_futures
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

import structlog

from config import settings
from modules.notifications.channels.base import ChannelAdapter
from modules.notifications.channels.registry import ChannelRegistry
from modules.notifications.dtos import (
    NotificationPayload,
    NotificationResult,
    PayloadInput,
    StoreNotification,
    parse_payload,
    parse_store_notification,
)
from modules.notifications.exceptions import (
    ChannelDeliveryFailure,
    StoreNotFound,
    UnrecognizedChannel,
)
from modules.notifications.pool import PriorityWorkerPool
from modules.notifications.repositories.interfaces import (
    INotificationAuditRepository,
    IStoreDirectory,
)

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Multi-channel fan-out with per-pair failure isolation."""

    def __init__(
        self,
        channels: ChannelRegistry,
        audit_repository: Optional[INotificationAuditRepository] = None,
        store_directory: Optional[IStoreDirectory] = None,
        workers_per_channel: int = settings.NOTIFICATION_WORKERS_PER_CHANNEL,
        background_workers: int = settings.NOTIFICATION_BACKGROUND_WORKERS,
        audit_max_attempts: int = settings.NOTIFICATION_AUDIT_MAX_ATTEMPTS,
        audit_backoff_seconds: float = settings.NOTIFICATION_AUDIT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._channels = channels
        self._audit_repo = audit_repository
        self._store_directory = store_directory
        self._workers_per_channel = workers_per_channel
        self._audit_max_attempts = max(1, audit_max_attempts)
        self._audit_backoff_seconds = audit_backoff_seconds
        self._sleep = sleep
        self._lanes: Dict[str, PriorityWorkerPool] = {}
        self._lanes_lock = threading.Lock()
        self._closed = False
        self._pending_audits: Set[Future] = set()
        self._background = PriorityWorkerPool(
            "notifications-audit", max_workers=background_workers
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def send(self, payload: PayloadInput) -> List[NotificationResult]:
        """Deliver *payload* to every recipient over every recognized channel.

        Blocks until every attempt has resolved; the audit write is not
        waited for.  Results are ordered by channel, then recipient.

        Raises:
            InvalidPayload: title, message, recipients or channels missing.
        """
        return self.dispatch(payload).result()

    def send_to_store(
        self,
        store_id: str,
        notification: Union[StoreNotification, Mapping[str, Any]],
    ) -> List[NotificationResult]:
        """Send *notification* to the store's owner and admins.

        Raises:
            StoreNotFound: the store does not exist (nothing is sent).
            InvalidPayload: the notification content is invalid.
        """
        payload = self.resolve_store_payload(store_id, notification)
        return self.send(payload)

    def resolve_store_payload(
        self,
        store_id: str,
        notification: Union[StoreNotification, Mapping[str, Any]],
    ) -> NotificationPayload:
        """Address *notification* to the store's owner and admins.

        Raises:
            StoreNotFound: the store does not exist.
            InvalidPayload: the notification content is invalid.
        """
        content = parse_store_notification(notification)
        store = (
            self._store_directory.get_store(store_id)
            if self._store_directory is not None
            else None
        )
        if store is None:
            logger.warning("notification.store_not_found", store_id=store_id)
            raise StoreNotFound(f"Store not found: {store_id}")

        data = {**content.data, "store_id": store_id}
        return NotificationPayload.for_recipients(
            content.model_copy(update={"data": data, "store_id": store_id}),
            store.recipients,
        )

    def dispatch(self, payload: PayloadInput) -> Future:
        """Validate now, deliver in the background.

        Every attempt is queued on its channel's lane before this
        returns.  The returned future resolves to the ordered results
        once the last attempt has finished.

        Raises:
            InvalidPayload: title, message, recipients or channels missing.
            RuntimeError: the dispatcher has been shut down.
        """
        notification = parse_payload(payload)
        if self._closed:
            raise RuntimeError("Notification dispatcher is shut down")
        log = logger.bind(
            type=notification.type.value,
            priority=notification.priority.value,
            recipients=len(notification.recipients),
            channels=notification.channels,
        )
        log.info("notification.dispatch_started")

        attempts: List[Future] = []
        for channel in notification.channels:
            try:
                adapter = self._channels.get(channel)
            except UnrecognizedChannel:
                log.warning("notification.channel_skipped", channel=channel)
                continue
            lane = self._lane(channel)
            for recipient_id in notification.recipients:
                attempts.append(
                    lane.submit(
                        self._attempt,
                        adapter,
                        channel,
                        recipient_id,
                        notification,
                        priority=notification.priority,
                    )
                )

        combined: Future = Future()
        combined.set_running_or_notify_cancel()
        _when_all(attempts, lambda: self._finish(notification, attempts, combined, log))
        combined.add_done_callback(_log_background_failure)
        return combined

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for audit writes queued so far."""
        with self._lanes_lock:
            pending = list(self._pending_audits)
        wait_futures(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        with self._lanes_lock:
            self._closed = True
            lanes = list(self._lanes.values())
        for lane in lanes:
            lane.shutdown(wait=wait)
        self._background.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lane(self, channel: str) -> PriorityWorkerPool:
        with self._lanes_lock:
            lane = self._lanes.get(channel)
            if lane is None:
                lane = PriorityWorkerPool(
                    f"notifications-{channel.lower()}",
                    max_workers=self._workers_per_channel,
                )
                self._lanes[channel] = lane
            return lane

    def _finish(
        self,
        notification: NotificationPayload,
        attempts: List[Future],
        combined: Future,
        log: Any,
    ) -> None:
        """Runs on whichever thread resolved the last attempt."""
        try:
            results = [future.result() for future in attempts]
        except BaseException as exc:
            combined.set_exception(exc)
            return
        delivered, failed = summarize(results)
        log.info("notification.dispatch_finished", delivered=delivered, failed=failed)
        self._queue_audit(notification)
        combined.set_result(results)

    def _attempt(
        self,
        adapter: ChannelAdapter,
        channel: str,
        recipient_id: str,
        notification: NotificationPayload,
    ) -> NotificationResult:
        metadata = {
            "type": notification.type,
            "priority": notification.priority,
            "data": dict(notification.data),
        }
        try:
            outcome = adapter.attempt_deliver(
                recipient_id, notification.title, notification.message, metadata
            )
        except Exception as exc:
            failure = ChannelDeliveryFailure(channel, recipient_id, str(exc))
            logger.warning(
                "notification.delivery_failed",
                channel=channel,
                recipient_id=recipient_id,
                error=str(failure),
                exc_info=True,
            )
            return _result(recipient_id, channel, False, str(failure))

        if not outcome.success:
            logger.warning(
                "notification.delivery_failed",
                channel=channel,
                recipient_id=recipient_id,
                error=outcome.error,
            )
        return _result(recipient_id, channel, outcome.success, outcome.error)

    def _queue_audit(self, notification: NotificationPayload) -> None:
        if self._audit_repo is None:
            return
        try:
            future = self._background.submit(
                self._record_audit, notification, priority=notification.priority
            )
        except RuntimeError:
            logger.error(
                "notification.audit_skipped",
                type=notification.type.value,
                reason="dispatcher shut down",
            )
            return
        with self._lanes_lock:
            self._pending_audits.add(future)
        future.add_done_callback(self._forget_audit)

    def _forget_audit(self, future: Future) -> None:
        with self._lanes_lock:
            self._pending_audits.discard(future)

    def _record_audit(self, notification: NotificationPayload) -> None:
        log = logger.bind(
            type=notification.type.value, recipients=len(notification.recipients)
        )
        for attempt in range(1, self._audit_max_attempts + 1):
            try:
                self._audit_repo.record(notification)
            except Exception as exc:
                log.error("notification.audit_failed", attempt=attempt, error=str(exc))
                if attempt == self._audit_max_attempts:
                    log.error(
                        "notification.audit_abandoned",
                        attempts=self._audit_max_attempts,
                    )
                    return
                delay = self._audit_backoff_seconds * 2 ** (attempt - 1)
                log.warning("notification.audit_retry", attempt=attempt, delay=delay)
                self._sleep(delay)
            else:
                log.info("notification.audit_recorded")
                return


def _when_all(futures: List[Future], callback: Callable[[], None]) -> None:
    """Call *callback* once, after every future in *futures* is done."""
    if not futures:
        callback()
        return
    remaining = [len(futures)]
    guard = threading.Lock()

    def on_done(_: Future) -> None:
        with guard:
            remaining[0] -= 1
            last = remaining[0] == 0
        if last:
            callback()

    for future in futures:
        future.add_done_callback(on_done)


def _result(
    recipient_id: str, channel: str, success: bool, error: Optional[str]
) -> NotificationResult:
    return NotificationResult(
        recipient_id=recipient_id,
        channel=channel,
        success=success,
        error=None if success else (error or "Unknown dispatch error"),
    )


def _log_background_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("notification.background_dispatch_failed", error=str(exc))


def summarize(results: List[NotificationResult]) -> Tuple[int, int]:
    """Return ``(delivered, failed)`` counts."""
    delivered = sum(1 for result in results if result.success)
    return delivered, len(results) - delivered
