"""Bounded worker pool with priority scheduling.

Works like ``concurrent.futures.ThreadPoolExecutor`` except that
queued work is ordered by notification priority (CRITICAL first) and
then by submission order.  Priority only matters once every worker is
busy; it never changes whether a job runs.
"""

from __future__ import annotations

import itertools
import queue
import sys
import threading
from concurrent.futures import Future
from typing import Any, Callable, List

import structlog

from modules.notifications.constants import PRIORITY_RANK, NotificationPriority

logger = structlog.get_logger(__name__)

_SHUTDOWN_RANK = sys.maxsize


class PriorityWorkerPool:
    def __init__(self, name: str, max_workers: int) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.name = name
        self.max_workers = max_workers
        self._queue: queue.PriorityQueue = queue.PriorityQueue()
        self._sequence = itertools.count()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._shutdown = False

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        **kwargs: Any,
    ) -> Future:
        """Queue ``fn(*args, **kwargs)`` and return its future.

        Raises:
            RuntimeError: the pool has been shut down.
        """
        future: Future = Future()
        rank = PRIORITY_RANK[NotificationPriority(priority)]
        with self._lock:
            if self._shutdown:
                raise RuntimeError(f"Pool {self.name} is shut down")
            self._queue.put((rank, next(self._sequence), (future, fn, args, kwargs)))
            self._spawn_worker()
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Finish queued work, then stop every worker."""
        with self._lock:
            if self._shutdown:
                threads = list(self._threads)
            else:
                self._shutdown = True
                threads = list(self._threads)
                for _ in threads:
                    self._queue.put((_SHUTDOWN_RANK, next(self._sequence), None))
        if wait:
            for thread in threads:
                thread.join()

    def _spawn_worker(self) -> None:
        if len(self._threads) >= self.max_workers:
            return
        thread = threading.Thread(
            target=self._work,
            name=f"{self.name}-{len(self._threads)}",
            daemon=True,
        )
        thread.start()
        self._threads.append(thread)

    def _work(self) -> None:
        while True:
            _, _, job = self._queue.get()
            if job is None:
                return
            future, fn, args, kwargs = job
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except BaseException as exc:
                logger.debug("pool.job_failed", pool=self.name, error=str(exc))
                future.set_exception(exc)
            else:
                future.set_result(result)
