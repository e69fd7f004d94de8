"""Lock-provider contract for single-flight operations.

A provider hands out an opaque token when a key is free and refuses
immediately when it is already held.  There is no waiting and no queue:
the first caller wins and everyone else is told to retry later.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Protocol


class LockUnavailable(Exception):
    """The key is held by another in-flight operation."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Lock {key} is held by another operation.")


class ILockProvider(Protocol):
    """Fail-fast mutual exclusion keyed by string."""

    def acquire(self, key: str) -> Optional[str]:
        """Return a release token, or ``None`` when *key* is already held."""
        ...

    def release(self, key: str, token: str) -> None:
        """Release *key* if *token* still owns it."""
        ...


@contextmanager
def single_flight(provider: ILockProvider, key: str) -> Iterator[str]:
    """Hold *key* for the duration of the block.

    Raises:
        LockUnavailable: another holder owns the key.
    """
    token = provider.acquire(key)
    if token is None:
        raise LockUnavailable(key)
    try:
        yield token
    finally:
        provider.release(key, token)
