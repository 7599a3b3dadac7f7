"""Per-call state kept by the HTTP layer: pushback counts and text-mode sessions."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from ...config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float


class SessionStore(Generic[T]):
    """Thread-safe key/value store with a time-to-live per entry.

    Expired entries are dropped lazily on access and in bulk by ``sweep()``.
    ``clock`` is injectable so expiry can be tested without sleeping.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = float(ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _live(self, key: str, now: float) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._live(key, self._clock())
            return entry.value if entry is not None else None

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)

    def update(self, key: str, func: Callable[[Optional[T]], T]) -> T:
        """Atomically replace the value for ``key`` with ``func(current)`` and refresh its TTL."""
        with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            value = func(entry.value if entry is not None else None)
            self._entries[key] = _Entry(value=value, expires_at=now + self.ttl_seconds)
            return value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired session(s)")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PushbackTracker:
    """Counts rejected offers per call."""

    def __init__(self, store: Optional[SessionStore[int]] = None) -> None:
        self.store: SessionStore[int] = store if store is not None else SessionStore()

    def count(self, call_id: str) -> int:
        return self.store.get(call_id) or 0

    def increment(self, call_id: str) -> int:
        value = self.store.update(call_id, lambda current: (current or 0) + 1)
        logger.info(f"Pushback #{value} recorded for call {call_id}")
        return value

    def reset(self, call_id: str) -> bool:
        return self.store.delete(call_id)


def extract_call_id(body: Any) -> Optional[str]:
    """Find the voice platform's call id in a webhook body."""

    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, dict):
        call = message.get("call")
        if isinstance(call, dict) and call.get("id"):
            return str(call["id"])
    call = body.get("call")
    if isinstance(call, dict) and call.get("id"):
        return str(call["id"])
    if body.get("callId"):
        return str(body["callId"])
    tool_calls = body.get("toolCalls")
    if isinstance(tool_calls, list) and tool_calls and isinstance(tool_calls[0], dict):
        if tool_calls[0].get("callId"):
            return str(tool_calls[0]["callId"])
    return None
