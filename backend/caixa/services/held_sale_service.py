# Overview: In-memory store for parked (held) carts with TTL eviction.

"""
Held Sale Store

Parked carts are transient: they live only in process memory, are never
written to the database, and disappear on restart.

- One store per Flask app, created in create_app() and kept in
  app.extensions["held_sales"]; services receive it explicitly.
- Entries expire ttl_seconds after they were held. Expired entries are
  evicted lazily on every hold/retrieve and read as missing.
- retrieve() does not remove the entry; a held cart can be recalled more
  than once until it expires or is discarded.
"""

from __future__ import annotations

import copy
import threading
import time
import uuid
from typing import Any, Callable, Optional

from flask import current_app

from caixa.time_utils import to_utc_z, utcnow


EXTENSION_KEY = "held_sales"


class HeldSaleStore:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, dict]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, stored_at: float, now: float) -> bool:
        return self.ttl_seconds > 0 and now - stored_at >= self.ttl_seconds

    def _purge_locked(self, now: float) -> int:
        expired = [k for k, (stored_at, _) in self._entries.items() if self._is_expired(stored_at, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def hold(self, payload: Any) -> str:
        hold_id = str(uuid.uuid4())
        snapshot = dict(copy.deepcopy(payload)) if isinstance(payload, dict) else {"payload": copy.deepcopy(payload)}
        snapshot["created_at"] = to_utc_z(utcnow())

        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            self._entries[hold_id] = (now, snapshot)
        return hold_id

    def retrieve(self, hold_id: str) -> Optional[dict]:
        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            entry = self._entries.get(hold_id)
        if entry is None:
            return None
        return copy.deepcopy(entry[1])

    def discard(self, hold_id: str) -> bool:
        with self._lock:
            return self._entries.pop(hold_id, None) is not None

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())


def current_store() -> HeldSaleStore:
    """The held-sale store bound to the active Flask app."""
    return current_app.extensions[EXTENSION_KEY]
