"""Short-TTL cache for market data responses."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

DEFAULT_TTL = 30.0


@dataclass
class TTLCache:
    """Entries keyed by request signature, valid for ``ttl`` seconds.

    Entries are never invalidated early. A read past the TTL misses, and
    the caller re-fetches. Concurrent fetches of the same key are not
    de-duplicated.
    """

    ttl: float = DEFAULT_TTL
    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, tuple[float, Any]] = field(default_factory=dict)

    @staticmethod
    def make_key(endpoint: str, **params: object) -> str:
        """Request signature: endpoint plus sorted parameters."""
        if not params:
            return endpoint
        query = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return f"{endpoint}?{query}"

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self.clock(), value)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
