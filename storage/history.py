from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque, Iterable, Optional

from app.schemas import EnrichedReading

DEFAULT_CAPACITY = 500


class RecentHistory:
    """Bounded buffer of enriched readings, oldest evicted first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, items: Iterable[EnrichedReading] = ()) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive.")
        self.capacity = capacity
        self._items: Deque[EnrichedReading] = deque(items, maxlen=capacity)
        self._lock = Lock()

    def append(self, reading: EnrichedReading) -> None:
        with self._lock:
            self._items.append(reading)

    def latest(self) -> Optional[EnrichedReading]:
        with self._lock:
            return self._items[-1] if self._items else None

    def snapshot(self, limit: Optional[int] = None) -> list[EnrichedReading]:
        """Return readings oldest first, restricted to the newest ``limit``."""
        with self._lock:
            items = list(self._items)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return items

    def copy(self) -> "RecentHistory":
        return RecentHistory(self.capacity, self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
