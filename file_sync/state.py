from __future__ import annotations

import threading
from typing import Iterable, Optional


class StateMap:
    """
    What the agent believes is already mirrored: identity key -> size in bytes.

    Guarded by a lock because the shutdown listener may look at it from a
    signal handler while a cycle is running. Tracks when it was last rebuilt
    so the engine can decide whether a refresh is due.
    """

    def __init__(self, refresh_interval: float = 0.0):
        self.refresh_interval = max(0.0, float(refresh_interval))
        self._sizes: dict[str, int] = {}
        self._guard = threading.Lock()
        self._refreshed_at: Optional[float] = None

    def get(self, key: str) -> Optional[int]:
        with self._guard:
            return self._sizes.get(key)

    def record(self, key: str, size: int) -> None:
        with self._guard:
            self._sizes[key] = int(size)

    def evict(self, key: str) -> bool:
        with self._guard:
            return self._sizes.pop(key, None) is not None

    def clear(self) -> None:
        with self._guard:
            self._sizes.clear()

    def rebuild(self, items: Iterable[tuple[str, int]], now: float) -> int:
        """Replace the whole map with items and stamp the refresh time."""
        fresh = {key: int(size) for key, size in items}
        with self._guard:
            self._sizes = fresh
            self._refreshed_at = now
        return len(fresh)

    @property
    def refreshed_at(self) -> Optional[float]:
        return self._refreshed_at

    def refresh_due(self, now: float) -> bool:
        if self._refreshed_at is None:
            return True
        return now - self._refreshed_at >= self.refresh_interval

    def snapshot(self) -> dict[str, int]:
        with self._guard:
            return dict(self._sizes)

    def __contains__(self, key: object) -> bool:
        with self._guard:
            return key in self._sizes

    def __len__(self) -> int:
        with self._guard:
            return len(self._sizes)
