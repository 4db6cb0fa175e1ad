"""In-memory store of recent spots with receiver/spotter coordinates."""

import math
import threading
from collections import deque
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from .models import Spot

SPOT_MAX = 500
SPOT_WINDOW_MINUTES = 15


def _as_utc(ts: datetime) -> datetime:
    # naive timestamps are UTC
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def filter_spots(spots: Iterable[Spot], freq_range: tuple[float, float] | None,
                 window_minutes: float, now: datetime) -> list[Spot]:
    """Spots inside the time window, frequency range (inclusive) and with
    finite coordinates."""
    cutoff = _as_utc(now) - timedelta(minutes=window_minutes)
    out = []
    for s in spots:
        if _as_utc(s.timestamp) < cutoff:
            continue
        if not math.isfinite(s.freq_mhz):
            continue
        if freq_range and not (freq_range[0] <= s.freq_mhz <= freq_range[1]):
            continue
        if not (math.isfinite(s.lat) and math.isfinite(s.lon)):
            continue
        out.append(s)
    return out


class SpotStore:
    """Bounded, thread-safe spot buffer. Oldest spots fall off first."""

    def __init__(self, maxlen: int = SPOT_MAX):
        self._spots = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def add(self, spot: Spot) -> None:
        with self._lock:
            self._spots.append(spot)

    def extend(self, spots: Iterable[Spot]) -> int:
        added = 0
        with self._lock:
            for s in spots:
                self._spots.append(s)
                added += 1
        return added

    def snapshot(self) -> list[Spot]:
        with self._lock:
            return list(self._spots)

    def recent(self, freq_range: tuple[float, float] | None = None,
               window_minutes: float = SPOT_WINDOW_MINUTES,
               now: datetime | None = None) -> list[Spot]:
        now = now or datetime.now(timezone.utc)
        return filter_spots(self.snapshot(), freq_range, window_minutes, now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._spots)
