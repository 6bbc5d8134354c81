"""Collate raw readings into a timestamp-ordered, read-only store.

Readings arrive in whatever order the device sync produced them, possibly
with the same sample delivered twice.  The store keys them by timestamp
(the last reading seen for a timestamp wins) and keeps them sorted so the
daily aggregator can slice day windows with a binary search.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from datetime import timedelta
from typing import Iterable, Iterator

from src.phases.base import Reading
from src.phases.normal_float import NormalFloat

logger = logging.getLogger("cyclephase.phases.reading_store")

StoredReading = tuple[timedelta, NormalFloat, timedelta]


class ReadingStore:
    """Immutable timestamp → (temperature, hrv) map.

    Usage::

        store = ReadingStore.from_readings(readings)
        for timestamp, temperature, hrv in store.window(start, start + day):
            ...
    """

    def __init__(self, collated: dict[timedelta, tuple[NormalFloat, timedelta]]) -> None:
        self._timestamps: tuple[timedelta, ...] = tuple(sorted(collated))
        self._entries: tuple[StoredReading, ...] = tuple(
            (ts, *collated[ts]) for ts in self._timestamps
        )

    @classmethod
    def from_readings(cls, readings: Iterable[Reading]) -> ReadingStore:
        """Build a store from readings in any order.

        Duplicate timestamps are resolved last-write-wins.
        """
        collated: dict[timedelta, tuple[NormalFloat, timedelta]] = {}
        received = 0
        for reading in readings:
            received += 1
            collated[reading.timestamp] = (reading.temperature, reading.hrv)

        if received != len(collated):
            logger.debug(
                "Collapsed %d duplicate timestamp(s) out of %d readings",
                received - len(collated),
                received,
            )
        return cls(collated)

    @property
    def first_timestamp(self) -> timedelta | None:
        return self._timestamps[0] if self._timestamps else None

    @property
    def last_timestamp(self) -> timedelta | None:
        return self._timestamps[-1] if self._timestamps else None

    def window(self, start: timedelta, end: timedelta) -> list[StoredReading]:
        """Return readings with ``start <= timestamp < end``, oldest first."""
        lo = bisect_left(self._timestamps, start)
        hi = bisect_left(self._timestamps, end, lo=lo)
        return list(self._entries[lo:hi])

    def count_from(self, start: timedelta) -> int:
        """Number of readings at or after ``start``."""
        return len(self._timestamps) - bisect_left(self._timestamps, start)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[StoredReading]:
        return iter(self._entries)
