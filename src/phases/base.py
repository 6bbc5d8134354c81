"""Canonical data models for the cycle phase engine.

Readings come in, ``Period`` segments go out.  Between the two, every
populated day is summarized as a ``DailyReference`` and then given one of
four provisional day kinds, which the phase scanner confirms or rejects
using lookahead.

All timestamps are ``timedelta`` offsets from an arbitrary epoch chosen by
the caller (e.g. seconds since the device was paired).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Union

from src.phases.normal_float import NormalFloat


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reading:
    """One raw sensor sample.

    Attributes:
        temperature: Basal body temperature in °C.
        hrv:         Heart-rate variability interval.
        timestamp:   Offset of the sample from the caller's epoch.  Readings
                     may be supplied in any order.
    """

    temperature: NormalFloat
    hrv: timedelta
    timestamp: timedelta

    @classmethod
    def from_values(
        cls,
        temperature: float,
        hrv_seconds: float,
        timestamp_seconds: float,
    ) -> Reading:
        """Build a Reading from plain numbers.

        Raises:
            SubnormalValueError: If ``temperature`` is subnormal.
        """
        return cls(
            temperature=NormalFloat(temperature),
            hrv=timedelta(seconds=hrv_seconds),
            timestamp=timedelta(seconds=timestamp_seconds),
        )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class PhaseStage(str, Enum):
    PRE_OVULATION = "pre_ovulation"
    OVULATION = "ovulation"
    POST_OVULATION = "post_ovulation"
    PERIOD_START = "period_start"


@dataclass(frozen=True)
class Period:
    """A confirmed phase segment.

    Consecutive periods may share a stage; the engine does not merge them
    (see ``merge_contiguous`` for callers who want that).
    """

    start_timestamp: timedelta
    end_timestamp: timedelta
    kind: PhaseStage

    @property
    def duration(self) -> timedelta:
        return self.end_timestamp - self.start_timestamp

    def to_dict(self) -> dict:
        return {
            "start_timestamp": self.start_timestamp.total_seconds(),
            "end_timestamp": self.end_timestamp.total_seconds(),
            "kind": self.kind.value,
        }


# ---------------------------------------------------------------------------
# Intermediate: daily aggregation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DailyReference:
    """Reference temperature for one populated day window.

    Attributes:
        start:         Window start.
        end:           Timestamp of the last reading inside the window.
        temperature:   Mean of the lowest quartile of distinct temperatures.
        reading_count: Number of readings that fell in the window.
    """

    start: timedelta
    end: timedelta
    temperature: float
    reading_count: int = 0


# ---------------------------------------------------------------------------
# Intermediate: provisional day kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StartDay:
    """At or slightly below baseline: begins or extends a low run."""

    start: timedelta
    end: timedelta


@dataclass(frozen=True)
class MiddleUncheckedDay:
    """Above baseline within the physiological band, not yet confirmed."""

    start: timedelta
    end: timedelta
    temperature: float


@dataclass(frozen=True)
class EndDay:
    """Well below baseline: a possible return after a rise."""

    start: timedelta
    end: timedelta


@dataclass(frozen=True)
class UnknownOrCorruptedDay:
    """Outside every recognized band.  Carries no temperature."""

    start: timedelta
    end: timedelta


DayKind = Union[StartDay, MiddleUncheckedDay, EndDay, UnknownOrCorruptedDay]
