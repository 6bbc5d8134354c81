"""Provisional, single-day classification against the caller's baseline.

Each day's reference temperature is compared with the baseline (coverline)
and labelled with one of four day kinds.  Only the kind produced for the
previous day is consulted; confirming a rise over several days is the
phase scanner's job.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.phases.base import (
    DailyReference,
    DayKind,
    EndDay,
    MiddleUncheckedDay,
    StartDay,
    UnknownOrCorruptedDay,
)
from src.phases.config_loader import PhaseConfig

logger = logging.getLogger("cyclephase.phases.day_classifier")


def _continues_rise(day: DailyReference, previous: DayKind | None, config: PhaseConfig) -> bool:
    # Measured from the close of the current window, not its start.
    if not isinstance(previous, MiddleUncheckedDay):
        return False
    return day.start + config.day_length - previous.end <= config.day_length


def classify_day(
    day: DailyReference,
    baseline: float,
    previous: DayKind | None,
    config: PhaseConfig,
) -> DayKind:
    """Classify one day.

    Args:
        day:      The day's reference temperature and bounds.
        baseline: Caller-supplied coverline temperature (°C).
        previous: Kind produced for the preceding day, if any.
        config:   Supplies the temperature bands and day length.

    Returns:
        StartDay, MiddleUncheckedDay, EndDay or UnknownOrCorruptedDay.
        NaN temperatures fall through to UnknownOrCorruptedDay.
    """
    temperature = day.temperature
    diff = abs(temperature - baseline)

    if temperature <= baseline:
        if _continues_rise(day, previous, config):
            return MiddleUncheckedDay(start=day.start, end=day.end, temperature=temperature)
        if diff <= config.lower_band:
            return StartDay(start=day.start, end=day.end)
        return EndDay(start=day.start, end=day.end)

    if diff <= config.upper_band:
        return MiddleUncheckedDay(start=day.start, end=day.end, temperature=temperature)

    return UnknownOrCorruptedDay(start=day.start, end=day.end)


def classify_days(
    days: Sequence[DailyReference],
    baseline: float,
    config: PhaseConfig,
) -> list[DayKind]:
    """Classify every day in order, threading the previous kind through."""
    kinds: list[DayKind] = []
    previous: DayKind | None = None
    for day in days:
        kind = classify_day(day, baseline, previous, config)
        if isinstance(kind, UnknownOrCorruptedDay):
            logger.debug(
                "Day at %s out of band (%.3f°C vs baseline %.3f°C)",
                day.start,
                day.temperature,
                baseline,
            )
        kinds.append(kind)
        previous = kind
    return kinds
