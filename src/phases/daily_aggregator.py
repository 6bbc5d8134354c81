"""Daily aggregation: one reference temperature per populated day window.

Basal body temperature protocols take the lowest stable reading of the day
as the true temperature.  Wearables sample many times a day, so we average
the lowest quartile of the distinct values instead of trusting a single
minimum.

Windows are laid end to end from the earliest reading.  The first window
without readings ends the series; later readings are ignored rather than
bridged across the gap.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from src.phases.base import DailyReference
from src.phases.config_loader import PhaseConfig
from src.phases.normal_float import NormalFloat
from src.phases.reading_store import ReadingStore

logger = logging.getLogger("cyclephase.phases.daily_aggregator")


def reference_temperature(
    temperatures: Iterable[NormalFloat],
    lowest_fraction: float = 0.25,
) -> float:
    """Average the lowest ``lowest_fraction`` of the distinct temperatures.

    The count is floored but never below one, so a day with fewer than four
    distinct values is represented by its minimum.

    Args:
        temperatures:    Temperatures observed in one window (non-empty).
        lowest_fraction: Share of distinct values to average.

    Returns:
        Reference temperature in °C.

    Raises:
        ValueError: If ``temperatures`` is empty.
    """
    distinct = sorted(set(temperatures))
    if not distinct:
        raise ValueError("reference_temperature() needs at least one temperature")

    size = max(1, math.floor(len(distinct) * lowest_fraction))
    return sum(float(t) for t in distinct[:size]) / size


def aggregate_days(store: ReadingStore, config: PhaseConfig) -> list[DailyReference]:
    """Split the store into day windows and compute each reference temperature.

    Args:
        store:  Collated readings.
        config: Supplies the window length and lowest fraction.

    Returns:
        One DailyReference per populated window, ordered by start.
    """
    start = store.first_timestamp
    if start is None:
        return []

    day = config.day_length
    fraction = config.daily_reference.lowest_fraction
    days: list[DailyReference] = []

    while True:
        window = store.window(start, start + day)
        if not window:
            break

        days.append(
            DailyReference(
                start=start,
                end=window[-1][0],
                temperature=reference_temperature((t for _, t, _ in window), fraction),
                reading_count=len(window),
            )
        )
        start += day

    dropped = store.count_from(start)
    if dropped:
        logger.debug(
            "Gap at %s ended aggregation; %d later reading(s) ignored",
            start,
            dropped,
        )
    return days
