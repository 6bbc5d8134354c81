"""Cycle phase inference from basal body temperature readings.

Pipeline (each stage consumes the previous one's output exactly once):

1. ``ReadingStore``   — collate readings by timestamp, last write wins
2. ``aggregate_days`` — one lowest-quartile reference temperature per day
3. ``classify_days``  — provisional day kind against the caller's baseline
4. ``PhaseScanner``   — lookahead confirmation into phase segments

The baseline (coverline) is always supplied by the caller, typically a
rolling mean of a known low-phase window.  Data-quality problems never
raise; they only reduce the number of segments produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from src.phases.base import DailyReference, DayKind, Period, Reading
from src.phases.config_loader import PhaseConfig, get_phase_config
from src.phases.daily_aggregator import aggregate_days
from src.phases.day_classifier import classify_days
from src.phases.phase_scanner import PhaseScanner
from src.phases.reading_store import ReadingStore

logger = logging.getLogger("cyclephase.phases.engine")


@dataclass
class PhaseInference:
    """Everything the engine derived for one batch.

    Attributes:
        baseline:   Baseline temperature the batch was classified against.
        days:       Daily reference temperatures, one per populated day.
        day_kinds:  Provisional classification of each day.
        periods:    Confirmed phase segments.
    """

    baseline: float
    days: list[DailyReference] = field(default_factory=list)
    day_kinds: list[DayKind] = field(default_factory=list)
    periods: list[Period] = field(default_factory=list)


class PhaseEngine:
    """Infer cycle phase segments from a batch of readings.

    Safe to share between threads: all per-call state lives in the call.

    Usage::

        engine = PhaseEngine()
        periods = engine.infer(readings, baseline_temperature=36.45)
        for p in periods:
            print(p.kind, p.start_timestamp, p.end_timestamp)
    """

    def __init__(self, config: PhaseConfig | None = None) -> None:
        self._config = config or get_phase_config()
        self._scanner = PhaseScanner(self._config)

    @property
    def config(self) -> PhaseConfig:
        return self._config

    def trace(self, readings: Iterable[Reading], baseline_temperature: float) -> PhaseInference:
        """Run the full pipeline and keep every intermediate result."""
        result = PhaseInference(baseline=baseline_temperature)

        store = ReadingStore.from_readings(readings)
        if len(store) < self._config.min_readings:
            logger.debug(
                "Only %d reading(s); need %d to infer phases",
                len(store),
                self._config.min_readings,
            )
            return result

        result.days = aggregate_days(store, self._config)
        result.day_kinds = classify_days(result.days, baseline_temperature, self._config)
        result.periods = self._scanner.scan(result.day_kinds, baseline_temperature)

        logger.info(
            "Inferred %d phase segment(s) from %d reading(s) over %d day(s)",
            len(result.periods),
            len(store),
            len(result.days),
        )
        return result

    def infer(self, readings: Iterable[Reading], baseline_temperature: float) -> list[Period]:
        """Return the phase segments for a batch of readings, in day order."""
        return self.trace(readings, baseline_temperature).periods


def infer_phases(
    readings: Iterable[Reading],
    baseline_temperature: float,
    config: PhaseConfig | None = None,
) -> list[Period]:
    """Shortcut for ``PhaseEngine(config).infer(readings, baseline_temperature)``."""
    return PhaseEngine(config).infer(readings, baseline_temperature)


def merge_contiguous(periods: Iterable[Period]) -> list[Period]:
    """Merge neighbouring periods that share a stage.

    The engine never merges on its own; this is for callers building a
    calendar view.  Only directly adjacent entries in the list are merged,
    whatever the time gap between them.
    """
    merged: list[Period] = []
    for period in periods:
        if merged and merged[-1].kind == period.kind:
            prev = merged[-1]
            merged[-1] = Period(
                start_timestamp=prev.start_timestamp,
                end_timestamp=max(prev.end_timestamp, period.end_timestamp),
                kind=prev.kind,
            )
        else:
            merged.append(period)
    return merged
