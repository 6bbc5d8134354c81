"""Tests for the phase scanner state machine.

Day kinds are built directly so each transition rule can be exercised in
isolation.  Every helper places a single reading at the start of day ``i``,
so consecutive days are exactly one day-length apart.
"""

from __future__ import annotations

from datetime import timedelta

from src.phases.base import (
    DayKind,
    EndDay,
    MiddleUncheckedDay,
    Period,
    PhaseStage,
    StartDay,
    UnknownOrCorruptedDay,
)
from src.phases.config_loader import LookaheadConfig, PhaseConfig
from src.phases.phase_scanner import PhaseScanner, ScanState, _peek_rise
from src.phases.tests.conftest import BASELINE, DAY

PRE = PhaseStage.PRE_OVULATION
OV = PhaseStage.OVULATION
POST = PhaseStage.POST_OVULATION
PERIOD = PhaseStage.PERIOD_START


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def d(i: int) -> timedelta:
    return timedelta(days=i)


def start(i: int) -> StartDay:
    return StartDay(start=d(i), end=d(i))


def rise(i: int, temp: float) -> MiddleUncheckedDay:
    return MiddleUncheckedDay(start=d(i), end=d(i), temperature=temp)


def end(i: int) -> EndDay:
    return EndDay(start=d(i), end=d(i))


def unknown(i: int) -> UnknownOrCorruptedDay:
    return UnknownOrCorruptedDay(start=d(i), end=d(i))


def period(first: int, last: int, kind: PhaseStage) -> Period:
    return Period(start_timestamp=d(first), end_timestamp=d(last), kind=kind)


def scan(phase_config: PhaseConfig, days: list[DayKind]) -> list[Period]:
    return PhaseScanner(phase_config).scan(days, BASELINE)


# ---------------------------------------------------------------------------
# Unit tests: helpers and state
# ---------------------------------------------------------------------------


class TestPeekRise:
    """Tests for the _peek_rise() adjacency helper."""

    def test_out_of_range(self) -> None:
        assert _peek_rise([rise(0, 36.8)], 1, d(0), DAY) is None

    def test_not_a_rise_day(self) -> None:
        assert _peek_rise([start(0), start(1)], 1, d(0), DAY) is None

    def test_adjacent_rise_day(self) -> None:
        days = [rise(0, 36.8), rise(1, 36.9)]
        assert _peek_rise(days, 1, d(0), DAY) == rise(1, 36.9)

    def test_rise_day_too_far_away(self) -> None:
        days = [rise(0, 36.8), rise(2, 36.9)]
        assert _peek_rise(days, 1, d(0), DAY) is None

    def test_same_day_is_within_bound(self) -> None:
        days = [rise(0, 36.8)]
        assert _peek_rise(days, 0, d(0), DAY) == rise(0, 36.8)


class TestScanState:
    """Tests for ScanState bookkeeping."""

    def test_initial_state(self) -> None:
        state = ScanState()
        assert state.cursor == 0
        assert state.last is None
        assert state.last_stage is None

    def test_emit_tracks_last(self) -> None:
        state = ScanState()
        state.emit(d(0), d(1), PRE)
        state.emit(d(2), d(2), OV)
        assert state.last == period(2, 2, OV)
        assert state.last_stage == OV
        assert len(state.periods) == 2


# ---------------------------------------------------------------------------
# Start days
# ---------------------------------------------------------------------------


class TestStartDays:
    """Tests for low days and the stage they continue."""

    def test_empty(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, []) == []

    def test_first_start_is_pre_ovulation(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [start(0)]) == [period(0, 0, PRE)]

    def test_start_after_pre_ovulation(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [start(0), start(1)]) == [
            period(0, 0, PRE),
            period(1, 1, PRE),
        ]

    def test_start_right_after_post_ovulation_is_period_start(
        self, phase_config: PhaseConfig
    ) -> None:
        days = [rise(0, 36.8), rise(1, 36.8), rise(2, 36.8), start(3), start(4)]
        assert scan(phase_config, days) == [
            period(0, 2, POST),
            period(3, 3, PERIOD),
            period(4, 4, PRE),
        ]

    def test_start_long_after_post_ovulation_is_pre_ovulation(
        self, phase_config: PhaseConfig
    ) -> None:
        days = [rise(0, 36.8), rise(1, 36.8), rise(2, 36.8), start(5)]
        assert scan(phase_config, days) == [period(0, 2, POST), period(5, 5, PRE)]

    def test_start_after_ovulation_repeats_ovulation(self, phase_config: PhaseConfig) -> None:
        days = [rise(0, 36.6), rise(1, 36.8), rise(2, 37.0), start(3)]
        assert scan(phase_config, days) == [period(0, 2, OV), period(3, 3, OV)]


# ---------------------------------------------------------------------------
# Rise days with no confirmed rise yet
# ---------------------------------------------------------------------------


class TestRiseDetection:
    """Tests for growth and flat pair counting before any rise is confirmed."""

    def test_two_growth_pairs_is_ovulation(self, phase_config: PhaseConfig) -> None:
        days = [rise(0, 36.6), rise(1, 36.8), rise(2, 37.0)]
        assert scan(phase_config, days) == [period(0, 2, OV)]

    def test_two_flat_pairs_is_post_ovulation(self, phase_config: PhaseConfig) -> None:
        days = [rise(0, 36.8), rise(1, 36.85), rise(2, 36.8)]
        assert scan(phase_config, days) == [period(0, 2, POST)]

    def test_third_pair_extends_span(self, phase_config: PhaseConfig) -> None:
        days = [rise(0, 36.8), rise(1, 36.8), rise(2, 36.8), rise(3, 36.8)]
        # Cursor skips past the three-day window, then day 3 extends post-ovulation
        assert scan(phase_config, days) == [period(0, 3, POST), period(3, 3, POST)]

    def test_single_rise_day_emits_nothing(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [rise(0, 36.8), start(1)]) == [period(1, 1, PRE)]

    def test_rise_days_not_adjacent_in_time(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [rise(0, 36.7), rise(2, 36.9)]) == []

    def test_mixed_pairs_emit_nothing(self, phase_config: PhaseConfig) -> None:
        # One growth pair, then a drop: neither counter reaches two
        assert scan(phase_config, [rise(0, 36.6), rise(1, 36.8), rise(2, 36.6)]) == []

    def test_custom_min_pairs(self) -> None:
        config = PhaseConfig(lookahead=LookaheadConfig(rise_min_pairs=1))
        assert scan(config, [rise(0, 36.6), rise(1, 36.8)]) == [period(0, 1, OV)]


# ---------------------------------------------------------------------------
# Rise days after an ovulation segment
# ---------------------------------------------------------------------------


class TestAfterOvulation:
    """Tests for rise days that follow an Ovulation segment."""

    # Days 0–2 confirm ovulation; day 3 drops enough to stay out of that window.
    OVULATION_DAYS = [rise(0, 36.6), rise(1, 36.8), rise(2, 37.0)]

    def test_flat_followers_confirm_post_ovulation(self, phase_config: PhaseConfig) -> None:
        days = self.OVULATION_DAYS + [rise(3, 36.85), rise(4, 36.9), rise(5, 36.85)]
        assert scan(phase_config, days) == [period(0, 2, OV), period(3, 5, POST)]

    def test_continued_rise_is_ovulation_for_one_day(self, phase_config: PhaseConfig) -> None:
        days = self.OVULATION_DAYS + [rise(3, 36.85), rise(4, 37.1), rise(5, 37.15)]
        assert scan(phase_config, days) == [period(0, 2, OV), period(3, 3, OV)]

    def test_missing_follower_skips_day(self, phase_config: PhaseConfig) -> None:
        days = self.OVULATION_DAYS + [rise(3, 36.85), start(4)]
        assert scan(phase_config, days) == [period(0, 2, OV), period(4, 4, OV)]

    def test_erratic_followers_emit_nothing(self, phase_config: PhaseConfig) -> None:
        days = self.OVULATION_DAYS + [rise(3, 36.85), rise(4, 37.1), rise(5, 36.7)]
        assert scan(phase_config, days) == [period(0, 2, OV)]


# ---------------------------------------------------------------------------
# Rise days after a post-ovulation segment
# ---------------------------------------------------------------------------


class TestAfterPostOvulation:
    """Tests for extending a PostOvulation segment."""

    def test_flat_run_is_extended(self, phase_config: PhaseConfig) -> None:
        days = [
            rise(0, 36.8),
            rise(1, 36.8),
            rise(2, 36.8),
            unknown(3),
            rise(4, 37.0),
            rise(5, 37.05),
            rise(6, 36.95),
            rise(7, 37.3),
        ]
        assert scan(phase_config, days) == [
            period(0, 2, POST),
            period(4, 6, POST),
            period(7, 7, POST),
        ]

    def test_run_stops_at_non_rise_day(self, phase_config: PhaseConfig) -> None:
        days = [
            rise(0, 36.8),
            rise(1, 36.8),
            rise(2, 36.8),
            unknown(3),
            rise(4, 36.8),
            start(5),
        ]
        assert scan(phase_config, days) == [
            period(0, 2, POST),
            period(4, 4, POST),
            period(5, 5, PERIOD),
        ]


# ---------------------------------------------------------------------------
# End and unknown days
# ---------------------------------------------------------------------------


class TestEndDays:
    """Tests for PeriodStart detection on days far below baseline."""

    def test_end_right_after_post_ovulation(self, phase_config: PhaseConfig) -> None:
        days = [rise(0, 36.8), rise(1, 36.8), rise(2, 36.8), end(3)]
        assert scan(phase_config, days) == [period(0, 2, POST), period(3, 3, PERIOD)]

    def test_end_without_context_emits_nothing(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [end(0), start(1)]) == [period(1, 1, PRE)]

    def test_end_followed_by_low_unchecked_days(self, phase_config: PhaseConfig) -> None:
        days = [end(0), rise(1, 36.4), rise(2, 36.3), start(3)]
        assert scan(phase_config, days) == [period(0, 0, PERIOD), period(3, 3, PRE)]

    def test_end_followed_by_high_unchecked_days(self, phase_config: PhaseConfig) -> None:
        days = [end(0), rise(1, 36.7), unknown(2), rise(3, 36.8)]
        assert scan(phase_config, days) == []


class TestUnknownDays:
    """Unknown or corrupted days are skipped."""

    def test_only_unknown(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [unknown(0), unknown(1)]) == []

    def test_unknown_neither_resets_nor_extends(self, phase_config: PhaseConfig) -> None:
        assert scan(phase_config, [start(0), unknown(1), start(2)]) == [
            period(0, 0, PRE),
            period(2, 2, PRE),
        ]


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------


class TestInvariants:
    """Tests for properties that hold for any scan."""

    def test_periods_well_formed_on_noisy_sequence(self, phase_config: PhaseConfig) -> None:
        temps = [36.8, 36.9, 36.7, 37.0, 36.6, 36.95, 36.9, 36.55, 36.8, 37.1]
        days: list[DayKind] = []
        for i, t in enumerate(temps):
            days.append(rise(i, t) if i % 4 else start(i))
        days.extend([end(10), unknown(11), rise(12, 36.9)])

        periods = scan(phase_config, days)
        for p in periods:
            assert p.end_timestamp >= p.start_timestamp
            assert isinstance(p.kind, PhaseStage)
        starts = [p.start_timestamp for p in periods]
        assert starts == sorted(starts)

    def test_long_flat_run_terminates(self, phase_config: PhaseConfig) -> None:
        days = [rise(i, 36.8) for i in range(60)]
        periods = scan(phase_config, days)
        assert periods
        assert all(p.kind == POST for p in periods)
        assert periods[-1].end_timestamp == d(59)
