"""Phase scanner: turn provisional day kinds into confirmed phase segments.

The scanner walks the classified days with an explicit cursor.  A rise day
is only promoted to Ovulation or PostOvulation when the following days back
it up (two of three lookahead pairs, or two confirming days after an
ovulation segment).  When the evidence is weak the scanner prefers to emit
nothing, or to repeat the previous stage, over reporting a phase change
that a single noisy day could have caused.

Lookahead may consume several days at once; the cursor always advances by
at least one day per step, so a scan terminates after at most ``len(days)``
steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Sequence

from src.phases.base import (
    DayKind,
    EndDay,
    MiddleUncheckedDay,
    Period,
    PhaseStage,
    StartDay,
)
from src.phases.config_loader import PhaseConfig, get_phase_config

logger = logging.getLogger("cyclephase.phases.phase_scanner")


@dataclass
class ScanState:
    """Working state for one scan.

    Attributes:
        cursor:  Index of the day being examined.  Handlers that consume
                 lookahead days move it to the last day they consumed.
        periods: Segments emitted so far, in day order.
    """

    cursor: int = 0
    periods: list[Period] = field(default_factory=list)

    @property
    def last(self) -> Period | None:
        return self.periods[-1] if self.periods else None

    @property
    def last_stage(self) -> PhaseStage | None:
        return self.periods[-1].kind if self.periods else None

    def emit(self, start: timedelta, end: timedelta, kind: PhaseStage) -> None:
        self.periods.append(Period(start_timestamp=start, end_timestamp=end, kind=kind))


def _peek_rise(
    days: Sequence[DayKind],
    index: int,
    after: timedelta,
    day_length: timedelta,
) -> MiddleUncheckedDay | None:
    """Return ``days[index]`` if it is a rise day ending within a day of ``after``."""
    if index >= len(days):
        return None
    day = days[index]
    if isinstance(day, MiddleUncheckedDay) and day.end - after <= day_length:
        return day
    return None


class PhaseScanner:
    """Second pass of the engine: confirm phases using lookahead.

    Usage::

        scanner = PhaseScanner(config)
        periods = scanner.scan(day_kinds, baseline=36.45)
    """

    def __init__(self, config: PhaseConfig | None = None) -> None:
        self._config = config or get_phase_config()

    def scan(self, days: Sequence[DayKind], baseline: float) -> list[Period]:
        """Emit phase segments for a sequence of classified days.

        Never raises on odd data: unknown days are skipped and inconclusive
        lookahead emits nothing.
        """
        state = ScanState()
        while state.cursor < len(days):
            day = days[state.cursor]
            if isinstance(day, StartDay):
                self._on_start(day, state)
            elif isinstance(day, MiddleUncheckedDay):
                self._on_rise(days, day, state)
            elif isinstance(day, EndDay):
                self._on_end(days, day, baseline, state)
            state.cursor += 1
        return state.periods

    # ------------------------------------------------------------------
    # Day handlers
    # ------------------------------------------------------------------

    def _on_start(self, day: StartDay, state: ScanState) -> None:
        last = state.last
        day_length = self._config.day_length

        if last is None or last.kind in (PhaseStage.PRE_OVULATION, PhaseStage.PERIOD_START):
            kind = PhaseStage.PRE_OVULATION
        elif last.kind == PhaseStage.POST_OVULATION:
            if day.end - last.end_timestamp <= day_length:
                kind = PhaseStage.PERIOD_START
            else:
                kind = PhaseStage.PRE_OVULATION
        else:
            # A low day right after ovulation is treated as noise.
            kind = last.kind

        state.emit(day.start, day.end, kind)

    def _on_rise(self, days: Sequence[DayKind], day: MiddleUncheckedDay, state: ScanState) -> None:
        last_stage = state.last_stage
        if last_stage == PhaseStage.OVULATION:
            self._confirm_after_ovulation(days, day, state)
        elif last_stage == PhaseStage.POST_OVULATION:
            self._extend_post_ovulation(days, day, state)
        else:
            self._detect_rise(days, day, state)

    def _on_end(
        self,
        days: Sequence[DayKind],
        day: EndDay,
        baseline: float,
        state: ScanState,
    ) -> None:
        last = state.last
        lookahead = self._config.lookahead

        if (
            last is not None
            and last.kind == PhaseStage.POST_OVULATION
            and day.end - last.end_timestamp <= self._config.day_length
        ):
            state.emit(day.start, day.end, PhaseStage.PERIOD_START)
            return

        following = days[state.cursor + 1 : state.cursor + 1 + lookahead.period_start_window_days]
        low_days = sum(
            1
            for d in following
            if isinstance(d, MiddleUncheckedDay) and d.temperature <= baseline
        )
        if low_days >= lookahead.period_start_min_days:
            state.emit(day.start, day.end, PhaseStage.PERIOD_START)

    # ------------------------------------------------------------------
    # Rise handling
    # ------------------------------------------------------------------

    def _confirm_after_ovulation(
        self,
        days: Sequence[DayKind],
        day: MiddleUncheckedDay,
        state: ScanState,
    ) -> None:
        """After an ovulation segment, decide between PostOvulation and a continued rise."""
        rise_diff = self._config.rise_diff
        needed = self._config.lookahead.ovulation_confirmation_days

        followers: list[MiddleUncheckedDay] = []
        after = day.end
        for offset in range(1, needed + 1):
            nxt = _peek_rise(days, state.cursor + offset, after, self._config.day_length)
            if nxt is None:
                logger.debug("Ovulation follow-up at %s inconclusive; skipping day", day.start)
                return
            followers.append(nxt)
            after = nxt.end

        temps = [f.temperature for f in followers]
        if all(abs(day.temperature - t) <= rise_diff for t in temps):
            state.emit(day.start, followers[-1].end, PhaseStage.POST_OVULATION)
            state.cursor += needed
        elif abs(day.temperature - temps[0]) > rise_diff and all(
            abs(a - b) <= rise_diff for a, b in zip(temps, temps[1:])
        ):
            state.emit(day.start, day.end, PhaseStage.OVULATION)

    def _extend_post_ovulation(
        self,
        days: Sequence[DayKind],
        day: MiddleUncheckedDay,
        state: ScanState,
    ) -> None:
        """Stretch a PostOvulation segment over the following flat rise days."""
        end = day.end
        index = state.cursor + 1
        while index < len(days):
            nxt = days[index]
            if not isinstance(nxt, MiddleUncheckedDay):
                break
            if abs(nxt.temperature - day.temperature) > self._config.rise_diff:
                break
            end = nxt.end
            index += 1

        state.emit(day.start, end, PhaseStage.POST_OVULATION)
        state.cursor = index - 1

    def _detect_rise(
        self,
        days: Sequence[DayKind],
        day: MiddleUncheckedDay,
        state: ScanState,
    ) -> None:
        """Look for a thermal shift when no rise has been confirmed yet.

        Consecutive pairs of rise days in the lookahead window are counted as
        growth (up by more than rise_diff) or flat (within rise_diff).  Two
        growth pairs mean Ovulation; otherwise two flat pairs mean the shift
        already happened and the days are PostOvulation.
        """
        rise_diff = self._config.rise_diff
        day_length = self._config.day_length
        lookahead = self._config.lookahead

        growth = 0
        same = 0
        end = day.end
        for offset in range(lookahead.rise_window_days):
            prev = _peek_rise(days, state.cursor + offset, end, day_length)
            if prev is None:
                break
            nxt = _peek_rise(days, state.cursor + offset + 1, prev.end, day_length)
            if nxt is None:
                break

            delta = nxt.temperature - prev.temperature
            if delta > rise_diff:
                growth += 1
                end = nxt.end
            elif abs(delta) <= rise_diff:
                same += 1
                end = nxt.end

        if growth >= lookahead.rise_min_pairs:
            kind = PhaseStage.OVULATION
        elif same >= lookahead.rise_min_pairs:
            kind = PhaseStage.POST_OVULATION
        else:
            logger.debug(
                "Rise at %s unconfirmed (growth=%d, same=%d)", day.start, growth, same
            )
            return

        state.emit(day.start, end, kind)
        # Fixed step even when the span reached one day past the window; the
        # next day may then start a segment touching this one's end.
        state.cursor += lookahead.rise_window_days - 1
