"""Pydantic schemas for readings in and phase segments out.

Timestamps and HRV intervals travel as seconds (floats) so any JSON
producer can fill them; conversion to the engine's ``timedelta`` based
dataclasses happens here and nowhere else.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from src.models.base import CyclePhaseBase
from src.phases.base import Period, PhaseStage, Reading
from src.phases.normal_float import is_subnormal


class ReadingSchema(CyclePhaseBase):
    temperature: float
    hrv_seconds: float = Field(ge=0)
    timestamp_seconds: float = Field(ge=0)

    @field_validator("temperature")
    @classmethod
    def _reject_subnormal(cls, v: float) -> float:
        if is_subnormal(v):
            raise ValueError("floating number is subnormal")
        return v

    def to_reading(self) -> Reading:
        return Reading.from_values(self.temperature, self.hrv_seconds, self.timestamp_seconds)


class PeriodSchema(CyclePhaseBase):
    start_timestamp: float
    end_timestamp: float
    kind: PhaseStage

    @classmethod
    def from_period(cls, period: Period) -> PeriodSchema:
        return cls(
            start_timestamp=period.start_timestamp.total_seconds(),
            end_timestamp=period.end_timestamp.total_seconds(),
            kind=period.kind,
        )


class PhaseRequest(CyclePhaseBase):
    """A batch of readings plus the caller's baseline (coverline) temperature."""

    baseline_temperature: float
    readings: list[ReadingSchema] = Field(default_factory=list)

    def to_readings(self) -> list[Reading]:
        return [r.to_reading() for r in self.readings]


class PhaseResponse(CyclePhaseBase):
    periods: list[PeriodSchema] = Field(default_factory=list)

    @classmethod
    def from_periods(cls, periods: list[Period]) -> PhaseResponse:
        return cls(periods=[PeriodSchema.from_period(p) for p in periods])
