"""CyclePhase: menstrual cycle phase inference from wearable temperature data.

Turns a batch of basal body temperature / HRV readings plus a caller-supplied
baseline into labelled phase segments (pre-ovulation, ovulation,
post-ovulation, period start).

Modules:
    base             — Reading, Period, PhaseStage and intermediate day models
    normal_float     — Float wrapper rejecting subnormal temperatures
    reading_store    — Timestamp-ordered collation of raw readings
    daily_aggregator — Lowest-quartile daily reference temperature
    day_classifier   — Provisional single-day classification
    phase_scanner    — Lookahead confirmation into phase segments
    engine           — PhaseEngine facade and caller helpers
    config_loader    — Load/validate/hot-reload phase_config.yaml
"""

from src.phases.base import Period, PhaseStage, Reading
from src.phases.config_loader import PhaseConfig, get_phase_config
from src.phases.engine import PhaseEngine, PhaseInference, infer_phases, merge_contiguous
from src.phases.normal_float import NormalFloat, SubnormalValueError

__all__ = [
    "Reading",
    "Period",
    "PhaseStage",
    "NormalFloat",
    "SubnormalValueError",
    "PhaseConfig",
    "get_phase_config",
    "PhaseEngine",
    "PhaseInference",
    "infer_phases",
    "merge_contiguous",
]
