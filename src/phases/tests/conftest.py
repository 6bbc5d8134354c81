"""Shared fixtures for the phase engine tests."""

from __future__ import annotations

from datetime import timedelta

import pytest

from src.phases.config_loader import PhaseConfig, load_phase_config
from src.phases.engine import PhaseEngine

DAY = timedelta(days=1)
BASELINE = 36.5


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def phase_config() -> PhaseConfig:
    """Load the real phase config for tests."""
    return load_phase_config()


@pytest.fixture
def engine(phase_config: PhaseConfig) -> PhaseEngine:
    return PhaseEngine(phase_config)


# ---------------------------------------------------------------------------
# Temperature series fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def biphasic_cycle_temps() -> list[float]:
    """29 daily temperatures: follicular, thermal shift, luteal plateau, drop."""
    follicular = [36.3] * 13
    shift = [36.6, 36.8, 37.0]
    luteal = [37.0] * 11
    menses = [36.3, 36.3]
    return follicular + shift + luteal + menses
