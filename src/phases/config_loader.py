"""Load, validate, and hot-reload the phase engine configuration.

The config lives in ``phase_config.yaml`` alongside this module.  At first
use it is loaded once and cached.  Set ``PHASE_CONFIG_PATH`` in the
environment to point at another file, or call ``reload_phase_config()`` to
re-read from disk without a restart.

Usage::

    from src.phases.config_loader import get_phase_config

    config = get_phase_config()
    config.rise_diff      # 0.1
    config.lower_band     # 0.3
    config.day_length     # timedelta(days=1)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from src.config import get_settings

logger = logging.getLogger("cyclephase.phases.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "phase_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class DailyReferenceConfig:
    """Daily reference temperature settings."""

    lowest_fraction: float = 0.25


@dataclass
class ThresholdConfig:
    """Temperature bands used by the day classifier and scanner (°C)."""

    rise_diff_c: float = 0.1
    lower_band_factor: float = 3.0
    upper_band_c: float = 0.7

    @property
    def lower_band_c(self) -> float:
        return self.rise_diff_c * self.lower_band_factor


@dataclass
class LookaheadConfig:
    """How far the phase scanner looks ahead, and how much it needs to see."""

    ovulation_confirmation_days: int = 2
    rise_window_days: int = 3
    rise_min_pairs: int = 2
    period_start_window_days: int = 3
    period_start_min_days: int = 2


@dataclass
class PhaseConfig:
    """Complete, validated phase engine configuration.

    This is the single in-memory representation of phase_config.yaml.
    The aggregator, classifier and scanner all read from this object.

    Attributes:
        version:         Config schema version string.
        day_length:      Aggregation window and adjacency bound.
        min_readings:    Smallest batch that yields any segments.
        daily_reference: Daily aggregation settings.
        thresholds:      Temperature bands.
        lookahead:       Scanner lookahead windows.
    """

    version: str = "1.0"
    day_length: timedelta = timedelta(seconds=86400)
    min_readings: int = 2
    daily_reference: DailyReferenceConfig = field(default_factory=DailyReferenceConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    lookahead: LookaheadConfig = field(default_factory=LookaheadConfig)
    _raw: dict = field(default_factory=dict, repr=False)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def rise_diff(self) -> float:
        return self.thresholds.rise_diff_c

    @property
    def lower_band(self) -> float:
        return self.thresholds.lower_band_c

    @property
    def upper_band(self) -> float:
        return self.thresholds.upper_band_c


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when phase_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Phase config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigValidationError(f"{path} must contain a mapping at the top level")
    return raw


def _validate_and_build(raw: dict) -> PhaseConfig:
    """Validate the raw YAML dict and construct a PhaseConfig.

    Missing keys fall back to the defaults in the dataclasses above.  All
    problems are collected and reported together.

    Raises:
        ConfigValidationError: If any value has the wrong type or range.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, default: float, where: str) -> float:
        value = section.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            errors.append(f"{where}.{key} must be a number, got {value!r}")
            return default

    def _integer(section: dict, key: str, default: int, where: str) -> int:
        value = section.get(key, default)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{where}.{key} must be an integer, got {value!r}")
            return default
        return value

    def _section(key: str) -> dict:
        section = raw.get(key) or {}
        if not isinstance(section, dict):
            errors.append(f"'{key}' must be a mapping")
            return {}
        return section

    version = str(raw.get("version", "1.0"))

    # ── Day windows ──
    day_seconds = _number(raw, "day_length_seconds", 86400.0, "root")
    if day_seconds <= 0:
        errors.append(f"day_length_seconds = {day_seconds} must be positive")
    min_readings = _integer(raw, "min_readings", 2, "root")
    if min_readings < 0:
        errors.append(f"min_readings = {min_readings} must not be negative")

    # ── Daily reference ──
    dr_raw = _section("daily_reference")
    daily_reference = DailyReferenceConfig(
        lowest_fraction=_number(dr_raw, "lowest_fraction", 0.25, "daily_reference"),
    )
    if not (0.0 < daily_reference.lowest_fraction <= 1.0):
        errors.append(
            f"daily_reference.lowest_fraction = {daily_reference.lowest_fraction} "
            "is out of range (0.0, 1.0]"
        )

    # ── Thresholds ──
    th_raw = _section("thresholds")
    thresholds = ThresholdConfig(
        rise_diff_c=_number(th_raw, "rise_diff_c", 0.1, "thresholds"),
        lower_band_factor=_number(th_raw, "lower_band_factor", 3.0, "thresholds"),
        upper_band_c=_number(th_raw, "upper_band_c", 0.7, "thresholds"),
    )
    for key in ("rise_diff_c", "lower_band_factor", "upper_band_c"):
        if getattr(thresholds, key) <= 0:
            errors.append(f"thresholds.{key} = {getattr(thresholds, key)} must be positive")
    if thresholds.rise_diff_c >= thresholds.upper_band_c:
        logger.warning(
            "thresholds.rise_diff_c (%.3f) >= upper_band_c (%.3f); "
            "no rise will ever be confirmed",
            thresholds.rise_diff_c,
            thresholds.upper_band_c,
        )

    # ── Lookahead ──
    la_raw = _section("lookahead")
    lookahead = LookaheadConfig(
        ovulation_confirmation_days=_integer(la_raw, "ovulation_confirmation_days", 2, "lookahead"),
        rise_window_days=_integer(la_raw, "rise_window_days", 3, "lookahead"),
        rise_min_pairs=_integer(la_raw, "rise_min_pairs", 2, "lookahead"),
        period_start_window_days=_integer(la_raw, "period_start_window_days", 3, "lookahead"),
        period_start_min_days=_integer(la_raw, "period_start_min_days", 2, "lookahead"),
    )
    if lookahead.ovulation_confirmation_days < 2:
        errors.append(
            "lookahead.ovulation_confirmation_days must be at least 2, "
            f"got {lookahead.ovulation_confirmation_days}"
        )
    for key in ("rise_window_days", "rise_min_pairs", "period_start_window_days", "period_start_min_days"):
        if getattr(lookahead, key) < 1:
            errors.append(f"lookahead.{key} must be at least 1, got {getattr(lookahead, key)}")
    if lookahead.rise_min_pairs > lookahead.rise_window_days:
        errors.append("lookahead.rise_min_pairs cannot exceed lookahead.rise_window_days")
    if lookahead.period_start_min_days > lookahead.period_start_window_days:
        errors.append(
            "lookahead.period_start_min_days cannot exceed lookahead.period_start_window_days"
        )

    if errors:
        raise ConfigValidationError(
            f"phase_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return PhaseConfig(
        version=version,
        day_length=timedelta(seconds=day_seconds),
        min_readings=min_readings,
        daily_reference=daily_reference,
        thresholds=thresholds,
        lookahead=lookahead,
        _raw=raw,
    )


def _default_path() -> Path:
    override = get_settings().phase_config_path
    return Path(override) if override else _CONFIG_PATH


def load_phase_config(path: Path | None = None) -> PhaseConfig:
    """Load and validate the phase config from disk.

    Args:
        path: Override path to YAML.  Defaults to ``PHASE_CONFIG_PATH`` from
              settings, then the bundled phase_config.yaml.
    """
    target = path or _default_path()
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded phase config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: PhaseConfig | None = None
_config_lock = threading.Lock()


def get_phase_config() -> PhaseConfig:
    """Return the global PhaseConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_phase_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_phase_config()
    return _config


def reload_phase_config(path: Path | None = None) -> PhaseConfig:
    """Reload the phase config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_phase_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded phase config: %s → %s", old_version, new_config.version)
    return new_config
