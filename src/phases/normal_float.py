"""Floating point wrapper that refuses subnormal values.

Temperatures entering the phase engine are wrapped in ``NormalFloat`` at the
boundary.  Sensors occasionally emit denormalized garbage (values like
``5e-324``) when a probe loses contact; rejecting them at construction keeps
the engine free of per-call validation.

NaN is not rejected, but it is ordered as equal to itself and greater than
every number so that sets and sorts over temperatures stay total.
"""

from __future__ import annotations

import math
import sys
from functools import total_ordering

_SUBNORMAL_MSG = "floating number is subnormal"


class SubnormalValueError(ValueError):
    """Raised when a subnormal float is wrapped in a NormalFloat."""


def is_subnormal(value: float) -> bool:
    """Return True for a nonzero finite value below the smallest normal float."""
    return value != 0.0 and math.isfinite(value) and abs(value) < sys.float_info.min


@total_ordering
class NormalFloat:
    """An immutable float guaranteed not to be subnormal.

    Usage::

        temp = NormalFloat(36.45)
        float(temp)                    # 36.45
        NormalFloat.try_new(5e-324)    # None
    """

    __slots__ = ("_value",)

    def __init__(self, value: float) -> None:
        value = float(value)
        if is_subnormal(value):
            raise SubnormalValueError(f"{_SUBNORMAL_MSG}: {value!r}")
        object.__setattr__(self, "_value", value)

    @classmethod
    def try_new(cls, value: float) -> NormalFloat | None:
        """Return a NormalFloat, or None if ``value`` is subnormal."""
        try:
            return cls(value)
        except SubnormalValueError:
            return None

    @property
    def value(self) -> float:
        return self._value

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("NormalFloat is immutable")

    def __float__(self) -> float:
        return self._value

    def _sort_key(self) -> tuple[bool, float]:
        nan = math.isnan(self._value)
        return (nan, 0.0 if nan else self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NormalFloat):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: NormalFloat) -> bool:
        if not isinstance(other, NormalFloat):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __repr__(self) -> str:
        return f"NormalFloat({self._value!r})"

    def __str__(self) -> str:
        return str(self._value)
