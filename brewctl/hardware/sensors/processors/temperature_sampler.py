"""
Temperature Sampler
===================
Validates and de-spikes raw probe readings before they reach the PID loop.

Rules, in order:
    1. Not finite, <= 0 or >= 300 °C: range fault, fall back to the previous value.
    2. 10 °C or more above a previous accepted value: jump fault, fall back.
       Drops are accepted (cold water or grain added to the kettle).
    3. Otherwise accept, rounded to two decimals.

Faults are recoverable: they are returned, never raised. The control loop
logs them with the session context.
"""

import math
from dataclasses import dataclass
from typing import Any

from brewctl.constants import SensorLimits
from brewctl.domain.exceptions import SensorFault, SensorJumpFault, SensorRangeFault


@dataclass(frozen=True)
class SampleResult:
    """Outcome of validating one raw reading."""

    value: float
    accepted: bool
    fault: SensorFault | None = None


def _as_float(raw: Any) -> float:
    if isinstance(raw, bool):
        return math.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


def validate_reading(raw: Any, previous: float) -> SampleResult:
    """
    Validate ``raw`` against the previous accepted reading.

    ``previous`` is 0 until a first reading has been accepted; the first
    in-range reading is always taken.
    """
    value = _as_float(raw)
    if not math.isfinite(value) or value <= SensorLimits.MIN_EXCLUSIVE_C or value >= SensorLimits.MAX_EXCLUSIVE_C:
        fault = SensorRangeFault(
            f"Temp range error! Read {raw}, using prevTemp of {previous} instead.",
            detail={"raw": raw, "previous": previous},
        )
        return SampleResult(previous, False, fault)

    if previous > 0 and value - previous >= SensorLimits.MAX_JUMP_C:
        fault = SensorJumpFault(
            f"Temp jump error! Read {value}, using prevTemp of {previous} instead.",
            detail={"raw": value, "previous": previous},
        )
        return SampleResult(previous, False, fault)

    return SampleResult(round(value, SensorLimits.DECIMALS), True)


class TemperatureSampler:
    """Stateful wrapper remembering the last accepted reading."""

    def __init__(self, previous: float = 0.0):
        self.previous = previous
        self.rejected = 0

    def sample(self, raw: Any) -> SampleResult:
        """
        Validate ``raw`` and remember it when accepted.

        A rejected result carries the fallback value and the fault; check
        ``has_reading`` before using the value (nothing to fall back to yet).
        """
        result = validate_reading(raw, self.previous)
        if result.accepted:
            self.previous = result.value
        else:
            self.rejected += 1
        return result

    @property
    def has_reading(self) -> bool:
        return self.previous > 0

    def reset(self) -> None:
        self.previous = 0.0
