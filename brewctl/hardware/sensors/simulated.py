"""
Simulated temperature source for ``--simulate`` runs.

Each control cycle starts from a cold reading and climbs a fixed step per
read until it reaches the cycle's target, then holds there.
"""

import logging

from .base import TemperatureSource

logger = logging.getLogger(__name__)


class SimulatedTemperatureSource(TemperatureSource):
    def __init__(self, start_temp_c: float = 20.0, ramp_step_c: float = 5.0):
        self.start_temp_c = start_temp_c
        self.ramp_step_c = ramp_step_c
        self._current = start_temp_c
        self._target: float | None = None

    def begin_cycle(self, target_temp_c: float) -> None:
        self._current = self.start_temp_c
        self._target = target_temp_c

    def read_celsius(self) -> float:
        if self._target is None or self._current < self._target:
            self._current += self.ramp_step_c
        logger.debug("[SIMULATION MODE] Setting temp to %s", self._current)
        return self._current
