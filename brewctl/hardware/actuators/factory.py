"""
Output line factory: builds the heat and pump lines for the configured
GPIO backend, each starting at its off level.
"""

import logging

from brewctl.config import AppConfig
from brewctl.constants import WireLevels
from brewctl.domain.exceptions import ConfigurationError

from .actuators import Actuators
from .output_lines import GPIOOutputLine, MemoryOutputLine

logger = logging.getLogger(__name__)


class ActuatorFactory:
    """Creates the Actuators for an AppConfig."""

    @staticmethod
    def create(config: AppConfig) -> Actuators:
        backend = config.gpio_backend
        if backend == "gpio":
            heat = GPIOOutputLine("heat", config.heat_gpio_pin, initial=WireLevels.HEAT_OFF)
            pump = GPIOOutputLine("pump", config.pump_gpio_pin, initial=WireLevels.PUMP_OFF)
        elif backend == "memory":
            logger.warning("Using in-memory output lines; no relay will switch.")
            heat = MemoryOutputLine("heat", initial=WireLevels.HEAT_OFF)
            pump = MemoryOutputLine("pump", initial=WireLevels.PUMP_OFF)
        else:
            raise ConfigurationError(f"Unknown GPIO backend: {backend}")
        return Actuators(heat_line=heat, pump_line=pump)
