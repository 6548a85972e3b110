"""
Digital Output Lines
====================

The relay boards are driven through plain digital outputs. Two line types
share one small interface (``read``/``write``):

    - GPIOOutputLine: a Raspberry Pi BCM pin driven through RPi.GPIO.
    - MemoryOutputLine: holds the level in memory (bench runs, tests).
"""

import logging
from typing import Protocol, runtime_checkable

from brewctl.domain.exceptions import DeviceError

logger = logging.getLogger(__name__)


@runtime_checkable
class OutputLine(Protocol):
    """A named digital output whose level can be read back."""

    name: str

    def read(self) -> int: ...

    def write(self, value: int) -> None: ...


class GPIOOutputLine:
    """
    Controls one relay input through Raspberry Pi GPIO.

    Attributes:
        name (str): The name of the controlled device.
        pin (int): The BCM pin driving the relay.
    """

    def __init__(self, name: str, pin: int, initial: int):
        """
        Configures the pin as an output at a known level.

        Args:
            name (str): The name of the device.
            pin (int): The BCM pin number.
            initial (int): Level to drive at setup, normally the line's off level.
        """
        self.name = name
        self.pin = pin
        self.GPIO = self._setup_gpio()
        try:
            self.GPIO.setwarnings(False)
            self.GPIO.setmode(self.GPIO.BCM)
            self.GPIO.setup(self.pin, self.GPIO.OUT, initial=self._level(initial))
        except RuntimeError as e:
            raise DeviceError(f"Cannot configure GPIO pin {pin} for {name}: {e}", detail={"pin": pin}) from e
        logger.info("GPIO pin %s set as OUTPUT for %s (initial=%s)", self.pin, self.name, initial)

    def _setup_gpio(self):
        """Imports RPi.GPIO; only available on a Raspberry Pi."""
        try:
            import RPi.GPIO as GPIO  # type: ignore

            return GPIO
        except (ImportError, RuntimeError) as e:
            raise DeviceError(
                "RPi.GPIO is not available. Install the 'hardware' extra on the Pi "
                "or set BREWCTL_GPIO_BACKEND=memory.",
                detail={"line": self.name},
            ) from e

    def _level(self, value: int):
        return self.GPIO.HIGH if value else self.GPIO.LOW

    def read(self) -> int:
        try:
            return 1 if self.GPIO.input(self.pin) else 0
        except RuntimeError as e:
            raise DeviceError(f"Cannot read GPIO pin {self.pin} ({self.name}): {e}") from e

    def write(self, value: int) -> None:
        try:
            self.GPIO.output(self.pin, self._level(value))
        except RuntimeError as e:
            raise DeviceError(f"Cannot write GPIO pin {self.pin} ({self.name}): {e}") from e
        logger.debug("GPIO pin %s (%s) <- %s", self.pin, self.name, value)

    def __repr__(self) -> str:
        return f"GPIOOutputLine(name={self.name!r}, pin={self.pin})"


class MemoryOutputLine:
    """Output line kept in memory; records every write."""

    def __init__(self, name: str, initial: int = 0):
        self.name = name
        self.level = 1 if initial else 0
        self.writes: list[int] = []

    def read(self) -> int:
        return self.level

    def write(self, value: int) -> None:
        self.level = 1 if value else 0
        self.writes.append(self.level)
        logger.debug("Memory line %s <- %s", self.name, self.level)

    def __repr__(self) -> str:
        return f"MemoryOutputLine(name={self.name!r}, level={self.level})"
