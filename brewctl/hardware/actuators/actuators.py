"""
Heat and pump actuation.

Logical on/off requests are translated to wire levels (see
``brewctl.constants.WireLevels``) and only written when the read-back level
differs, so repeated requests never toggle the relays.
"""

import logging

from brewctl.constants import WireLevels
from brewctl.domain.exceptions import DeviceError

from .output_lines import OutputLine

logger = logging.getLogger(__name__)


class Actuators:
    """Heat and pump relays of the brewing rig."""

    def __init__(self, heat_line: OutputLine, pump_line: OutputLine):
        self.heat_line = heat_line
        self.pump_line = pump_line

    @staticmethod
    def _apply(line: OutputLine, level: int) -> bool:
        """Write ``level`` if the line is not already there. Returns True on write."""
        if line.read() == level:
            return False
        line.write(level)
        return True

    def set_heat(self, on: bool) -> bool:
        level = WireLevels.HEAT_ON if on else WireLevels.HEAT_OFF
        written = self._apply(self.heat_line, level)
        if written:
            logger.debug("Turning heat %s.", "on" if on else "off")
        return written

    def set_pump(self, on: bool) -> bool:
        level = WireLevels.PUMP_ON if on else WireLevels.PUMP_OFF
        written = self._apply(self.pump_line, level)
        if written:
            logger.info("Turning pump %s.", "on" if on else "off")
        return written

    def heat_is_on(self) -> bool:
        return self.heat_line.read() == WireLevels.HEAT_ON

    def pump_is_on(self) -> bool:
        return self.pump_line.read() == WireLevels.PUMP_ON

    def all_off(self) -> None:
        """
        Heat off, then pump off. The pump is still attempted when the heat
        line fails; the first failure is re-raised afterwards.
        """
        failure: DeviceError | None = None
        try:
            self.set_heat(False)
        except DeviceError as e:
            logger.error("Failed to turn heat off: %s", e)
            failure = e
        try:
            self.set_pump(False)
        except DeviceError as e:
            logger.error("Failed to turn pump off: %s", e)
            failure = failure or e
        if failure is not None:
            raise failure
