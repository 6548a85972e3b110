"""
Base Temperature Source Interface
=================================
Abstract interface for anything the control loop can read a temperature from.
"""

from abc import ABC, abstractmethod


class TemperatureSource(ABC):
    """
    Abstract temperature source.

    Required Methods (must override):
        - read_celsius(): one reading in degrees Celsius

    Optional Methods:
        - begin_cycle(): notified when a new control cycle starts
        - close(): resource cleanup
    """

    @abstractmethod
    def read_celsius(self) -> float:
        """
        Read the current temperature.

        Returns:
            Degrees Celsius; may be NaN when the probe reports garbage.

        Raises:
            SensorTransportFault: If the source could not be queried
        """

    def begin_cycle(self, target_temp_c: float) -> None:
        """Called once before the first read of each control cycle."""
        return None

    def close(self) -> None:
        return None
