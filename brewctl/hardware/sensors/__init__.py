"""
Temperature sensing: the HTTP service client, the simulated ramp used by
``--simulate``, and the reading sampler.
"""

from brewctl.hardware.sensors.base import TemperatureSource
from brewctl.hardware.sensors.processors import TemperatureSampler
from brewctl.hardware.sensors.simulated import SimulatedTemperatureSource
from brewctl.hardware.sensors.temperature_client import RetryingTemperatureSource, TemperatureServiceClient

__all__ = [
    "RetryingTemperatureSource",
    "SimulatedTemperatureSource",
    "TemperatureSampler",
    "TemperatureServiceClient",
    "TemperatureSource",
]
