"""
Domain Package
==============
Brew session aggregate, value objects and the exception hierarchy.
"""

from .exceptions import (
    BrewCtlError,
    ConfigurationError,
    DeviceError,
    RepositoryError,
    SensorFault,
    SensorJumpFault,
    SensorRangeFault,
    SensorTransportFault,
    SessionNotFoundError,
)
from .session import Boil, BrewSession, HoldStep, MashStep, TempLogEntry, celsius_to_fahrenheit

__all__ = [
    "Boil",
    "BrewCtlError",
    "BrewSession",
    "ConfigurationError",
    "DeviceError",
    "HoldStep",
    "MashStep",
    "RepositoryError",
    "SensorFault",
    "SensorJumpFault",
    "SensorRangeFault",
    "SensorTransportFault",
    "SessionNotFoundError",
    "TempLogEntry",
    "celsius_to_fahrenheit",
]
