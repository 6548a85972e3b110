"""
Sensor Data Processors
======================
Validation of raw temperature readings.
"""

from .temperature_sampler import SampleResult, TemperatureSampler, validate_reading

__all__ = ["SampleResult", "TemperatureSampler", "validate_reading"]
