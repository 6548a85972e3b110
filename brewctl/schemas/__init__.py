"""
Schemas Package
===============

Pydantic models validating data that crosses the process boundary: the
persisted session document and the temperature service payload.
"""

from brewctl.schemas.sensor import TemperatureReadingSchema
from brewctl.schemas.session import (
    BoilSchema,
    BrewSessionSchema,
    MashStepSchema,
    TempLogEntrySchema,
)

__all__ = [
    "BoilSchema",
    "BrewSessionSchema",
    "MashStepSchema",
    "TempLogEntrySchema",
    "TemperatureReadingSchema",
]
