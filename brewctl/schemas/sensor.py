"""
Sensor Schemas
==============

Pydantic model for the temperature service response.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemperatureReadingSchema(BaseModel):
    """Response body of the temperature service: ``{"degreesC": 64.25}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    degreesC: float = Field(allow_inf_nan=True)

    @field_validator("degreesC", mode="before")
    @classmethod
    def _unreadable_as_nan(cls, value: Any) -> Any:
        # Probe faults come through as null or text; the sampler rejects NaN.
        if value is None or isinstance(value, bool):
            return float("nan")
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return float("nan")
        return value
