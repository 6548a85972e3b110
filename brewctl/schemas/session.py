"""
Brew Session Schemas
====================

Pydantic models for the persisted brew session document.

Documents keep camelCase keys. Older documents (numeric status codes,
``temp``/``time`` step keys, ``mashStartTime``-style timestamps in epoch
milliseconds) are accepted on input and normalized on output.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from brewctl.enums.brew import SessionStatus
from brewctl.utils.time import coerce_datetime


def _timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    parsed = coerce_datetime(value)
    if parsed is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    return parsed


class HoldStepSchema(BaseModel):
    """Shared shape of a mash step and the boil."""

    model_config = ConfigDict(populate_by_name=True)

    targetTempC: float = Field(validation_alias=AliasChoices("targetTempC", "temp"))
    holdMinutes: float = Field(ge=0, validation_alias=AliasChoices("holdMinutes", "time"))
    startTime: datetime | None = None
    endTime: datetime | None = None

    @field_validator("startTime", "endTime", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _timestamp(value)


class MashStepSchema(HoldStepSchema):
    startTime: datetime | None = Field(
        default=None, validation_alias=AliasChoices("startTime", "mashStartTime")
    )
    endTime: datetime | None = Field(default=None, validation_alias=AliasChoices("endTime", "mashEndTime"))


class BoilSchema(HoldStepSchema):
    startTime: datetime | None = Field(
        default=None, validation_alias=AliasChoices("startTime", "boilStartTime")
    )
    endTime: datetime | None = Field(default=None, validation_alias=AliasChoices("endTime", "boilEndTime"))


class TempLogEntrySchema(BaseModel):
    """One sample of the mash temperature log."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "time"))
    tempC: float
    tempF: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _timestamp(value)


class BrewSessionSchema(BaseModel):
    """The whole persisted brew session document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: SessionStatus = SessionStatus.STOPPED
    step: int = Field(default=1, ge=1)
    mashSteps: list[MashStepSchema] = Field(default_factory=list)
    boil: BoilSchema | None = None
    mashTempData: list[TempLogEntrySchema] = Field(default_factory=list)
    lastStarted: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if isinstance(value, bool) or value is None:
            raise ValueError("session id must be a string or integer")
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return SessionStatus.from_legacy(value)
            except KeyError:
                raise ValueError(f"unknown legacy status code {value}") from None
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("lastStarted", mode="before")
    @classmethod
    def _parse_last_started(cls, value: Any) -> datetime | None:
        return _timestamp(value)
