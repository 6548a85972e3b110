"""
Brew Session Domain Objects
===========================

Working copy of a persisted brew session: the recipe's hold steps, the
progress markers written while brewing and the mash temperature log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from brewctl.enums.brew import BrewStep, SessionStatus
from brewctl.schemas.session import (
    BoilSchema,
    BrewSessionSchema,
    MashStepSchema,
    TempLogEntrySchema,
)


def celsius_to_fahrenheit(temp_c: float) -> float:
    return temp_c * 9 / 5 + 32


@dataclass
class HoldStep:
    """A temperature that must be reached and then held for a duration."""

    target_temp_c: float
    hold_minutes: float
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def is_started(self) -> bool:
        return self.start_time is not None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None

    def stop_time(self, hold_minutes: float | None = None) -> datetime | None:
        """When the hold ends, or None while the target has not been reached."""
        if self.start_time is None:
            return None
        minutes = self.hold_minutes if hold_minutes is None else hold_minutes
        return self.start_time + timedelta(minutes=minutes)

    def _document(self) -> dict[str, Any]:
        return {
            "targetTempC": self.target_temp_c,
            "holdMinutes": self.hold_minutes,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass
class MashStep(HoldStep):
    @classmethod
    def from_schema(cls, schema: MashStepSchema) -> MashStep:
        return cls(schema.targetTempC, schema.holdMinutes, schema.startTime, schema.endTime)


@dataclass
class Boil(HoldStep):
    @classmethod
    def from_schema(cls, schema: BoilSchema) -> Boil:
        return cls(schema.targetTempC, schema.holdMinutes, schema.startTime, schema.endTime)


@dataclass(frozen=True)
class TempLogEntry:
    """Immutable sample of the mash temperature log."""

    timestamp: datetime
    temp_c: float
    temp_f: float

    @classmethod
    def from_celsius(cls, timestamp: datetime, temp_c: float) -> TempLogEntry:
        return cls(
            timestamp=timestamp,
            temp_c=round(temp_c, 2),
            temp_f=round(celsius_to_fahrenheit(temp_c), 2),
        )


@dataclass
class BrewSession:
    """
    Mutable working copy of one brew session document.

    The step machine is the only writer while a control cycle runs; the
    repository owns the canonical copy on disk.
    """

    id: str
    status: SessionStatus = SessionStatus.STOPPED
    step: int = BrewStep.PRE_HEAT
    mash_steps: list[MashStep] = field(default_factory=list)
    boil: Boil | None = None
    mash_temp_data: list[TempLogEntry] = field(default_factory=list)
    last_started: datetime | None = None

    # --- Step helpers ---------------------------------------------------------
    @property
    def current_step(self) -> BrewStep:
        return BrewStep.from_value(self.step)

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    def advance_step(self) -> BrewStep:
        self.step = min(int(self.step) + 1, int(BrewStep.DONE))
        return self.current_step

    def next_mash_step(self) -> tuple[int, MashStep] | None:
        """First mash step without an end time, in recipe order."""
        for index, mash_step in enumerate(self.mash_steps):
            if not mash_step.is_complete:
                return index, mash_step
        return None

    # --- Temperature log ------------------------------------------------------
    @property
    def last_logged_at(self) -> datetime | None:
        if not self.mash_temp_data:
            return None
        return self.mash_temp_data[-1].timestamp

    def append_temperature(self, entry: TempLogEntry) -> None:
        """Append to the log; entries are never rewritten or reordered."""
        last = self.last_logged_at
        if last is not None and entry.timestamp < last:
            raise ValueError(f"temperature log entry at {entry.timestamp} precedes last entry at {last}")
        self.mash_temp_data.append(entry)

    # --- Document mapping -----------------------------------------------------
    @classmethod
    def from_document(cls, document: dict[str, Any]) -> BrewSession:
        """Build a session from a stored document (validated via pydantic)."""
        schema = BrewSessionSchema.model_validate(document)
        return cls(
            id=schema.id,
            status=schema.status,
            step=schema.step,
            mash_steps=[MashStep.from_schema(s) for s in schema.mashSteps],
            boil=Boil.from_schema(schema.boil) if schema.boil else None,
            mash_temp_data=[TempLogEntry(e.timestamp, e.tempC, e.tempF) for e in schema.mashTempData],
            last_started=schema.lastStarted,
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-ready document shape."""
        schema = BrewSessionSchema(
            id=self.id,
            status=self.status,
            step=int(self.step),
            mashSteps=[MashStepSchema(**s._document()) for s in self.mash_steps],
            boil=BoilSchema(**self.boil._document()) if self.boil else None,
            mashTempData=[
                TempLogEntrySchema(timestamp=e.timestamp, tempC=e.temp_c, tempF=e.temp_f)
                for e in self.mash_temp_data
            ],
            lastStarted=self.last_started,
        )
        return schema.model_dump(mode="json")
