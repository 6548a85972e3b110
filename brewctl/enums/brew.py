"""
Brewing Enumerations
====================

Session lifecycle and brewing step enums.
"""

from enum import Enum, IntEnum


class SessionStatus(str, Enum):
    """
    Lifecycle status of a brew session.
    Used by: BrewController, RecoveryHandler, session schemas
    """

    STOPPED = "stopped"
    RUNNING = "running"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_legacy(cls, code: int) -> "SessionStatus":
        """Map the numeric codes of older session documents (1/2/3)."""
        return {1: cls.STOPPED, 2: cls.RUNNING, 3: cls.COMPLETE}[code]


class BrewStep(IntEnum):
    """
    Ordered brewing steps. Persisted as the integer value.
    Anything past BOIL is treated as DONE.
    """

    PRE_HEAT = 1
    TRANSFER_TO_MASH_TUN = 2
    MASH = 3
    TRANSFER_TO_BOIL_KETTLE = 4
    BOIL = 5
    DONE = 6

    @classmethod
    def from_value(cls, value: int) -> "BrewStep":
        if value >= cls.DONE:
            return cls.DONE
        return cls(value)

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class ExitCode(IntEnum):
    """Process exit codes of the ``brewctl`` controller."""

    OK = 0
    SESSION_NOT_FOUND = 1
    USAGE = 2
    SENSOR_FAILURE = 3
    UNRECOVERABLE = 4
