"""Centralized exception hierarchy for brewctl.

All domain and service exceptions inherit from :class:`BrewCtlError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Hierarchy
---------
::

    BrewCtlError (base)
    ├── SensorFault
    │   ├── SensorRangeFault      (reading not finite or outside the probe range)
    │   ├── SensorJumpFault       (reading spiked too far above the previous one)
    │   └── SensorTransportFault  (temperature service unreachable / bad payload)
    ├── RepositoryError           (database / persistence)
    ├── SessionNotFoundError      (no brew session with the requested id)
    ├── DeviceError               (GPIO / relay communication)
    └── ConfigurationError        (missing / invalid config)
"""

from __future__ import annotations


class BrewCtlError(Exception):
    """Base exception for all brewctl application errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging (session id, step, target, reading, ...).
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Sensor faults ────────────────────────────────────────────────────


class SensorFault(BrewCtlError):
    """A temperature reading could not be used."""


class SensorRangeFault(SensorFault):
    """Reading is not a finite number inside the probe's plausible range."""


class SensorJumpFault(SensorFault):
    """Reading rose too far above the previous accepted value (a spike)."""


class SensorTransportFault(SensorFault):
    """The temperature service failed (network, timeout, non-JSON, bad schema)."""


# ── Persistence ──────────────────────────────────────────────────────


class RepositoryError(BrewCtlError):
    """Database / persistence layer failure."""


class SessionNotFoundError(BrewCtlError):
    """Requested brew session does not exist."""


# ── Hardware / config ────────────────────────────────────────────────


class DeviceError(BrewCtlError):
    """Hardware communication failure."""


class ConfigurationError(BrewCtlError):
    """Missing or invalid application configuration."""
