"""
Application Constants
=====================

Centralized constants to replace magic numbers throughout the codebase.
Organized by domain for easy discovery and maintenance.

Usage:
    from brewctl.constants import SensorLimits, WireLevels
"""

# =============================================================================
# Sensor validation
# =============================================================================


class SensorLimits:
    """Plausibility limits applied to raw probe readings (degrees Celsius)."""

    MIN_EXCLUSIVE_C = 0.0  # readings <= 0 are treated as probe faults
    MAX_EXCLUSIVE_C = 300.0  # readings >= 300 are treated as probe faults
    MAX_JUMP_C = 10.0  # change vs previous accepted reading that counts as a spike
    DECIMALS = 2


# =============================================================================
# Relay wire sense
# =============================================================================


class WireLevels:
    """
    Level written to each output line for the logical on/off state.

    The heat line drives an SSR input directly (high = energized). The pump
    relay board is active-low.
    """

    HEAT_ON = 1
    HEAT_OFF = 0
    PUMP_ON = 0
    PUMP_OFF = 1


# =============================================================================
# Hardware defaults
# =============================================================================


class Pins:
    """Default BCM pin numbers."""

    HEAT = 27
    PUMP = 6


class Timing:
    """Control-loop timing defaults."""

    RELAY_WINDOW_MS = 5000  # also the PID output ceiling
    TEMP_LOG_INTERVAL_SECONDS = 15
    MIN_CYCLE_SECONDS = 0.5
    SENSOR_HTTP_TIMEOUT_SECONDS = 5
    SENSOR_RETRY_ATTEMPTS = 3
    SENSOR_RETRY_BACKOFF_SECONDS = 1.0
    PERSIST_RETRY_ATTEMPTS = 3
    PERSIST_RETRY_DELAY_SECONDS = 0.5


class PIDDefaults:
    """
    Default gains, parallel form, output in milliseconds of ON time per window.

    Equivalent to Kp=25 with an integral time of 1000 s and a derivative time
    of 9 s.
    """

    KP = 25.0
    KI = 0.025  # per second
    KD = 225.0  # seconds


class StepDefaults:
    """Fixed parameters of the non-recipe steps."""

    PREHEAT_HOLD_MINUTES = 1.0
    PREHEAT_OFFSET_C = 1.0


class SimulationDefaults:
    """Synthetic sensor used by ``--simulate``."""

    START_TEMP_C = 20.0
    RAMP_STEP_C = 5.0
    HOLD_MINUTES = 0.25


DEFAULT_SENSOR_URL = "http://localhost:3001/temp"
DEFAULT_DATABASE_PATH = "database/brewctl.db"
