"""
Configuration for brewctl
=========================
Runtime settings for the brewing controller, loaded from ``BREWCTL_*``
environment variables with Raspberry Pi friendly defaults.
Setups the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler

from brewctl.constants import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_SENSOR_URL,
    PIDDefaults,
    Pins,
    SimulationDefaults,
    StepDefaults,
    Timing,
)
from brewctl.domain.exceptions import ConfigurationError

GPIO_BACKENDS = ("gpio", "memory")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("BREWCTL_ENV", "development"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("BREWCTL_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("BREWCTL_LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: os.getenv("BREWCTL_LOG_DIR", "logs"))
    database_path: str = field(default_factory=lambda: os.getenv("BREWCTL_DATABASE_PATH", DEFAULT_DATABASE_PATH))

    # Temperature service
    sensor_url: str = field(default_factory=lambda: os.getenv("BREWCTL_SENSOR_URL", DEFAULT_SENSOR_URL))
    sensor_timeout_seconds: float = field(
        default_factory=lambda: _env_float("BREWCTL_SENSOR_TIMEOUT", Timing.SENSOR_HTTP_TIMEOUT_SECONDS)
    )
    sensor_retry_attempts: int = field(
        default_factory=lambda: _env_int("BREWCTL_SENSOR_RETRY_ATTEMPTS", Timing.SENSOR_RETRY_ATTEMPTS)
    )
    sensor_retry_backoff_seconds: float = field(
        default_factory=lambda: _env_float("BREWCTL_SENSOR_RETRY_BACKOFF", Timing.SENSOR_RETRY_BACKOFF_SECONDS)
    )

    # Relays
    gpio_backend: str = field(default_factory=lambda: os.getenv("BREWCTL_GPIO_BACKEND", "gpio").lower())
    heat_gpio_pin: int = field(default_factory=lambda: _env_int("BREWCTL_HEAT_PIN", Pins.HEAT))
    pump_gpio_pin: int = field(default_factory=lambda: _env_int("BREWCTL_PUMP_PIN", Pins.PUMP))

    # Control loop
    window_size_ms: float = field(
        default_factory=lambda: _env_float("BREWCTL_WINDOW_SIZE_MS", Timing.RELAY_WINDOW_MS)
    )
    pid_kp: float = field(default_factory=lambda: _env_float("BREWCTL_PID_KP", PIDDefaults.KP))
    pid_ki: float = field(default_factory=lambda: _env_float("BREWCTL_PID_KI", PIDDefaults.KI))
    pid_kd: float = field(default_factory=lambda: _env_float("BREWCTL_PID_KD", PIDDefaults.KD))
    temp_log_interval_seconds: float = field(
        default_factory=lambda: _env_float("BREWCTL_TEMP_LOG_INTERVAL", Timing.TEMP_LOG_INTERVAL_SECONDS)
    )
    min_cycle_seconds: float = field(
        default_factory=lambda: _env_float("BREWCTL_MIN_CYCLE_SECONDS", Timing.MIN_CYCLE_SECONDS)
    )
    persist_retry_attempts: int = field(
        default_factory=lambda: _env_int("BREWCTL_PERSIST_RETRY_ATTEMPTS", Timing.PERSIST_RETRY_ATTEMPTS)
    )
    persist_retry_delay_seconds: float = field(
        default_factory=lambda: _env_float("BREWCTL_PERSIST_RETRY_DELAY", Timing.PERSIST_RETRY_DELAY_SECONDS)
    )

    # Fixed steps
    preheat_hold_minutes: float = field(
        default_factory=lambda: _env_float("BREWCTL_PREHEAT_HOLD_MINUTES", StepDefaults.PREHEAT_HOLD_MINUTES)
    )
    preheat_offset_c: float = field(
        default_factory=lambda: _env_float("BREWCTL_PREHEAT_OFFSET_C", StepDefaults.PREHEAT_OFFSET_C)
    )

    # Simulation mode (--simulate)
    simulation_start_temp_c: float = field(
        default_factory=lambda: _env_float("BREWCTL_SIM_START_TEMP_C", SimulationDefaults.START_TEMP_C)
    )
    simulation_ramp_step_c: float = field(
        default_factory=lambda: _env_float("BREWCTL_SIM_RAMP_STEP_C", SimulationDefaults.RAMP_STEP_C)
    )
    simulation_hold_minutes: float = field(
        default_factory=lambda: _env_float("BREWCTL_SIM_HOLD_MINUTES", SimulationDefaults.HOLD_MINUTES)
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        problems = validate_config(self)
        if problems:
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems), detail={"problems": problems})


def validate_config(config: AppConfig) -> list[str]:
    """Return a list of human readable problems, empty when valid."""
    problems: list[str] = []
    if config.gpio_backend not in GPIO_BACKENDS:
        problems.append(f"gpio_backend must be one of {', '.join(GPIO_BACKENDS)} (got {config.gpio_backend!r})")
    if config.heat_gpio_pin == config.pump_gpio_pin:
        problems.append("heat and pump must use different GPIO pins")
    if config.window_size_ms <= 0:
        problems.append("window_size_ms must be positive")
    if config.temp_log_interval_seconds < 0:
        problems.append("temp_log_interval_seconds must not be negative")
    if config.min_cycle_seconds < 0:
        problems.append("min_cycle_seconds must not be negative")
    if config.sensor_timeout_seconds <= 0:
        problems.append("sensor_timeout_seconds must be positive")
    if config.sensor_retry_attempts < 1:
        problems.append("sensor_retry_attempts must be at least 1")
    if config.persist_retry_attempts < 1:
        problems.append("persist_retry_attempts must be at least 1")
    for name in ("pid_kp", "pid_ki", "pid_kd"):
        if getattr(config, name) < 0:
            problems.append(f"{name} must not be negative")
    if config.preheat_hold_minutes < 0 or config.simulation_hold_minutes < 0:
        problems.append("hold durations must not be negative")
    if config.simulation_ramp_step_c <= 0:
        problems.append("simulation_ramp_step_c must be positive")
    return problems


def setup_logging(debug: bool = False, log_dir: str = "logs", level: str | None = None) -> None:
    """Setup logging configuration."""
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "INFO").upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when called multiple times
    has_console = any(getattr(h, "name", "") == "brewctl_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "brewctl_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "brewctl_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "brewctl.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.name = "brewctl_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"brewctl_console", "brewctl_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    # Connection pool chatter on every sensor poll
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
