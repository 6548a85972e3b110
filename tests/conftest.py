"""
Shared test fixtures for the brewctl test suite.

Provides:
- File-backed SQLite database (WAL needs a real file) with the schema created
- Repository and session writer wired to the test database
- In-memory heat/pump output lines and the Actuators driving them
- A fake clock, a kettle-like ramping temperature source and a scripted source
- Helpers to seed brew sessions

Usage:
    def test_example(seed_session, session_repo):
        session = seed_session(mash=[(67, 60)])
        assert session_repo.load(session.id).mash_steps[0].target_temp_c == 67
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from brewctl.config import AppConfig
from brewctl.constants import WireLevels
from brewctl.control_loops.persistence import SessionWriter
from brewctl.control_loops.step_machine import StepMachine
from brewctl.domain.session import Boil, BrewSession, MashStep
from brewctl.enums.brew import BrewStep, SessionStatus
from brewctl.hardware.actuators import Actuators, MemoryOutputLine, SimulatedValve
from brewctl.hardware.sensors.base import TemperatureSource
from infrastructure.database.repositories.brew_sessions import BrewSessionRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)

START = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


# ========================== Clock & Sources ================================


class FakeClock:
    """Callable clock; ``sleep`` advances it instead of blocking."""

    def __init__(self, start: datetime = START):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class RampSource(TemperatureSource):
    """Kettle model: every read takes ``seconds_per_read`` and moves the
    temperature toward the current target by at most ``step_c``."""

    def __init__(self, clock: FakeClock, start_c: float = 20.0, step_c: float = 5.0, seconds_per_read: float = 5.0):
        self.clock = clock
        self.current = start_c
        self.step_c = step_c
        self.seconds_per_read = seconds_per_read
        self.target: float | None = None
        self.targets: list[float] = []
        self.reads = 0
        self.closed = False

    def begin_cycle(self, target_temp_c: float) -> None:
        self.target = target_temp_c
        self.targets.append(target_temp_c)

    def read_celsius(self) -> float:
        self.clock.advance(self.seconds_per_read)
        self.reads += 1
        if self.target is not None and self.current < self.target:
            self.current += min(self.step_c, self.target - self.current)
        return self.current

    def close(self) -> None:
        self.closed = True


class ScriptedSource(TemperatureSource):
    """Replays readings in order; exception instances in the script are raised.
    The last reading repeats once the script runs out."""

    def __init__(self, clock: FakeClock, readings: list[Any], seconds_per_read: float = 5.0):
        self.clock = clock
        self.readings = list(readings)
        self.seconds_per_read = seconds_per_read
        self.reads = 0

    def read_celsius(self) -> float:
        self.clock.advance(self.seconds_per_read)
        index = min(self.reads, len(self.readings) - 1)
        self.reads += 1
        value = self.readings[index]
        if isinstance(value, BaseException):
            raise value
        return value


class StopScript(Exception):
    """Raised by a ScriptedSource to break out of a control cycle."""


class FullPower:
    """PID stand-in that always asks for the whole relay window."""

    def __init__(self, power: float = 5000.0):
        self.power = power
        self.target: float | None = None

    def set_target(self, temp_c: float) -> None:
        self.target = temp_c

    def reset(self) -> None:
        return None

    def compute(self, current_value: float, now: float | None = None) -> float:
        return self.power if math.isfinite(current_value) else 0.0


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def ramp_source(clock):
    return RampSource(clock)


# ========================== Config ==========================================


@pytest.fixture()
def config(tmp_path):
    """AppConfig for tests: memory relays, no pacing, no retry delays."""
    return AppConfig(
        environment="testing",
        log_dir=str(tmp_path / "logs"),
        database_path=str(tmp_path / "brewctl.db"),
        sensor_url="http://localhost:3001/temp",
        gpio_backend="memory",
        min_cycle_seconds=0.0,
        temp_log_interval_seconds=15.0,
        persist_retry_attempts=3,
        persist_retry_delay_seconds=0.0,
        sensor_retry_backoff_seconds=0.0,
        preheat_hold_minutes=1.0,
        preheat_offset_c=1.0,
        simulation_hold_minutes=0.25,
    )


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler(config):
    """File-backed SQLite database in tmp_path with the schema created."""
    handler = SQLiteDatabaseHandler(config.database_path)
    handler.init_db()
    yield handler
    handler.close_db()


@pytest.fixture()
def session_repo(db_handler):
    """BrewSessionRepository backed by the test DB."""
    return BrewSessionRepository(db_handler)


@pytest.fixture()
def writer(session_repo):
    return SessionWriter(session_repo, retry_attempts=3, retry_delay_seconds=0.0, sleep=lambda _s: None)


# ========================== Hardware Fixtures ==============================


@pytest.fixture()
def heat_line():
    return MemoryOutputLine("heat", initial=WireLevels.HEAT_OFF)


@pytest.fixture()
def pump_line():
    return MemoryOutputLine("pump", initial=WireLevels.PUMP_OFF)


@pytest.fixture()
def actuators(heat_line, pump_line):
    return Actuators(heat_line=heat_line, pump_line=pump_line)


@pytest.fixture()
def valve():
    return SimulatedValve()


# ========================== Seed / Factory Helpers =========================


@pytest.fixture()
def seed_session(session_repo) -> Callable[..., BrewSession]:
    """Create and store a brew session.

    ``mash`` is a list of ``(target_temp_c, hold_minutes)`` tuples or MashStep
    objects; ``boil`` a tuple, a Boil or None.
    """
    counter = {"n": 0}

    def _seed(
        session_id: str | None = None,
        *,
        mash: list[Any] | None = None,
        boil: Any = (100.0, 60.0),
        step: int = BrewStep.PRE_HEAT,
        status: SessionStatus = SessionStatus.STOPPED,
        **fields: Any,
    ) -> BrewSession:
        counter["n"] += 1
        mash_steps = [m if isinstance(m, MashStep) else MashStep(*m) for m in (mash or [])]
        if boil is not None and not isinstance(boil, Boil):
            boil = Boil(*boil)
        session = BrewSession(
            id=session_id or f"session-{counter['n']}",
            status=status,
            step=step,
            mash_steps=mash_steps,
            boil=boil,
            **fields,
        )
        session_repo.create(session)
        return session

    return _seed


@pytest.fixture()
def make_machine(writer, actuators, config, clock, valve):
    """Build a StepMachine around the shared fixtures."""

    def _make(session: BrewSession, source: TemperatureSource, **kwargs: Any) -> StepMachine:
        kwargs.setdefault("valve", valve)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sleep", clock.sleep)
        return StepMachine(
            session,
            kwargs.pop("writer", writer),
            kwargs.pop("actuators", actuators),
            source,
            kwargs.pop("config", config),
            **kwargs,
        )

    return _make


@pytest.fixture()
def reset_logging():
    """Remove the handlers setup_logging adds to the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "name", "") in {"brewctl_console", "brewctl_file"}:
            root.removeHandler(handler)
            handler.close()
