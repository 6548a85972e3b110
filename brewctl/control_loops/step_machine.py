"""
StepMachine: drives a brew session through its steps.

    PreHeat(1) -> TransferToMashTun(2) -> Mash(3) -> TransferToBoilKettle(4) -> Boil(5) -> Done

Temperature-controlled steps run a control cycle: read the probe, validate
the reading, compute PID power, decide the relay window state and switch the
heat relay, until the hold duration has elapsed after the target was first
reached. Progress is persisted so a restarted process resumes at the first
unfinished step.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from brewctl.config import AppConfig
from brewctl.controllers.control_algorithms import PIDController
from brewctl.controllers.relay_window import RelayWindow
from brewctl.domain.exceptions import SensorFault
from brewctl.domain.session import BrewSession, HoldStep, TempLogEntry, celsius_to_fahrenheit
from brewctl.enums.brew import BrewStep, SessionStatus
from brewctl.hardware.actuators.actuators import Actuators
from brewctl.hardware.actuators.valve import SimulatedValve
from brewctl.hardware.sensors.base import TemperatureSource
from brewctl.hardware.sensors.processors.temperature_sampler import TemperatureSampler
from brewctl.utils.time import format_clock, to_millis, utc_now

from .persistence import SessionWriter

logger = logging.getLogger(__name__)


@dataclass
class ControlCycle:
    """State of one temperature hold: the loop context of a control cycle."""

    label: str
    target_temp_c: float
    hold_minutes: float
    hold_step: HoldStep | None = None  # mash step or boil being timed; None for pre-heat
    start_time: datetime | None = None
    stop_time: datetime | None = None
    last_log_time: datetime | None = None
    temp_c: float | None = None
    power: float = 0.0
    heat_on: bool = False
    iterations: int = 0

    @property
    def has_hit_temp(self) -> bool:
        return self.start_time is not None

    def is_finished(self, now: datetime) -> bool:
        return self.stop_time is not None and now >= self.stop_time


class StepMachine:
    """
    Brewing process state machine for one session.

    The machine owns the working copy of the session for the duration of
    :meth:`run` and is its only writer.
    """

    def __init__(
        self,
        session: BrewSession,
        writer: SessionWriter,
        actuators: Actuators,
        temperature_source: TemperatureSource,
        config: AppConfig,
        *,
        sampler: TemperatureSampler | None = None,
        pid: PIDController | None = None,
        valve: SimulatedValve | None = None,
        simulate: bool = False,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.writer = writer
        self.actuators = actuators
        self.source = temperature_source
        self.config = config
        self.sampler = sampler or TemperatureSampler()
        self.pid = pid or PIDController(
            kp=config.pid_kp,
            ki=config.pid_ki,
            kd=config.pid_kd,
            output_max=config.window_size_ms,
        )
        self.valve = valve or SimulatedValve()
        self.simulate = simulate
        self._clock = clock
        self._sleep = sleep
        self.window = RelayWindow(config.window_size_ms, to_millis(clock()))
        self.cycles_run: list[ControlCycle] = []
        self.active_cycle: ControlCycle | None = None

    # --- Step dispatch --------------------------------------------------------
    def run(self) -> BrewSession:
        """Run steps until the session is complete."""
        while True:
            step = self.session.current_step
            self._mark_running()
            if step == BrewStep.PRE_HEAT:
                self._pre_heat()
            elif step == BrewStep.TRANSFER_TO_MASH_TUN:
                logger.info("Step 2: Transfer water to MT (dough-in).")
                self._transfer("mash tun")
            elif step == BrewStep.MASH:
                self._mash()
            elif step == BrewStep.TRANSFER_TO_BOIL_KETTLE:
                logger.info("Step 4: Transfer wort to BK.")
                self._transfer("boil kettle")
            elif step == BrewStep.BOIL:
                self._boil()
            else:
                self._complete()
                return self.session

    def _mark_running(self) -> None:
        if self.session.status != SessionStatus.RUNNING:
            self.session.status = SessionStatus.RUNNING
            self.writer.save(self.session, "Session running.")

    def _advance(self, reason: str) -> None:
        new_step = self.session.advance_step()
        logger.info("Session %s moved to step %d (%s).", self.session.id, int(new_step), new_step.label)
        self.writer.save_durable(self.session, reason)

    def _pre_heat(self) -> None:
        logger.info("Step 1: Heat water for mash.")
        if not self.session.mash_steps:
            logger.info("No mash steps found. Moving to next step.")
            self._advance("No mash steps; pre-heat skipped.")
            return
        target = self.session.mash_steps[0].target_temp_c - self.config.preheat_offset_c
        logger.info("Starting pid with targetTemp %s for step 1.", target)
        cycle = ControlCycle("pre-heat", target, self.config.preheat_hold_minutes)
        self.run_cycle(cycle)
        self._advance("Pre-heat complete.")

    def _transfer(self, destination: str) -> None:
        self.valve.move_to(destination)
        self._advance(f"Transfer to {destination} complete.")

    def _mash(self) -> None:
        logger.info("Step 3: Mash")
        found = self.session.next_mash_step()
        if found is None:
            logger.info("All mash steps complete.")
            self._advance("All mash steps complete.")
            return
        index, mash_step = found
        logger.info(
            "Starting mash step %d/%d with temp: %s and time: %s.",
            index + 1,
            len(self.session.mash_steps),
            mash_step.target_temp_c,
            mash_step.hold_minutes,
        )
        cycle = ControlCycle(f"mash step {index + 1}", mash_step.target_temp_c, mash_step.hold_minutes, mash_step)
        self.run_cycle(cycle)

    def _boil(self) -> None:
        logger.info("Step 5: Boil.")
        boil = self.session.boil
        if boil is None:
            logger.warning("Session %s has no boil configured. Skipping boil.", self.session.id)
            self._advance("No boil configured.")
            return
        if boil.is_complete:
            self._advance("Boil already complete.")
            return
        cycle = ControlCycle("boil", boil.target_temp_c, boil.hold_minutes, boil)
        self.run_cycle(cycle)
        self._advance("Boil complete.")

    def _complete(self) -> None:
        logger.info("Steps complete.")
        self.session.status = SessionStatus.COMPLETE
        self.writer.save_durable(self.session, "All brew session steps complete.")

    # --- Control cycle --------------------------------------------------------
    def run_cycle(self, cycle: ControlCycle) -> ControlCycle:
        """
        Hold ``cycle.target_temp_c`` for ``cycle.hold_minutes`` once reached.

        There is no timeout on reaching the target; the hold only starts
        timing after the first reading at or above it.
        """
        if self.simulate:
            # The simulated kettle restarts cold every cycle.
            cycle.hold_minutes = self.config.simulation_hold_minutes
            self.sampler.reset()
        self.pid.reset()
        self.pid.set_target(cycle.target_temp_c)
        self.active_cycle = cycle
        self.source.begin_cycle(cycle.target_temp_c)
        cycle.last_log_time = self.session.last_logged_at

        if cycle.hold_step is not None and cycle.hold_step.is_started:
            cycle.start_time = cycle.hold_step.start_time
            cycle.stop_time = cycle.hold_step.stop_time(cycle.hold_minutes)
            logger.info(
                "Resuming %s hold started at %s (stop at %s).",
                cycle.label,
                format_clock(cycle.start_time),
                format_clock(cycle.stop_time),
            )

        while True:
            iteration_started = self._clock()
            raw = self.source.read_celsius()
            now = self._clock()
            cycle.iterations += 1
            result = self.sampler.sample(raw)
            if not result.accepted:
                self._log_sensor_fault(cycle, result.fault)

            if not self.sampler.has_reading:
                logger.warning(
                    "Session %s, step %d, target %s: no valid temperature yet (read %s); heat held off.",
                    self.session.id,
                    int(self.session.step),
                    cycle.target_temp_c,
                    raw,
                )
                cycle.heat_on = False
                self.actuators.set_heat(False)
                self._pace(iteration_started)
                continue

            temp = result.value
            cycle.temp_c = temp
            cycle.power = self.pid.compute(temp, now.timestamp())

            if not cycle.has_hit_temp and temp >= cycle.target_temp_c:
                self._start_hold(cycle, now)

            logger.debug(
                "hasHitTemp: %s, actualTemp: %s, targetTemp: %s, Now-windowStartTime: %s, WindowSize: %s, "
                "actualP: %s, relay: %s",
                cycle.has_hit_temp,
                temp,
                cycle.target_temp_c,
                self.window.elapsed(to_millis(now)),
                self.window.window_size_ms,
                cycle.power,
                "ON" if cycle.heat_on else "OFF",
            )

            cycle.heat_on = self.window.decide(cycle.power, to_millis(now))
            self.actuators.set_heat(cycle.heat_on)

            if self._log_due(cycle, now):
                self._log_temperature(cycle, now)

            if cycle.is_finished(now):
                break
            self._pace(iteration_started)

        self._finish_cycle(cycle)
        self.cycles_run.append(cycle)
        self.active_cycle = None
        return cycle

    def _log_sensor_fault(self, cycle: ControlCycle, fault: SensorFault) -> None:
        logger.warning(
            "Session %s, step %d, target %s: %s",
            self.session.id,
            int(self.session.step),
            cycle.target_temp_c,
            fault,
            extra={"detail": fault.detail},
        )

    def _start_hold(self, cycle: ControlCycle, now: datetime) -> None:
        cycle.start_time = now
        if cycle.hold_step is not None:
            cycle.hold_step.start_time = now
            cycle.stop_time = cycle.hold_step.stop_time(cycle.hold_minutes)
        else:
            cycle.stop_time = HoldStep(cycle.target_temp_c, cycle.hold_minutes, start_time=now).stop_time()
        logger.info(
            "Session %s reached %s for %s at %s; holding %s min until %s.",
            self.session.id,
            cycle.target_temp_c,
            cycle.label,
            format_clock(now),
            cycle.hold_minutes,
            format_clock(cycle.stop_time),
        )
        if cycle.hold_step is not None:
            self.writer.save_durable(self.session, f"Pid hit temp start time ({cycle.label}).")

    def _log_due(self, cycle: ControlCycle, now: datetime) -> bool:
        if cycle.last_log_time is None:
            return True
        return (now - cycle.last_log_time).total_seconds() >= self.config.temp_log_interval_seconds

    def _log_temperature(self, cycle: ControlCycle, now: datetime) -> None:
        temp = cycle.temp_c
        self.session.append_temperature(TempLogEntry.from_celsius(now, temp))
        cycle.last_log_time = now
        self.writer.save(self.session, "Temperature logged.")
        logger.info(
            "Session:%s, Step:%d, Target:%.2f, Temp C:%.2f, Temp F:%.2f, ActualP:%.0f, Relay:%s, "
            "Temp Hit:%s, Temp Hold:%s min, Now:%s, Stop:%s",
            self.session.id,
            int(self.session.step),
            cycle.target_temp_c,
            temp,
            celsius_to_fahrenheit(temp),
            cycle.power,
            "ON " if cycle.heat_on else "OFF",
            format_clock(cycle.start_time),
            cycle.hold_minutes,
            format_clock(now),
            format_clock(cycle.stop_time),
        )

    def _pace(self, iteration_started: datetime) -> None:
        if self.config.min_cycle_seconds <= 0:
            return
        elapsed = (self._clock() - iteration_started).total_seconds()
        remaining = self.config.min_cycle_seconds - elapsed
        if remaining > 0:
            self._sleep(remaining)

    def _finish_cycle(self, cycle: ControlCycle) -> None:
        logger.info("Pid loop complete (%s).", cycle.label)
        if cycle.hold_step is not None:
            cycle.hold_step.end_time = self._clock()
        cycle.heat_on = False
        self.actuators.set_heat(False)
        logger.info("Turn off heater.")
        if cycle.hold_step is not None and self.session.current_step == BrewStep.MASH:
            self.writer.save_durable(self.session, f"{cycle.label.capitalize()} complete.")
