"""
BrewController: attaches the process to one brew session and runs it.

    load -> (not found | complete) -> shutdown
         -> Running, lastStarted=now, save, pump on, heat off -> StepMachine -> shutdown

Outcomes are mapped to process exit codes (see ``ExitCode``).
"""

import logging
import time
from datetime import datetime
from typing import Callable

from brewctl.config import AppConfig
from brewctl.domain.exceptions import SensorTransportFault
from brewctl.enums.brew import ExitCode, SessionStatus
from brewctl.hardware.actuators.actuators import Actuators
from brewctl.hardware.actuators.valve import SimulatedValve
from brewctl.hardware.sensors.base import TemperatureSource
from brewctl.utils.time import utc_now
from infrastructure.database.repositories.brew_sessions import BrewSessionRepository

from .persistence import SessionWriter
from .recovery import RecoveryHandler
from .step_machine import StepMachine

logger = logging.getLogger(__name__)


class BrewController:
    def __init__(
        self,
        repository: BrewSessionRepository,
        writer: SessionWriter,
        actuators: Actuators,
        recovery: RecoveryHandler,
        temperature_source: TemperatureSource,
        config: AppConfig,
        *,
        simulate: bool = False,
        valve: SimulatedValve | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.writer = writer
        self.actuators = actuators
        self.recovery = recovery
        self.source = temperature_source
        self.config = config
        self.simulate = simulate
        self.valve = valve
        self._clock = clock
        self._sleep = sleep
        self.machine: StepMachine | None = None

    def run(self, session_id: str) -> int:
        """Drive ``session_id`` to completion. Returns the process exit code."""
        exit_code = ExitCode.OK
        reason = "brew session complete"
        try:
            session = self.repository.get(session_id)
            if session is None:
                logger.error("BrewSession not found: %s", session_id)
                exit_code, reason = ExitCode.SESSION_NOT_FOUND, f"session {session_id} not found"
            elif session.is_complete:
                logger.info("BrewSession %s is already complete.", session_id)
                self.recovery.attach(session)
                reason = "session already complete"
            else:
                self.recovery.attach(session)
                self._attach(session)
                self.machine = StepMachine(
                    session,
                    self.writer,
                    self.actuators,
                    self.source,
                    self.config,
                    valve=self.valve,
                    simulate=self.simulate,
                    clock=self._clock,
                    sleep=self._sleep,
                )
                self.machine.run()
        except SensorTransportFault as e:
            step, target = self._position()
            logger.error(
                "Temperature service failed for session %s, step %s, target %s: %s",
                session_id,
                step,
                target,
                e,
                extra={"detail": e.detail},
            )
            exit_code, reason = ExitCode.SENSOR_FAILURE, "temperature service failure"
        except Exception:
            logger.exception("Unrecoverable error while brewing session %s", session_id)
            exit_code, reason = ExitCode.UNRECOVERABLE, "unrecoverable error"
        finally:
            self.source.close()

        self.recovery.shutdown(reason, exit_code)
        return int(exit_code)

    def _position(self) -> tuple[int | None, float | None]:
        """Step and target of the control cycle in progress, if any."""
        if self.machine is None:
            return None, None
        cycle = self.machine.active_cycle
        return int(self.machine.session.step), cycle.target_temp_c if cycle else None

    def _attach(self, session) -> None:
        """Mark the session running and put the rig in its starting state."""
        session.status = SessionStatus.RUNNING
        session.last_started = self._clock()
        self.writer.save(session, "Start brew session.")
        logger.info(
            "Starting brew session %s at step %d (%s).",
            session.id,
            int(session.step),
            session.current_step.label,
        )
        self.actuators.set_pump(True)
        self.actuators.set_heat(False)
