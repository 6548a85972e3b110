"""
Recovery / shutdown path.

Every way out of the process goes through :meth:`RecoveryHandler.shutdown`:
normal completion, a termination signal, a sensor transport failure or an
uncaught exception. The first call performs the side effects; later calls
are no-ops.
"""

import logging
import sys
import threading
from typing import Callable

from brewctl.domain.session import BrewSession
from brewctl.enums.brew import ExitCode, SessionStatus
from brewctl.hardware.actuators.actuators import Actuators

from .persistence import SessionWriter

logger = logging.getLogger(__name__)


class RecoveryHandler:
    """One-shot shutdown sequence leaving the relays in their safe (off) state."""

    def __init__(
        self,
        writer: SessionWriter,
        actuators: Actuators,
        exit_fn: Callable[[int], None] = sys.exit,
    ):
        self.writer = writer
        self.actuators = actuators
        self._exit = exit_fn
        self._session: BrewSession | None = None
        self._lock = threading.Lock()
        self._done = False
        self.reason: str | None = None

    def attach(self, session: BrewSession) -> None:
        """Register the working session so shutdown can persist its status."""
        self._session = session

    @property
    def triggered(self) -> bool:
        return self._done

    def shutdown(self, reason: str, exit_code: int = ExitCode.OK) -> bool:
        """
        Stop the session and the relays, then exit with ``exit_code``.

        Returns False when a shutdown already ran (or is running).
        """
        with self._lock:
            if self._done:
                logger.debug("Shutdown already in progress; ignoring %s.", reason)
                return False
            self._done = True
            self.reason = reason

        logger.info("Shutting down (%s).", reason)
        session = self._session
        if session is not None:
            if session.status != SessionStatus.COMPLETE:
                session.status = SessionStatus.STOPPED
            self.writer.save(session, f"Session {session.status} on shutdown.")

        try:
            self.actuators.all_off()
        except Exception as e:
            logger.critical("Could not switch relays off during shutdown: %s", e)

        logger.info("Exiting with code %d.", int(exit_code))
        self._exit(int(exit_code))
        return True
