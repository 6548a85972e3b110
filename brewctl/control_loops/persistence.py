"""
Session persistence policy for the control loop.

Ordinary saves (status changes, temperature log samples) are best effort: a
failure is logged and brewing continues. Durable saves guard physical
progress (a hold starting or ending) and are retried before giving up.
"""

import logging
import time
from typing import Callable

from brewctl.domain.exceptions import RepositoryError
from brewctl.domain.session import BrewSession
from infrastructure.database.repositories.brew_sessions import BrewSessionRepository

logger = logging.getLogger(__name__)


class SessionWriter:
    def __init__(
        self,
        repository: BrewSessionRepository,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep

    def save(self, session: BrewSession, reason: str) -> bool:
        """Best-effort save. Returns False (after logging) on failure."""
        try:
            self.repository.save(session)
        except RepositoryError as e:
            logger.error("Save database error (%s) for session %s: %s", reason, session.id, e)
            return False
        logger.debug("Save database completed. %s", reason)
        return True

    def save_durable(self, session: BrewSession, reason: str) -> None:
        """Save with retries; raises RepositoryError when every attempt fails."""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                self.repository.save(session)
                logger.info("Save database completed. %s", reason)
                return
            except RepositoryError as e:
                if attempt == self.retry_attempts:
                    logger.error(
                        "Save database error (%s) for session %s, giving up after %d attempts: %s",
                        reason,
                        session.id,
                        attempt,
                        e,
                    )
                    raise
                logger.warning("Save database error (%s), attempt %d/%d: %s", reason, attempt, self.retry_attempts, e)
                self._sleep(self.retry_delay_seconds)
