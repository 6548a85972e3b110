"""
Temperature Service Client
==========================

Reads the mash/boil probe through the local temperature service, an HTTP
endpoint answering ``GET /temp`` with ``{"degreesC": <number>}``.

Features:
    - Per-request timeout
    - Payload validation with pydantic
    - Bounded retry with exponential backoff (RetryingTemperatureSource)
"""

import logging
import time
from typing import Callable

import requests
from pydantic import ValidationError

from brewctl.domain.exceptions import SensorTransportFault
from brewctl.schemas.sensor import TemperatureReadingSchema

from .base import TemperatureSource

logger = logging.getLogger(__name__)


class TemperatureServiceClient(TemperatureSource):
    """HTTP client for the temperature service."""

    DEFAULT_TIMEOUT = 5  # seconds

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        """
        Args:
            url: Full URL of the temperature endpoint
            timeout: HTTP request timeout in seconds
            session: Optional requests session (connection reuse)
        """
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        logger.info("Temperature service client initialized for %s", url)

    def read_celsius(self) -> float:
        try:
            response = self._session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            raise SensorTransportFault(f"Timeout reading {self.url}", detail={"url": self.url}) from e
        except requests.exceptions.ConnectionError as e:
            raise SensorTransportFault(f"Cannot connect to {self.url}", detail={"url": self.url}) from e
        except requests.exceptions.HTTPError as e:
            raise SensorTransportFault(
                f"Temperature service returned {e.response.status_code if e.response is not None else '?'}",
                detail={"url": self.url},
            ) from e
        except requests.exceptions.RequestException as e:
            raise SensorTransportFault(f"Request to {self.url} failed: {e}", detail={"url": self.url}) from e
        except ValueError as e:
            # requests raises a ValueError subclass for non-JSON bodies
            raise SensorTransportFault(f"Non-JSON response from {self.url}", detail={"url": self.url}) from e

        try:
            reading = TemperatureReadingSchema.model_validate(payload)
        except ValidationError as e:
            raise SensorTransportFault(
                f"Unexpected payload from {self.url}: {payload!r}", detail={"url": self.url}
            ) from e
        logger.debug("Temp from api %s.", reading.degreesC)
        return reading.degreesC

    def close(self) -> None:
        self._session.close()


class RetryingTemperatureSource(TemperatureSource):
    """
    Retries transport faults of another source with exponential backoff.

    After ``attempts`` consecutive failures the last SensorTransportFault is
    raised to the caller (fail-stop).
    """

    def __init__(
        self,
        source: TemperatureSource,
        attempts: int = 3,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.source = source
        self.attempts = max(1, attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def read_celsius(self) -> float:
        delay = self.backoff_seconds
        for attempt in range(1, self.attempts + 1):
            try:
                return self.source.read_celsius()
            except SensorTransportFault as e:
                if attempt == self.attempts:
                    logger.error("Temperature read failed after %d attempts: %s", attempt, e)
                    raise
                logger.warning("Temperature read failed (attempt %d/%d): %s", attempt, self.attempts, e)
                self._sleep(delay)
                delay *= 2
        raise AssertionError("unreachable")

    def begin_cycle(self, target_temp_c: float) -> None:
        self.source.begin_cycle(target_temp_c)

    def close(self) -> None:
        self.source.close()
