"""
Time-proportioning relay control.

A PID power value between 0 and the window length is turned into an on/off
decision: within each window the relay is ON for the first ``power``
milliseconds and OFF for the rest, giving a duty cycle of power / window.
"""

import logging

logger = logging.getLogger(__name__)


class RelayWindow:
    """Sliding relay window with phase-continuous advancement."""

    def __init__(self, window_size_ms: float, window_start_ms: float):
        if window_size_ms <= 0:
            raise ValueError("window_size_ms must be positive")
        self.window_size_ms = float(window_size_ms)
        self.window_start_ms = float(window_start_ms)

    def elapsed(self, now_ms: float) -> float:
        return now_ms - self.window_start_ms

    def decide(self, power: float, now_ms: float) -> bool:
        """
        Return True when the relay should be ON at ``now_ms``.

        Once more than one window length has passed, the window start moves
        forward by exactly one window length (never reset to ``now_ms``).
        ``power`` equal to the elapsed time counts as ON.
        """
        if self.elapsed(now_ms) > self.window_size_ms:
            logger.debug("Shift relay window.")
            self.window_start_ms += self.window_size_ms
        return power >= self.elapsed(now_ms)
