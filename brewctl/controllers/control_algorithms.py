"""
Control Algorithms: PID controller for the mash and boil heat loops.

The controller output is a power value in ``[0, output_max]`` where
``output_max`` is the relay window length in milliseconds; the relay window
turns it into ON time per window.
"""

import logging
import math
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Controller(ABC):
    """
    Abstract base class for all controllers.
    """

    @abstractmethod
    def compute(self, current_value: float, now: float | None = None) -> float:
        """
        Computes the control output.

        Args:
            current_value: The current sensor value.
            now: Timestamp in seconds of this sample (defaults to no time scaling).

        Returns:
            The control output.
        """


class PIDController(Controller):
    """
    A PID controller with a clamped output.

    - Proportional term on the error (target - current).
    - Integral term accumulated over calls, clamped to the output range so it
      cannot wind up while the heater is saturated.
    - Derivative term on the measurement, so a setpoint change does not kick
      the output.
    """

    def __init__(self, kp: float, ki: float, kd: float, output_max: float, output_min: float = 0.0):
        """
        Initializes the PIDController.

        Args:
            kp: Proportional gain
            ki: Integral gain (per second)
            kd: Derivative gain (seconds)
            output_max: Upper output bound (Pmax, the relay window length)
            output_min: Lower output bound
        """
        if output_max <= output_min:
            raise ValueError("output_max must be greater than output_min")
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.output_min = output_min
        self.output_max = output_max
        self.setpoint: float | None = None
        self.integral = 0.0
        self.previous_input: float | None = None
        self.previous_time: float | None = None
        self.last_output = 0.0

    def set_target(self, temp_c: float) -> None:
        """Set the setpoint."""
        self.setpoint = float(temp_c)

    def current_target(self) -> float | None:
        """Return the active setpoint."""
        return self.setpoint

    def _clamp(self, value: float) -> float:
        return max(self.output_min, min(self.output_max, value))

    def compute(self, current_value: float, now: float | None = None) -> float:
        """
        Computes the PID control output.

        Args:
            current_value: The current temperature.
            now: Sample time in seconds. Without it every call counts as one
                second.

        Returns:
            Power in ``[output_min, output_max]``.
        """
        if self.setpoint is None:
            raise RuntimeError("PID target not set")

        current_value = float(current_value)
        if not math.isfinite(current_value):
            return self.last_output

        if self.previous_input is None:
            dt = 0.0
        elif now is None or self.previous_time is None:
            dt = 1.0
        else:
            dt = max(0.0, now - self.previous_time)

        error = self.setpoint - current_value

        # Accumulate the integral term
        self.integral = self._clamp(self.integral + self.ki * error * dt)

        # Derivative on measurement
        derivative = 0.0
        if self.previous_input is not None and dt > 0:
            derivative = (current_value - self.previous_input) / dt

        output = self._clamp(self.kp * error + self.integral - self.kd * derivative)

        self.previous_input = current_value
        self.previous_time = now
        self.last_output = output
        return output

    def reset(self) -> None:
        """Reset the controller state (setpoint is kept)."""
        self.integral = 0.0
        self.previous_input = None
        self.previous_time = None
        self.last_output = 0.0
