"""
Actuator Module

Heat and pump relay control over digital output lines.
"""
from brewctl.hardware.actuators.actuators import Actuators
from brewctl.hardware.actuators.factory import ActuatorFactory
from brewctl.hardware.actuators.output_lines import GPIOOutputLine, MemoryOutputLine, OutputLine
from brewctl.hardware.actuators.valve import SimulatedValve

__all__ = [
    "ActuatorFactory",
    "Actuators",
    "GPIOOutputLine",
    "MemoryOutputLine",
    "OutputLine",
    "SimulatedValve",
]
