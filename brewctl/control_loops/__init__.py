from brewctl.control_loops.brew_controller import BrewController
from brewctl.control_loops.persistence import SessionWriter
from brewctl.control_loops.recovery import RecoveryHandler
from brewctl.control_loops.step_machine import ControlCycle, StepMachine

__all__ = [
    "BrewController",
    "ControlCycle",
    "RecoveryHandler",
    "SessionWriter",
    "StepMachine",
]
