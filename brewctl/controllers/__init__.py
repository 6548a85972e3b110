"""
Controllers Package
===================

Control algorithms used by the heat loop:
- PIDController: clamped proportional-integral-derivative control
- RelayWindow: time-proportioning on/off actuation
"""

from brewctl.controllers.control_algorithms import Controller, PIDController
from brewctl.controllers.relay_window import RelayWindow

__all__ = [
    "Controller",
    "PIDController",
    "RelayWindow",
]
