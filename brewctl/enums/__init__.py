"""
Enums Module
============

This module provides enumeration types for the brewctl application.
Enums ensure type safety and consistency across the codebase.
"""

from brewctl.enums.brew import BrewStep, ExitCode, SessionStatus

__all__ = [
    "BrewStep",
    "ExitCode",
    "SessionStatus",
]
