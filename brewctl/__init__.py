"""
brewctl
=======

Automated brewing controller: drives the heating element and pump relays of a
single-vessel brewing rig through pre-heat, mash, transfer and boil steps,
resuming from the persisted brew session after any restart.
"""

__version__ = "1.0.0"
__author__ = "brewctl developers"
__licence__ = "MIT"
