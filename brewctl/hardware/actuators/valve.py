"""
Output valve.

The rig has no motorised valve yet; moving it is logged and treated as done
so the transfer steps can advance.
"""

import logging

logger = logging.getLogger(__name__)


class SimulatedValve:
    """Stand-in for the output valve between the kettle, mash tun and boil kettle."""

    def __init__(self) -> None:
        self.position: str | None = None
        self.moves: list[str] = []

    def move_to(self, destination: str) -> None:
        logger.info("Simulating valve move to %s", destination)
        self.position = destination
        self.moves.append(destination)
