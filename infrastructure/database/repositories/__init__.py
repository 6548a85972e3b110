"""Repository facades exposing typed accessors over the low-level ops mixins."""

from infrastructure.database.repositories.brew_sessions import BrewSessionRepository

__all__ = ["BrewSessionRepository"]
