from __future__ import annotations

import logging
import sqlite3
from typing import Any

from pydantic import ValidationError

from brewctl.domain.exceptions import RepositoryError, SessionNotFoundError
from brewctl.domain.session import BrewSession
from infrastructure.database.ops.brew_sessions import BrewSessionOperations

logger = logging.getLogger(__name__)


class BrewSessionRepository:
    """
    Facade providing typed access to brew session documents.

    The store holds the canonical copy; callers work on the returned
    ``BrewSession`` and hand it back to :meth:`save`, which commits before
    returning.
    """

    def __init__(self, backend: BrewSessionOperations) -> None:
        self._backend = backend

    def get(self, session_id: str) -> BrewSession | None:
        """Return the session, or None when it does not exist."""
        try:
            document = self._backend.get_brew_session(str(session_id))
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to read brew session {session_id}: {e}", detail={"id": session_id}) from e
        if document is None:
            return None
        try:
            return BrewSession.from_document(document)
        except ValidationError as e:
            raise RepositoryError(
                f"Brew session {session_id} document is invalid: {e}", detail={"id": session_id}
            ) from e

    def load(self, session_id: str) -> BrewSession:
        """Like :meth:`get` but raises SessionNotFoundError."""
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"BrewSession not found: {session_id}", detail={"id": session_id})
        return session

    def save(self, session: BrewSession) -> None:
        """Upsert the session document and flush it to disk."""
        try:
            self._backend.upsert_brew_session(session.id, session.to_document())
            self._backend.flush()
        except (sqlite3.Error, ValueError) as e:
            raise RepositoryError(f"Failed to save brew session {session.id}: {e}", detail={"id": session.id}) from e

    def create(self, session: BrewSession) -> None:
        """Insert a new session; fails if the id is already taken."""
        try:
            self._backend.insert_brew_session(session.id, session.to_document())
            self._backend.flush()
        except sqlite3.IntegrityError as e:
            raise RepositoryError(f"Brew session {session.id} already exists", detail={"id": session.id}) from e
        except (sqlite3.Error, ValueError) as e:
            raise RepositoryError(f"Failed to create brew session {session.id}: {e}", detail={"id": session.id}) from e

    def list_sessions(self) -> list[dict[str, Any]]:
        """Summary rows (id, status, step, timestamps) for every stored session."""
        try:
            rows = self._backend.list_brew_sessions()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to list brew sessions: {e}") from e
        summaries = []
        for row in rows:
            document = row.get("document") or {}
            summaries.append(
                {
                    "id": row["session_id"],
                    "status": document.get("status"),
                    "step": document.get("step"),
                    "lastStarted": document.get("lastStarted"),
                    "updated_at": row.get("updated_at"),
                }
            )
        return summaries
