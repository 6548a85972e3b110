from __future__ import annotations

import logging
from typing import Any

from infrastructure.utils.structured_fields import dump_json_field, parse_json_object

logger = logging.getLogger(__name__)


class BrewSessionOperations:
    """Brew session document CRUD helpers shared across database handlers."""

    def get_brew_session(self, session_id: str) -> dict[str, Any] | None:
        db = self.get_db()
        row = db.execute(
            "SELECT document FROM BrewSessions WHERE session_id = ?",
            (str(session_id),),
        ).fetchone()
        if row is None:
            return None
        document = parse_json_object(row["document"])
        if not isinstance(document, dict):
            logger.error("Brew session %s has an unreadable document", session_id)
            return None
        return document

    def insert_brew_session(self, session_id: str, document: dict[str, Any]) -> None:
        db = self.get_db()
        db.execute(
            "INSERT INTO BrewSessions (session_id, document) VALUES (?, ?)",
            (str(session_id), self._dump_document(document)),
        )

    def upsert_brew_session(self, session_id: str, document: dict[str, Any]) -> None:
        db = self.get_db()
        db.execute(
            """
            INSERT INTO BrewSessions (session_id, document) VALUES (?, ?)
            ON CONFLICT(session_id) DO UPDATE SET
                document = excluded.document,
                updated_at = CURRENT_TIMESTAMP
            """,
            (str(session_id), self._dump_document(document)),
        )

    def list_brew_sessions(self) -> list[dict[str, Any]]:
        db = self.get_db()
        rows = db.execute(
            "SELECT session_id, document, created_at, updated_at FROM BrewSessions ORDER BY created_at"
        ).fetchall()
        sessions = []
        for row in rows:
            sessions.append(
                {
                    "session_id": row["session_id"],
                    "document": parse_json_object(row["document"]),
                    "created_at": row["created_at"],
                    "updated_at": row["updated_at"],
                }
            )
        return sessions

    def flush(self) -> None:
        """Commit pending writes to disk."""
        self.get_db().commit()

    @staticmethod
    def _dump_document(document: dict[str, Any]) -> str:
        raw = dump_json_field(document)
        if raw is None:
            raise ValueError("brew session document is not JSON serializable")
        return raw
