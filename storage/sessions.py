"""Session repository interface and its SQLite adapter."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from engines.types import SessionState

from .migrate import migrate
from .sqlite import get_conn

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):  # Storage seam used by the flow and the analytics callers
    def save(self, state: SessionState) -> None: ...

    def get(self, session_id: str) -> Optional[SessionState]: ...

    def list_completed(self, candidate_id: str) -> List[SessionState]: ...

    def update_analytics(self, session_id: str, fields: Dict[str, Any]) -> SessionState: ...


class SqliteSessionStore:
    """Persists each ``SessionState`` as JSON, keyed by session id."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path
        migrate(db_path)

    def save(self, state: SessionState) -> None:
        with get_conn(self.db_path) as conn:
            conn.execute(
                """INSERT INTO sessions
                   (session_id, candidate_id, status, created_at, completed_at, state_json, analytics_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(session_id) DO UPDATE SET
                     candidate_id = excluded.candidate_id,
                     status = excluded.status,
                     completed_at = excluded.completed_at,
                     state_json = excluded.state_json,
                     analytics_json = excluded.analytics_json""",
                (
                    state.session_id,
                    state.candidate_id,
                    state.status,
                    state.created_at.isoformat(),
                    state.completed_at.isoformat() if state.completed_at else None,
                    state.model_dump_json(),
                    json.dumps(state.analytics, default=str),
                ),
            )
        logger.debug("Saved session %s status=%s answers=%d", state.session_id, state.status, len(state.answers))

    def get(self, session_id: str) -> Optional[SessionState]:
        with get_conn(self.db_path) as conn:
            row = conn.execute("SELECT state_json FROM sessions WHERE session_id = ?", (session_id,)).fetchone()
        if row is None:
            return None
        return SessionState.model_validate_json(row["state_json"])

    def list_completed(self, candidate_id: str) -> List[SessionState]:
        """Completed sessions for a candidate, oldest first."""

        with get_conn(self.db_path) as conn:
            rows = conn.execute(
                """SELECT state_json FROM sessions
                   WHERE candidate_id = ? AND status = 'completed'
                   ORDER BY created_at ASC""",
                (candidate_id,),
            ).fetchall()
        return [SessionState.model_validate_json(row["state_json"]) for row in rows]

    def list_recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        with get_conn(self.db_path) as conn:
            rows = conn.execute(
                """SELECT session_id, candidate_id, status, created_at, completed_at, analytics_json
                   FROM sessions
                   ORDER BY created_at DESC
                   LIMIT ?""",
                (limit,),
            ).fetchall()
        return [
            {
                "session_id": row["session_id"],
                "candidate_id": row["candidate_id"],
                "status": row["status"],
                "created_at": row["created_at"],
                "completed_at": row["completed_at"],
                "analytics": json.loads(row["analytics_json"] or "{}"),
            }
            for row in rows
        ]

    def update_analytics(self, session_id: str, fields: Dict[str, Any]) -> SessionState:
        """Merge computed analytics fields into the stored session."""

        state = self.get(session_id)
        if state is None:
            raise KeyError(f"Session '{session_id}' not found")
        state.analytics = {**state.analytics, **fields}
        self.save(state)
        return state


__all__ = ["SessionRepository", "SqliteSessionStore"]
