"""SQLite schema migrations."""
from __future__ import annotations

from typing import Iterable, Optional

from .sqlite import get_conn

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS sessions (
  session_id TEXT PRIMARY KEY,
  candidate_id TEXT NOT NULL,
  status TEXT NOT NULL,
  created_at TEXT NOT NULL,
  completed_at TEXT,
  state_json TEXT NOT NULL,
  analytics_json TEXT NOT NULL DEFAULT '{}'
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_sessions_candidate
  ON sessions (candidate_id, status, created_at);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    with get_conn(db_path) as conn:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)


if __name__ == "__main__":
    migrate()
