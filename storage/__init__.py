from __future__ import annotations  # Re-export storage public API

from .migrate import migrate
from .sessions import SessionRepository, SqliteSessionStore
from .sqlite import get_conn

__all__ = ["SessionRepository", "SqliteSessionStore", "get_conn", "migrate"]
