import sqlite3

import pytest

from engines.types import SessionState
from storage import SqliteSessionStore

from factories import make_session


def test_save_and_get_round_trip(tmp_db):
    store = SqliteSessionStore(tmp_db)
    session = make_session("s1", [("sql", 7.0), ("graphs", 4.0)])
    store.save(session)

    loaded = store.get("s1")
    assert loaded.model_dump() == session.model_dump()
    assert loaded.skill_performance["sql"].score == 7.0
    assert store.get("missing") is None


def test_save_upserts_existing_row(tmp_db):
    store = SqliteSessionStore(tmp_db)
    session = SessionState(session_id="s1", candidate_id="cand-1")
    store.save(session)
    session.complete()
    store.save(session)

    with sqlite3.connect(tmp_db) as conn:
        rows = conn.execute("SELECT status, completed_at FROM sessions").fetchall()
    assert len(rows) == 1
    assert rows[0][0] == "completed"
    assert rows[0][1] is not None


def test_list_completed_filters_and_orders(tmp_db):
    store = SqliteSessionStore(tmp_db)
    store.save(make_session("late", [("sql", 8.0)], days=2))
    store.save(make_session("early", [("sql", 5.0)], days=0))
    store.save(make_session("open", [("sql", 1.0)], days=1, status="in-progress"))
    store.save(make_session("other", [("sql", 9.0)], candidate_id="cand-2"))

    assert [s.session_id for s in store.list_completed("cand-1")] == ["early", "late"]
    assert [s.session_id for s in store.list_completed("cand-2")] == ["other"]
    assert store.list_completed("nobody") == []


def test_list_recent_newest_first(tmp_db):
    store = SqliteSessionStore(tmp_db)
    for day in range(3):
        store.save(make_session(f"s{day}", [("sql", 5.0)], days=day))
    recent = store.list_recent(2)
    assert [row["session_id"] for row in recent] == ["s2", "s1"]
    assert recent[0]["analytics"] == {}


def test_update_analytics_merges_fields(tmp_db):
    store = SqliteSessionStore(tmp_db)
    session = make_session("s1", [("sql", 5.0)])
    session.analytics = {"average_score": 5.0}
    store.save(session)

    updated = store.update_analytics("s1", {"engagement_level": "moderate"})
    assert updated.analytics == {"average_score": 5.0, "engagement_level": "moderate"}
    assert store.get("s1").analytics["engagement_level"] == "moderate"
    assert store.list_recent(1)[0]["analytics"]["engagement_level"] == "moderate"

    with pytest.raises(KeyError):
        store.update_analytics("missing", {})


def test_default_path_comes_from_settings(tmp_db):
    SqliteSessionStore().save(make_session("s1", [("sql", 5.0)]))
    assert SqliteSessionStore(tmp_db).get("s1") is not None
