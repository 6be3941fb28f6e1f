"""Lightweight CLI helpers for inspecting stored sessions and their analytics."""
from __future__ import annotations

import argparse
import json
from typing import Optional

from services import analytics
from storage.sessions import SqliteSessionStore


def tail_sessions(limit: int = 20, store: Optional[SqliteSessionStore] = None) -> None:
    repo = store or SqliteSessionStore()
    for row in repo.list_recent(limit):
        score = row["analytics"].get("average_score", "-")
        engagement = row["analytics"].get("engagement_level", "-")
        print(
            f"[{row['created_at']}] {row['session_id']}/{row['candidate_id']} "
            f"status={row['status']} avg={score} engagement={engagement}"
        )


def show_overview(candidate_id: str, store: Optional[SqliteSessionStore] = None) -> None:
    repo = store or SqliteSessionStore()
    sessions = repo.list_completed(candidate_id)
    print(analytics.overview(sessions).model_dump_json(indent=2))
    for trajectory in analytics.trajectories(sessions):
        print(
            f"{trajectory.topic}: {trajectory.current_level} trend={trajectory.improvement_trend} "
            f"rate={trajectory.growth_rate} plateau={trajectory.plateau_detected}"
        )


def show_session(session_id: str, store: Optional[SqliteSessionStore] = None) -> None:
    repo = store or SqliteSessionStore()
    state = repo.get(session_id)
    if state is None:
        print(f"session {session_id} not found")
        return
    report = analytics.session_report(state)
    print(json.dumps(report.model_dump(mode="json"), indent=2))


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recent sessions")
    parser.add_argument("--overview", metavar="CANDIDATE_ID", help="Readiness overview and skill trajectories")
    parser.add_argument("--session", metavar="SESSION_ID", help="Full analytics report for one session")
    args = parser.parse_args(argv)

    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.overview:
        show_overview(args.overview)
    if args.session:
        show_session(args.session)


if __name__ == "__main__":
    main()
