"""Survey session data access helpers.

Encapsulates queries against `survey_sessions` (assignment snapshots, the
session lifecycle and distribution reports). Callers own the connection and
transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from trust_survey.logic.set_balancer import SetAxis
from trust_survey.models.entities import SessionStatus, SurveySession

_SESSION_COLUMNS = "id, participant_id, set_quant, set_qual, status, session_start, session_end"


def assignment_counts(conn: Connection, axis: SetAxis) -> Dict[int, int]:
    """Snapshot of sessions assigned to each set id on one axis.

    Only set ids present among active messages are included, each with its
    session count (zero when never assigned).
    """
    col = axis.column
    rows = conn.execute(
        sql_text(
            f"""
            SELECT m.set_id, COUNT(s.id) AS assigned
            FROM (
                SELECT DISTINCT {col} AS set_id
                FROM messages
                WHERE is_active = :active AND {col} IS NOT NULL
            ) m
            LEFT JOIN survey_sessions s ON s.{col} = m.set_id
            GROUP BY m.set_id
            ORDER BY m.set_id
            """
        ),
        {"active": True},
    ).fetchall()
    return {int(r[0]): int(r[1]) for r in rows}


def insert_session(
    conn: Connection,
    session_id: str,
    participant_id: Optional[str],
    set_quant: Optional[int],
    set_qual: Optional[int],
) -> SurveySession:
    conn.execute(
        sql_text(
            """
            INSERT INTO survey_sessions (id, participant_id, set_quant, set_qual, status)
            VALUES (:id, :participant_id, :set_quant, :set_qual, :status)
            """
        ),
        {
            "id": session_id,
            "participant_id": participant_id,
            "set_quant": set_quant,
            "set_qual": set_qual,
            "status": SessionStatus.IN_PROGRESS.value,
        },
    )
    created = get_session(conn, session_id)
    if created is None:  # pragma: no cover - insert succeeded without error
        raise RuntimeError(f"session {session_id} missing after insert")
    return created


def get_session(conn: Connection, session_id: str) -> Optional[SurveySession]:
    row = conn.execute(
        sql_text(f"SELECT {_SESSION_COLUMNS} FROM survey_sessions WHERE id = :id"),
        {"id": session_id},
    ).mappings().fetchone()
    return SurveySession.from_row(row) if row else None


def mark_completed(conn: Connection, session_id: str) -> int:
    """Set session_end and status for an in-progress session; return rowcount."""
    result = conn.execute(
        sql_text(
            """
            UPDATE survey_sessions
            SET session_end = CURRENT_TIMESTAMP, status = :completed
            WHERE id = :id AND status = :in_progress
            """
        ),
        {
            "id": session_id,
            "completed": SessionStatus.COMPLETED.value,
            "in_progress": SessionStatus.IN_PROGRESS.value,
        },
    )
    return int(result.rowcount or 0)


def delete_incomplete(conn: Connection, session_id: str) -> int:
    """Delete a session that is in progress and holds no responses."""
    result = conn.execute(
        sql_text(
            """
            DELETE FROM survey_sessions
            WHERE id = :id
              AND status = :in_progress
              AND NOT EXISTS (SELECT 1 FROM survey_responses r WHERE r.session_id = :id)
            """
        ),
        {"id": session_id, "in_progress": SessionStatus.IN_PROGRESS.value},
    )
    return int(result.rowcount or 0)


def count_by_status(conn: Connection) -> Dict[str, int]:
    rows = conn.execute(
        sql_text("SELECT status, COUNT(*) FROM survey_sessions GROUP BY status")
    ).fetchall()
    counts = {s.value: 0 for s in SessionStatus}
    for status, n in rows:
        counts[str(status)] = int(n)
    return counts


def distribution(conn: Connection, axis: SetAxis) -> List[Dict[str, Any]]:
    """Sessions per assigned set id on one axis (unassigned sessions excluded)."""
    col = axis.column
    rows = conn.execute(
        sql_text(
            f"""
            SELECT {col} AS set_id, COUNT(*) AS session_count
            FROM survey_sessions
            WHERE {col} IS NOT NULL
            GROUP BY {col}
            ORDER BY {col}
            """
        )
    ).mappings().all()
    return [{"set_id": int(r["set_id"]), "session_count": int(r["session_count"])} for r in rows]


def combined_distribution(conn: Connection) -> List[Dict[str, Any]]:
    rows = conn.execute(
        sql_text(
            """
            SELECT set_quant, set_qual, COUNT(*) AS session_count
            FROM survey_sessions
            WHERE set_quant IS NOT NULL AND set_qual IS NOT NULL
            GROUP BY set_quant, set_qual
            ORDER BY set_quant, set_qual
            """
        )
    ).mappings().all()
    return [
        {"set_quant": int(r["set_quant"]), "set_qual": int(r["set_qual"]), "session_count": int(r["session_count"])}
        for r in rows
    ]


def session_durations_ms(conn: Connection) -> List[float]:
    """Durations of completed sessions, computed from start/end timestamps."""
    rows = conn.execute(
        sql_text(
            f"SELECT {_SESSION_COLUMNS} FROM survey_sessions WHERE status = :completed AND session_end IS NOT NULL"
        ),
        {"completed": SessionStatus.COMPLETED.value},
    ).mappings().all()
    durations: list[float] = []
    for row in rows:
        s = SurveySession.from_row(row)
        if s.session_start and s.session_end:
            durations.append((s.session_end - s.session_start).total_seconds() * 1000.0)
    return durations


__all__ = [
    "assignment_counts",
    "insert_session",
    "get_session",
    "mark_completed",
    "delete_incomplete",
    "count_by_status",
    "distribution",
    "combined_distribution",
    "session_durations_ms",
]
