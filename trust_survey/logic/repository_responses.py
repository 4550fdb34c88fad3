"""Survey response data access helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from trust_survey.models.entities import SessionStatus, SurveyResponse


def insert_response(conn: Connection, response: SurveyResponse) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO survey_responses (
                session_id, message_id, commitment, signaling, emotion,
                prediction, guilt, trustor_behavior, trustee_behavior,
                guilt_clues, response_time_ms
            ) VALUES (
                :session_id, :message_id, :commitment, :signaling, :emotion,
                :prediction, :guilt, :trustor_behavior, :trustee_behavior,
                :guilt_clues, :response_time_ms
            )
            """
        ),
        response.as_params(),
    )


def count_for_session(conn: Connection, session_id: str) -> int:
    row = conn.execute(
        sql_text("SELECT COUNT(*) FROM survey_responses WHERE session_id = :sid"),
        {"sid": session_id},
    ).fetchone()
    return int(row[0]) if row else 0


def count_all(conn: Connection) -> int:
    row = conn.execute(sql_text("SELECT COUNT(*) FROM survey_responses")).fetchone()
    return int(row[0]) if row else 0


def average_response_time_ms(conn: Connection) -> Optional[float]:
    """Average response time over responses of completed sessions."""
    row = conn.execute(
        sql_text(
            """
            SELECT AVG(r.response_time_ms)
            FROM survey_responses r
            JOIN survey_sessions s ON s.id = r.session_id
            WHERE s.status = :completed
            """
        ),
        {"completed": SessionStatus.COMPLETED.value},
    ).fetchone()
    return float(row[0]) if row and row[0] is not None else None


def list_completed_results(conn: Connection) -> List[Dict[str, Any]]:
    """Rows joining completed sessions, their responses and message details.

    Ordering: session start, then response creation, then response id.
    """
    rows = conn.execute(
        sql_text(
            """
            SELECT s.id AS session_id,
                   s.participant_id,
                   s.session_start,
                   s.session_end,
                   s.set_quant,
                   s.set_qual,
                   m.id AS message_id,
                   m.message,
                   m.generated,
                   m.in_role,
                   m.roll_value,
                   r.commitment,
                   r.signaling,
                   r.emotion,
                   r.prediction,
                   r.guilt,
                   r.trustor_behavior,
                   r.trustee_behavior,
                   r.guilt_clues,
                   r.response_time_ms,
                   r.created_at AS response_created
            FROM survey_sessions s
            JOIN survey_responses r ON s.id = r.session_id
            JOIN messages m ON r.message_id = m.id
            WHERE s.status = :completed
            ORDER BY s.session_start, r.created_at, r.id
            """
        ),
        {"completed": SessionStatus.COMPLETED.value},
    ).mappings().all()
    return [dict(r) for r in rows]


__all__ = [
    "insert_response",
    "count_for_session",
    "count_all",
    "average_response_time_ms",
    "list_completed_results",
]
