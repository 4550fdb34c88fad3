"""Read-only research reports: statistics, results export and set distribution."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List, Optional

from trust_survey.db.base import get_engine
from trust_survey.logic import repository_messages, repository_responses, repository_sessions
from trust_survey.logic.errors import store_errors
from trust_survey.logic.set_balancer import SetAxis, choose_set
from trust_survey.models.entities import Origin, parse_timestamp

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "session_id",
    "participant_id",
    "session_start",
    "session_end",
    "session_duration_ms",
    "set_quant",
    "set_qual",
    "message_id",
    "message",
    "generated",
    "in_role",
    "roll_value",
    "commitment",
    "signaling",
    "emotion",
    "prediction",
    "guilt",
    "trustor_behavior",
    "trustee_behavior",
    "guilt_clues",
    "response_time_ms",
    "response_created",
]


def _iso(value: Any) -> Optional[str]:
    ts = parse_timestamp(value)
    return ts.isoformat() if ts else None


def survey_stats() -> Dict[str, Any]:
    with store_errors("survey_stats"), get_engine().connect() as conn:
        by_status = repository_sessions.count_by_status(conn)
        by_origin = repository_messages.count_active_by_origin(conn)
        total_responses = repository_responses.count_all(conn)
        durations = repository_sessions.session_durations_ms(conn)
        avg_response_ms = repository_responses.average_response_time_ms(conn)

    breakdown = {Origin.from_generated(flag).value: n for flag, n in by_origin.items()}
    avg_session_ms = sum(durations) / len(durations) if durations else None
    return {
        "sessions": {
            "total": sum(by_status.values()),
            "completed": by_status.get("completed", 0),
            "inProgress": by_status.get("in_progress", 0),
        },
        "messages": {"total": sum(by_origin.values()), "breakdown": breakdown},
        "totalResponses": total_responses,
        "timing": {
            "avgSessionDurationSeconds": round(avg_session_ms / 1000) if avg_session_ms is not None else None,
            "avgResponseTimeMs": round(avg_response_ms) if avg_response_ms is not None else None,
        },
    }


def completed_results() -> List[Dict[str, Any]]:
    """Result rows for completed sessions with the session duration attached."""
    with store_errors("completed_results"), get_engine().connect() as conn:
        rows = repository_responses.list_completed_results(conn)
    results: list[dict] = []
    for row in rows:
        start = parse_timestamp(row.get("session_start"))
        end = parse_timestamp(row.get("session_end"))
        out = {col: row.get(col) for col in RESULT_COLUMNS}
        out["session_start"] = start.isoformat() if start else None
        out["session_end"] = end.isoformat() if end else None
        out["response_created"] = _iso(row.get("response_created"))
        out["session_duration_ms"] = (end - start).total_seconds() * 1000.0 if start and end else None
        results.append(out)
    return results


def results_csv(rows: List[Dict[str, Any]]) -> bytes:
    """Render result rows as RFC 4180 CSV with a header line."""
    buf = io.StringIO(newline="")
    writer = csv.DictWriter(buf, fieldnames=RESULT_COLUMNS, quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()
    for r in rows:
        writer.writerow({k: ("" if r.get(k) is None else r.get(k)) for k in RESULT_COLUMNS})
    return buf.getvalue().encode("utf-8")


def distribution_report() -> Dict[str, Any]:
    """Per-axis and combined assignment counts, unused sets and next choice."""
    with store_errors("distribution_report"), get_engine().connect() as conn:
        totals = repository_sessions.count_by_status(conn)
        total = sum(totals.values())
        axes: dict[str, Any] = {}
        for axis in SetAxis:
            counts = repository_sessions.assignment_counts(conn, axis)
            assigned = repository_sessions.distribution(conn, axis)
            for entry in assigned:
                entry["percentage"] = round(entry["session_count"] * 100.0 / total, 2) if total else 0.0
            axes[axis.value] = {
                "distribution": assigned,
                "unused": sorted(set_id for set_id, n in counts.items() if n == 0),
                "next": choose_set(counts),
            }
        combined = repository_sessions.combined_distribution(conn)
    return {"totalSessions": total, "axes": axes, "combined": combined}


__all__ = [
    "RESULT_COLUMNS",
    "survey_stats",
    "completed_results",
    "results_csv",
    "distribution_report",
]
