"""Research endpoints: results export and aggregate statistics."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Query, Response

from trust_survey.http.problem import problem_response
from trust_survey.logic.reporting import completed_results, results_csv, survey_stats

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/results",
    summary="Export responses of completed sessions as JSON or CSV",
    operation_id="exportResults",
)
def export_results(format: Literal["json", "csv"] = Query("json")):
    rows = completed_results()
    if format == "csv":
        if not rows:
            return problem_response(404, "Not Found", "No completed surveys found", "NO_COMPLETED_SURVEYS")
        return Response(
            content=results_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=survey_results.csv"},
        )
    sessions = {r["session_id"] for r in rows}
    return {"totalSessions": len(sessions), "totalResponses": len(rows), "results": rows}


@router.get(
    "/stats",
    summary="Aggregate survey statistics",
    operation_id="getStats",
)
def get_stats():
    return survey_stats()


__all__ = ["router", "export_results", "get_stats"]
