"""Central mapping of domain errors to problem+json codes and HTTP statuses.

Single source of truth for the exception handler; route modules must not
hardcode status numbers for domain failures.
"""

from __future__ import annotations

from typing import Dict, Type

from trust_survey.logic.errors import DataUnavailable, NotFound, SessionCompleted, SurveyError

SURVEY_ERROR_MAP: Dict[Type[SurveyError], Dict[str, object]] = {
    NotFound: {"code": "RESOURCE_NOT_FOUND", "status": 404, "title": "Not Found"},
    SessionCompleted: {"code": "SESSION_ALREADY_COMPLETED", "status": 409, "title": "Conflict"},
    DataUnavailable: {"code": "STORE_UNAVAILABLE", "status": 503, "title": "Service Unavailable"},
}

_FALLBACK = {"code": "SURVEY_ERROR", "status": 500, "title": "Internal Server Error"}


def lookup(exc: SurveyError) -> Dict[str, object]:
    for cls in type(exc).__mro__:
        if cls in SURVEY_ERROR_MAP:
            return SURVEY_ERROR_MAP[cls]  # type: ignore[index]
    return _FALLBACK


__all__ = ["SURVEY_ERROR_MAP", "lookup"]
