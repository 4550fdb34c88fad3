"""Problem+JSON utilities and global exception handlers.

Defines the RFC 7807 media type and handler callables that produce
application/problem+json responses.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trust_survey.http.error_mapping import lookup
from trust_survey.logic.errors import SurveyError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(
    status: int,
    title: str,
    detail: str = "",
    code: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    problem: Dict[str, object] = {"title": title, "status": status}
    if detail:
        problem["detail"] = detail
    if code:
        problem["code"] = code
    return JSONResponse(problem, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_survey_error(request: Request, exc: SurveyError) -> JSONResponse:  # noqa: D401
    mapping = lookup(exc)
    status = int(mapping["status"])  # type: ignore[arg-type]
    if status >= 500:
        logger.error("survey_error path=%s code=%s detail=%s", request.url.path, mapping["code"], exc)
    else:
        logger.info("survey_error path=%s code=%s detail=%s", request.url.path, mapping["code"], exc)
    return problem_response(status, str(mapping["title"]), str(exc), str(mapping["code"]))


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(getattr(exc, "status_code", 500) or 500)
    detail = exc.detail
    headers = dict(exc.headers) if isinstance(getattr(exc, "headers", None), dict) else None
    if isinstance(detail, dict):
        body = {"title": "Error", "status": status, **detail}
        return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)
    return problem_response(status, "Error", str(detail or ""), headers=headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "errors": [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ],
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response(500, "Internal Server Error")


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_survey_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
