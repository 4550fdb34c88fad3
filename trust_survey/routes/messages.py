"""Message sampling endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request

from trust_survey.http.problem import problem_response
from trust_survey.logic.survey_sessions import balanced_sample
from trust_survey.models.schemas import MessageOut

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/messages/sample",
    summary="Balanced sample of human and AI messages",
    operation_id="getBalancedSample",
    response_model=List[MessageOut],
)
def get_balanced_sample(request: Request, size: Optional[int] = Query(None, ge=1)):
    sampling = request.app.state.config.sampling
    requested = size if size is not None else sampling.default_size
    if requested > sampling.max_size:
        return problem_response(
            422,
            "Invalid Request",
            f"size must be <= {sampling.max_size}",
            "SAMPLE_SIZE_TOO_LARGE",
        )
    messages = balanced_sample(requested)
    return [MessageOut.from_message(m) for m in messages]


__all__ = ["router", "get_balanced_sample"]
