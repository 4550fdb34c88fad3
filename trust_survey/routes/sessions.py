"""Survey session endpoints: create, fetch messages, submit, delete."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body

from trust_survey.logic import survey_sessions
from trust_survey.models.schemas import (
    MessageOut,
    NextAssignmentOut,
    SessionCreateIn,
    SessionMessagesOut,
    SessionOut,
    SubmissionIn,
    SubmissionOut,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/sessions",
    summary="Create a survey session with balanced set assignment",
    operation_id="createSession",
    response_model=SessionOut,
)
def create_session(payload: Optional[SessionCreateIn] = Body(None)):
    participant_id = payload.participant_id if payload else None
    session = survey_sessions.create_session(participant_id)
    return SessionOut(
        id=session.id,
        participant_id=session.participant_id,
        set_quant=session.set_quant,
        set_qual=session.set_qual,
        status=session.status.value,
    )


@router.get(
    "/sessions/next-assignment",
    summary="Preview the set ids the next session would receive",
    operation_id="getNextAssignment",
    response_model=NextAssignmentOut,
)
def get_next_assignment():
    set_quant, set_qual = survey_sessions.next_assignment()
    return NextAssignmentOut(set_quant=set_quant, set_qual=set_qual)


@router.get(
    "/sessions/{session_id}/messages",
    summary="Messages of the session's quantitative and qualitative sets",
    operation_id="getSessionMessages",
    response_model=SessionMessagesOut,
)
def get_session_messages(session_id: str):
    session, messages = survey_sessions.get_session_messages(session_id)
    return SessionMessagesOut(
        session_id=session.id,
        set_quant=session.set_quant,
        set_qual=session.set_qual,
        quantitative_messages=[MessageOut.from_message(m) for m in messages.quantitative],
        qualitative_messages=[MessageOut.from_message(m) for m in messages.qualitative],
        total_messages=messages.total,
    )


@router.post(
    "/sessions/{session_id}/responses",
    summary="Submit a session's responses and complete it",
    operation_id="submitResponses",
    response_model=SubmissionOut,
)
def submit_responses(session_id: str, payload: SubmissionIn):
    message_ids = {
        ref.id: ref.db_id
        for ref in [*payload.quantitative_messages, *payload.qualitative_messages]
    }
    result = survey_sessions.submit_responses(
        session_id,
        payload.responses,
        message_ids,
        response_times=payload.response_times,
        total_session_time_ms=payload.total_session_time,
    )
    return SubmissionOut(
        success=True,
        message="Survey responses saved successfully",
        session_id=result.session_id,
        saved_count=result.saved_count,
        skipped_count=result.skipped_count,
    )


@router.delete(
    "/sessions/{session_id}",
    summary="Delete an incomplete session",
    operation_id="deleteSession",
)
def delete_session(session_id: str):
    survey_sessions.delete_session(session_id)
    return {"message": "Session deleted successfully"}


__all__ = [
    "router",
    "create_session",
    "get_next_assignment",
    "get_session_messages",
    "submit_responses",
    "delete_session",
]
