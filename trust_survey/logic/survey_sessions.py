"""Session lifecycle orchestration.

Ties the set balancer and the message sampler to the store:

- create_session: snapshot assignment counts per axis, choose the least
  loaded set on each, insert the session.
- get_session_messages: read the session's sets and return its
  quantitative and qualitative messages.
- balanced_sample: stratified sample without set restriction.
- submit_responses: store one response per answered message and mark the
  session completed, all in one transaction.
- delete_session: remove an abandoned, incomplete session.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from trust_survey.db.base import get_engine, transaction
from trust_survey.logic import repository_messages, repository_responses, repository_sessions
from trust_survey.logic.errors import NotFound, SessionCompleted, ValidationSkip, store_errors
from trust_survey.logic.message_sampler import (
    SessionMessages,
    draw_balanced_sample,
    partition_session_messages,
)
from trust_survey.logic.response_fields import build_response, total_response_time
from trust_survey.logic.set_balancer import SetAxis, choose_set
from trust_survey.models.entities import Message, SurveySession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    session_id: str
    saved_count: int
    skipped_count: int


def next_assignment() -> Tuple[Optional[int], Optional[int]]:
    """Return the (set_quant, set_qual) the next created session would get."""
    with store_errors("next_assignment"), get_engine().connect() as conn:
        return (
            choose_set(repository_sessions.assignment_counts(conn, SetAxis.QUANT)),
            choose_set(repository_sessions.assignment_counts(conn, SetAxis.QUAL)),
        )


def messages_available(set_quant: Optional[int], set_qual: Optional[int]) -> SessionMessages:
    """Messages a session holding these set ids would be shown."""
    with store_errors("messages_available"), get_engine().connect() as conn:
        tagged = repository_messages.list_messages_for_session(conn, set_quant, set_qual)
    return partition_session_messages(tagged, set_quant, set_qual)


def create_session(participant_id: Optional[str] = None) -> SurveySession:
    session_id = str(uuid.uuid4())
    with store_errors("create_session"), transaction() as conn:
        set_quant = choose_set(repository_sessions.assignment_counts(conn, SetAxis.QUANT))
        set_qual = choose_set(repository_sessions.assignment_counts(conn, SetAxis.QUAL))
        session = repository_sessions.insert_session(conn, session_id, participant_id, set_quant, set_qual)
    logger.info(
        "session_created id=%s set_quant=%s set_qual=%s",
        session.id,
        session.set_quant,
        session.set_qual,
    )
    return session


def get_session_messages(session_id: str) -> Tuple[SurveySession, SessionMessages]:
    with store_errors("get_session_messages"), get_engine().connect() as conn:
        session = repository_sessions.get_session(conn, session_id)
        if session is None:
            raise NotFound(f"session {session_id} not found")
        tagged = repository_messages.list_messages_for_session(conn, session.set_quant, session.set_qual)
    messages = partition_session_messages(tagged, session.set_quant, session.set_qual)
    logger.info(
        "session_messages_fetched id=%s quantitative=%s qualitative=%s",
        session_id,
        len(messages.quantitative),
        len(messages.qualitative),
    )
    return session, messages


def balanced_sample(size: int, rng: Optional[random.Random] = None) -> List[Message]:
    with store_errors("balanced_sample"), get_engine().connect() as conn:
        pool = repository_messages.list_active_messages(conn)
    sample = draw_balanced_sample(pool, size, rng)
    logger.info("balanced_sample_drawn requested=%s returned=%s", size, len(sample))
    return sample


def submit_responses(
    session_id: str,
    responses: Mapping[str, Any],
    message_ids: Mapping[str, Optional[int]],
    response_times: Optional[Mapping[str, Any]] = None,
    total_session_time_ms: Optional[float] = None,
) -> SubmissionResult:
    """Persist a session's answers and complete it atomically.

    `message_ids` maps each display id (as returned to the client) to its
    persistent message id. Entries that cannot be correlated or coerced are
    logged and skipped; a row whose insert fails is rolled back to its
    savepoint and skipped. Any other failure rolls back the whole submission
    and leaves the session in progress.
    """
    if total_session_time_ms:
        logger.info("session_total_time id=%s seconds=%s", session_id, round(total_session_time_ms / 1000))
    saved = 0
    skipped = 0
    with store_errors("submit_responses"), transaction() as conn:
        session = repository_sessions.get_session(conn, session_id)
        if session is None:
            raise NotFound(f"session {session_id} not found")
        if session.is_completed:
            raise SessionCompleted(f"session {session_id} is already completed")

        stored_ids: set[int] = set()
        for display_id, answer in responses.items():
            try:
                db_id = message_ids.get(display_id)
                if db_id is None:
                    raise ValidationSkip("no database id for message")
                if db_id in stored_ids:
                    raise ValidationSkip(f"message {db_id} answered twice")
                response = build_response(
                    session_id,
                    int(db_id),
                    answer,
                    total_response_time(display_id, response_times),
                )
            except ValidationSkip as exc:
                skipped += 1
                logger.warning("response_skipped session=%s message=%s reason=%s", session_id, display_id, exc)
                continue
            try:
                with conn.begin_nested():
                    repository_responses.insert_response(conn, response)
            except SQLAlchemyError:
                skipped += 1
                logger.error("response_write_failed session=%s message=%s", session_id, display_id, exc_info=True)
                continue
            stored_ids.add(response.message_id)
            saved += 1

        if repository_sessions.mark_completed(conn, session_id) != 1:
            # Another submission completed the session after our read
            raise SessionCompleted(f"session {session_id} is already completed")

    logger.info("responses_saved session=%s saved=%s skipped=%s", session_id, saved, skipped)
    return SubmissionResult(session_id=session_id, saved_count=saved, skipped_count=skipped)


def delete_session(session_id: str) -> None:
    """Delete an incomplete session; completed sessions are kept."""
    with store_errors("delete_session"), transaction() as conn:
        if repository_sessions.delete_incomplete(conn, session_id) == 1:
            logger.info("session_deleted id=%s", session_id)
            return
        session = repository_sessions.get_session(conn, session_id)
    if session is None:
        raise NotFound(f"session {session_id} not found")
    raise SessionCompleted(f"session {session_id} is completed or has responses")


__all__ = [
    "SubmissionResult",
    "next_assignment",
    "messages_available",
    "create_session",
    "get_session_messages",
    "balanced_sample",
    "submit_responses",
    "delete_session",
]
