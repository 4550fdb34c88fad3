"""Functional tests for response submission and session deletion."""

from __future__ import annotations

from typing import Any, Dict

import pytest
from sqlalchemy.exc import OperationalError

from trust_survey.db.base import get_engine
from trust_survey.logic import repository_responses, repository_sessions


def _answer(**overrides: Any) -> Dict[str, Any]:
    answer = {
        "commitment": "explicit-promise",
        "signaling": 4,
        "emotion": "positive",
        "prediction": 75,
        "guilt": 2,
        "trustorBehavior": "sent everything",
        "trusteeBehavior": "returned half",
        "guiltClues": "",
    }
    answer.update(overrides)
    return answer


@pytest.fixture
def session_with_messages(client, seed_messages, make_message):
    seed_messages(
        [
            make_message("quant human", 0, set_quant=1),
            make_message("quant ai", 1, set_quant=1),
            make_message("qual human", 0, set_qual=1),
        ]
    )
    session = client.post("/api/sessions").json()
    messages = client.get(f"/api/sessions/{session['id']}/messages").json()
    return session["id"], messages


def _payload(messages: Dict[str, Any], responses: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    body = {
        "responses": responses,
        "quantitativeMessages": messages["quantitativeMessages"],
        "qualitativeMessages": messages["qualitativeMessages"],
    }
    body.update(extra)
    return body


def _session_row(session_id: str):
    with get_engine().connect() as conn:
        return repository_sessions.get_session(conn, session_id), repository_responses.count_for_session(
            conn, session_id
        )


def test_submission_saves_responses_and_completes(client, session_with_messages) -> None:
    session_id, messages = session_with_messages
    all_messages = messages["quantitativeMessages"] + messages["qualitativeMessages"]
    first = all_messages[0]["id"]
    responses = {m["id"]: _answer() for m in all_messages}
    times = {f"{first}_commitment": 1200, f"{first}_signaling": 800}

    resp = client.post(
        f"/api/sessions/{session_id}/responses",
        json=_payload(messages, responses, responseTimes=times, totalSessionTime=90000),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["sessionId"] == session_id
    assert body["savedCount"] == 3
    assert body["skippedCount"] == 0

    session, stored = _session_row(session_id)
    assert session.is_completed
    assert session.session_end is not None
    assert stored == 3

    results = client.get("/api/results").json()
    timed = [r for r in results["results"] if r["message_id"] == all_messages[0]["dbId"]]
    assert timed[0]["response_time_ms"] == 2000


def test_invalid_entries_are_skipped(client, session_with_messages) -> None:
    session_id, messages = session_with_messages
    quant = messages["quantitativeMessages"]
    responses = {
        quant[0]["id"]: _answer(signaling=9),
        quant[1]["id"]: _answer(),
        "msg_999999": _answer(),
    }
    body = client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, responses)).json()
    assert body["savedCount"] == 1
    assert body["skippedCount"] == 2

    session, stored = _session_row(session_id)
    assert session.is_completed
    assert stored == 1


def test_empty_submission_still_completes(client, session_with_messages) -> None:
    session_id, messages = session_with_messages
    body = client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, {})).json()
    assert body["savedCount"] == 0
    session, _ = _session_row(session_id)
    assert session.is_completed


def test_second_submission_conflicts(client, session_with_messages) -> None:
    session_id, messages = session_with_messages
    responses = {messages["quantitativeMessages"][0]["id"]: _answer()}
    assert client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, responses)).status_code == 200

    again = client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, responses))
    assert again.status_code == 409
    assert again.json()["code"] == "SESSION_ALREADY_COMPLETED"
    _, stored = _session_row(session_id)
    assert stored == 1


def test_submission_for_unknown_session(client) -> None:
    resp = client.post("/api/sessions/nope/responses", json={"responses": {}})
    assert resp.status_code == 404


def test_failed_completion_rolls_back_every_response(client, session_with_messages, monkeypatch) -> None:
    session_id, messages = session_with_messages
    all_messages = messages["quantitativeMessages"] + messages["qualitativeMessages"]
    responses = {m["id"]: _answer() for m in all_messages}

    def _fail(conn, sid):
        raise OperationalError("UPDATE survey_sessions", {}, Exception("disk I/O error"))

    monkeypatch.setattr(repository_sessions, "mark_completed", _fail)
    resp = client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, responses))
    assert resp.status_code == 503
    assert resp.headers["content-type"].startswith("application/problem+json")

    session, stored = _session_row(session_id)
    assert not session.is_completed
    assert stored == 0


def test_delete_incomplete_session(client, session_with_messages) -> None:
    session_id, _ = session_with_messages
    resp = client.delete(f"/api/sessions/{session_id}")
    assert resp.status_code == 200
    assert client.get(f"/api/sessions/{session_id}/messages").status_code == 404
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404


def test_completed_session_cannot_be_deleted(client, session_with_messages) -> None:
    session_id, messages = session_with_messages
    client.post(f"/api/sessions/{session_id}/responses", json=_payload(messages, {}))
    resp = client.delete(f"/api/sessions/{session_id}")
    assert resp.status_code == 409
    session, _ = _session_row(session_id)
    assert session is not None
