"""Step definitions for the Trust Survey integration features."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional

from behave import given, step, then, when
from sqlalchemy import text

_INSERT_MESSAGE = text(
    """
    INSERT INTO messages (message, generated, set_quant, set_qual)
    VALUES (:message, :generated, :set_quant, :set_qual)
    """
)


def _seed(context, rows: List[Dict[str, Any]]) -> None:
    with context.engine.begin() as conn:
        for row in rows:
            conn.execute(_INSERT_MESSAGE, row)


def _row(message: str, generated: int, set_quant: Optional[int] = None, set_qual: Optional[int] = None) -> Dict[str, Any]:
    return {"message": message, "generated": generated, "set_quant": set_quant, "set_qual": set_qual}


def _last_session(context) -> Dict[str, Any]:
    assert context.sessions, "no session has been created in this scenario"
    return context.sessions[-1]


# ------------------
# Message pool
# ------------------


@given("the message pool has sets 1 and 2 on both axes")
def pool_two_sets(context) -> None:
    rows = []
    for set_id in (1, 2):
        rows.append(_row(f"quant human {set_id}", 0, set_quant=set_id))
        rows.append(_row(f"quant ai {set_id}", 1, set_quant=set_id))
        rows.append(_row(f"qual human {set_id}", 0, set_qual=set_id))
        rows.append(_row(f"qual ai {set_id}", 1, set_qual=set_id))
    _seed(context, rows)


@given("the message pool has only quantitative set {set_id:d}")
def pool_quant_only(context, set_id: int) -> None:
    _seed(context, [_row("quant only", 0, set_quant=set_id)])


@given("quantitative set {set_id:d} is added to the pool")
def pool_add_quant_set(context, set_id: int) -> None:
    _seed(context, [_row(f"quant human {set_id}", 0, set_quant=set_id)])


@given("the message pool has {humans:d} human and {ais:d} AI messages")
def pool_by_origin(context, humans: int, ais: int) -> None:
    rows = [_row(f"human {i}", 0) for i in range(humans)]
    rows += [_row(f"ai {i}", 1) for i in range(ais)]
    _seed(context, rows)


# ------------------
# Sessions
# ------------------


@step("{count:d} sessions are created")
def create_sessions(context, count: int) -> None:
    for _ in range(count):
        resp = context.client.post("/api/sessions", json={})
        assert resp.status_code == 200, resp.text
        context.sessions.append(resp.json())


@then("every quantitative set is assigned to {count:d} sessions")
def quant_sets_balanced(context, count: int) -> None:
    counts = Counter(s["setQuant"] for s in context.sessions)
    assert set(counts.values()) == {count}, counts


@then("every qualitative set is assigned to {count:d} sessions")
def qual_sets_balanced(context, count: int) -> None:
    counts = Counter(s["setQual"] for s in context.sessions)
    assert set(counts.values()) == {count}, counts


@then("the last {count:d} sessions have quantitative set {set_id:d}")
def last_sessions_have_set(context, count: int, set_id: int) -> None:
    assert [s["setQuant"] for s in context.sessions[-count:]] == [set_id] * count


@then("the last session has no qualitative set")
def last_session_no_qual(context) -> None:
    assert _last_session(context)["setQual"] is None


@then("the last session lists {count:d} qualitative messages")
def last_session_qual_count(context, count: int) -> None:
    resp = context.client.get(f"/api/sessions/{_last_session(context)['id']}/messages")
    assert resp.status_code == 200, resp.text
    assert len(resp.json()["qualitativeMessages"]) == count


@when('I fetch messages for session "{session_id}"')
def fetch_session_messages(context, session_id: str) -> None:
    context.response = context.client.get(f"/api/sessions/{session_id}/messages")


# ------------------
# Sampling
# ------------------


@when("I request a balanced sample")
def request_default_sample(context) -> None:
    context.response = context.client.get("/api/messages/sample")


@when("I request a balanced sample of {size:d}")
def request_sized_sample(context, size: int) -> None:
    context.response = context.client.get("/api/messages/sample", params={"size": size})


@then("the sample has {humans:d} human and {ais:d} AI messages")
def sample_mix(context, humans: int, ais: int) -> None:
    assert context.response.status_code == 200, context.response.text
    origins = Counter(m["generated"] for m in context.response.json())
    assert origins[0] == humans and origins[1] == ais, origins


@then("the sample has no duplicate messages")
def sample_unique(context) -> None:
    ids = [m["dbId"] for m in context.response.json()]
    assert len(ids) == len(set(ids))


# ------------------
# Submission and deletion
# ------------------


def _submission_payload(messages: Dict[str, Any]) -> Dict[str, Any]:
    every = messages["quantitativeMessages"] + messages["qualitativeMessages"]
    return {
        "responses": {
            m["id"]: {"commitment": "implicit-suggestion", "signaling": 3, "prediction": 50, "guilt": 1}
            for m in every
        },
        "responseTimes": {f"{m['id']}_signaling": 700 for m in every},
        "quantitativeMessages": messages["quantitativeMessages"],
        "qualitativeMessages": messages["qualitativeMessages"],
    }


@when("I submit answers for every message of the last session")
def submit_all(context) -> None:
    session_id = _last_session(context)["id"]
    messages = context.client.get(f"/api/sessions/{session_id}/messages").json()
    context.submitted = messages["totalMessages"]
    context.payload = _submission_payload(messages)
    context.response = context.client.post(f"/api/sessions/{session_id}/responses", json=context.payload)


@then("the submission saved every answer")
def submission_saved(context) -> None:
    body = context.response.json()
    assert body["savedCount"] == context.submitted, body
    assert body["skippedCount"] == 0, body


@then("the last session is completed in the database")
def session_completed_in_db(context) -> None:
    with context.engine.connect() as conn:
        status, end = conn.execute(
            text("SELECT status, session_end FROM survey_sessions WHERE id = :id"),
            {"id": _last_session(context)["id"]},
        ).one()
    assert status == "completed"
    assert end is not None


@then("submitting the last session again is rejected with status {status:d}")
def resubmit_rejected(context, status: int) -> None:
    session_id = _last_session(context)["id"]
    resp = context.client.post(f"/api/sessions/{session_id}/responses", json=context.payload)
    assert resp.status_code == status, resp.text


@when("I delete the last session")
def delete_last(context) -> None:
    context.response = context.client.delete(f"/api/sessions/{_last_session(context)['id']}")


@then("the last session is gone from the database")
def session_gone(context) -> None:
    with context.engine.connect() as conn:
        row = conn.execute(
            text("SELECT id FROM survey_sessions WHERE id = :id"),
            {"id": _last_session(context)["id"]},
        ).fetchone()
    assert row is None


# ------------------
# Generic response checks
# ------------------


@then("the response status is {status:d}")
def response_status(context, status: int) -> None:
    assert context.response is not None, "no request was made"
    assert context.response.status_code == status, context.response.text


@then("the response is problem+json")
def response_problem_json(context) -> None:
    assert context.response.headers.get("content-type", "").startswith("application/problem+json")
