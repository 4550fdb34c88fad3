"""Unit tests for answer coercion into response records."""

from __future__ import annotations

import pytest

from trust_survey.logic.errors import ValidationSkip
from trust_survey.logic.response_fields import build_response, total_response_time


def test_build_response_full_answer() -> None:
    answer = {
        "commitment": "explicit-promise",
        "signaling": "4",
        "emotion": "positive",
        "prediction": 80,
        "guilt": 2.0,
        "trustorBehavior": " trusted ",
        "trusteeBehavior": "returned half",
        "guiltClues": "",
    }
    r = build_response("s1", 7, answer, 1500)
    assert r.session_id == "s1"
    assert r.message_id == 7
    assert r.commitment == "explicit-promise"
    assert r.signaling == 4
    assert r.emotion == "positive"
    assert r.prediction == 80
    assert r.guilt == 2
    assert r.trustor_behavior == "trusted"
    assert r.guilt_clues is None
    assert r.response_time_ms == 1500


def test_build_response_all_fields_skipped() -> None:
    r = build_response("s1", 7, {})
    params = r.as_params()
    assert params["commitment"] is None
    assert params["signaling"] is None
    assert params["response_time_ms"] is None


@pytest.mark.parametrize(
    "answer",
    [
        {"signaling": 6},
        {"signaling": 0},
        {"prediction": 101},
        {"guilt": "high"},
        {"guilt": True},
        {"prediction": 50.5},
        {"commitment": "maybe"},
        {"emotion": "angry"},
        {"trustorBehavior": 12},
    ],
)
def test_build_response_rejects_out_of_scale(answer) -> None:
    with pytest.raises(ValidationSkip):
        build_response("s1", 1, answer)


def test_build_response_rejects_non_object() -> None:
    with pytest.raises(ValidationSkip):
        build_response("s1", 1, "not an answer")


def test_total_response_time_sums_field_timings() -> None:
    times = {
        "msg_3_commitment": 1000,
        "msg_3_signaling": 250.4,
        "msg_3_guilt": -5,
        "msg_3_emotion": "fast",
        "msg_4_commitment": 9999,
    }
    assert total_response_time("msg_3", times) == 1250


def test_total_response_time_absent() -> None:
    assert total_response_time("msg_3", None) is None
    assert total_response_time("msg_3", {}) is None
    assert total_response_time("msg_3", {"msg_3_guilt": 0}) is None
