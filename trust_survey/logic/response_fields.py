"""Coercion of submitted answers into SurveyResponse records.

Each rating field is either a valid value on its scale or None (skipped by
the participant). Anything else raises ValidationSkip so the caller can drop
the entry and continue with the rest of the submission.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from trust_survey.logic.errors import ValidationSkip
from trust_survey.models.entities import SurveyResponse

COMMITMENT_CHOICES = frozenset(
    {"explicit-promise", "explicit-no-promise", "implicit-suggestion", "no-commitment"}
)
EMOTION_CHOICES = frozenset({"neutral", "negative", "positive"})

# Inclusive integer scales
SIGNALING_SCALE: Tuple[int, int] = (1, 5)
PREDICTION_SCALE: Tuple[int, int] = (0, 100)
GUILT_SCALE: Tuple[int, int] = (1, 5)

# Answer keys as sent by the survey form; also the suffixes of timing keys
ANSWER_FIELDS = (
    "commitment",
    "signaling",
    "emotion",
    "prediction",
    "guilt",
    "trusteeBehavior",
    "trustorBehavior",
    "guiltClues",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _choice(answer: Mapping[str, Any], key: str, choices: frozenset) -> Optional[str]:
    value = answer.get(key)
    if _is_blank(value):
        return None
    if not isinstance(value, str) or value.strip() not in choices:
        raise ValidationSkip(f"{key}: {value!r} is not one of {sorted(choices)}")
    return value.strip()


def _scaled_int(answer: Mapping[str, Any], key: str, scale: Tuple[int, int]) -> Optional[int]:
    value = answer.get(key)
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationSkip(f"{key}: boolean is not a rating")
    try:
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(value)
            number = int(value)
        else:
            number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationSkip(f"{key}: {value!r} is not an integer") from None
    low, high = scale
    if not low <= number <= high:
        raise ValidationSkip(f"{key}: {number} outside {low}-{high}")
    return number


def _free_text(answer: Mapping[str, Any], key: str) -> Optional[str]:
    value = answer.get(key)
    if _is_blank(value):
        return None
    if not isinstance(value, str):
        raise ValidationSkip(f"{key}: expected text")
    return value.strip()


def total_response_time(display_id: str, response_times: Optional[Mapping[str, Any]]) -> Optional[int]:
    """Sum the per-field timings recorded for one message, in milliseconds.

    Timing keys are `<display_id>_<field>`. Non-numeric or negative entries
    are ignored; a non-positive total becomes None.
    """
    if not response_times:
        return None
    total = 0.0
    for field_name in ANSWER_FIELDS:
        raw = response_times.get(f"{display_id}_{field_name}")
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            continue
        total += raw
    return int(round(total)) if total > 0 else None


def build_response(
    session_id: str,
    message_id: int,
    answer: Any,
    response_time_ms: Optional[int] = None,
) -> SurveyResponse:
    if not isinstance(answer, dict):
        raise ValidationSkip("answer must be an object")
    answer_map: Dict[str, Any] = answer
    return SurveyResponse(
        session_id=session_id,
        message_id=message_id,
        commitment=_choice(answer_map, "commitment", COMMITMENT_CHOICES),
        signaling=_scaled_int(answer_map, "signaling", SIGNALING_SCALE),
        emotion=_choice(answer_map, "emotion", EMOTION_CHOICES),
        prediction=_scaled_int(answer_map, "prediction", PREDICTION_SCALE),
        guilt=_scaled_int(answer_map, "guilt", GUILT_SCALE),
        trustor_behavior=_free_text(answer_map, "trustorBehavior"),
        trustee_behavior=_free_text(answer_map, "trusteeBehavior"),
        guilt_clues=_free_text(answer_map, "guiltClues"),
        response_time_ms=response_time_ms,
    )


__all__ = [
    "ANSWER_FIELDS",
    "COMMITMENT_CHOICES",
    "EMOTION_CHOICES",
    "build_response",
    "total_response_time",
]
