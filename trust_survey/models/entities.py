"""Typed records for rows read from the survey store.

Each record has fixed, named fields and is built through `from_row`, which
rejects unexpected nulls instead of coercing them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


class Origin(str, enum.Enum):
    HUMAN = "human"
    AI = "ai"

    @classmethod
    def from_generated(cls, generated: Any) -> "Origin":
        """Map the stored `generated` flag (0 human, 1 AI) to an Origin."""
        if generated is None:
            raise ValueError("message origin flag must not be null")
        flag = int(generated)
        if flag == 0:
            return cls.HUMAN
        if flag == 1:
            return cls.AI
        raise ValueError(f"unknown origin flag: {generated!r}")

    @property
    def generated(self) -> int:
        return 0 if self is Origin.HUMAN else 1


class SessionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MessageType(str, enum.Enum):
    QUANTITATIVE = "quantitative"
    QUALITATIVE = "qualitative"


def _require(row: Mapping[str, Any], key: str) -> Any:
    value = row.get(key)
    if value is None:
        raise ValueError(f"column {key!r} must not be null")
    return value


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    # SQLite hands back CURRENT_TIMESTAMP values as text
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class Message:
    id: int
    text: str
    origin: Origin
    in_role: Optional[int]
    roll_value: Optional[int]
    generation_type: Optional[str]
    set_quant: Optional[int]
    set_qual: Optional[int]
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Message":
        text = str(_require(row, "message"))
        if not text.strip():
            raise ValueError("message text must be non-empty")
        return cls(
            id=int(_require(row, "id")),
            text=text,
            origin=Origin.from_generated(row.get("generated")),
            in_role=_optional_int(row.get("in_role")),
            roll_value=_optional_int(row.get("roll_value")),
            generation_type=row.get("generation_type"),
            set_quant=_optional_int(row.get("set_quant")),
            set_qual=_optional_int(row.get("set_qual")),
            is_active=bool(row.get("is_active", True)),
        )

    @property
    def display_id(self) -> str:
        return f"msg_{self.id}"


@dataclass(frozen=True)
class SurveySession:
    id: str
    participant_id: Optional[str]
    set_quant: Optional[int]
    set_qual: Optional[int]
    status: SessionStatus
    session_start: Optional[datetime] = None
    session_end: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SurveySession":
        return cls(
            id=str(_require(row, "id")),
            participant_id=row.get("participant_id"),
            set_quant=_optional_int(row.get("set_quant")),
            set_qual=_optional_int(row.get("set_qual")),
            status=SessionStatus(_require(row, "status")),
            session_start=parse_timestamp(row.get("session_start")),
            session_end=parse_timestamp(row.get("session_end")),
        )

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED


@dataclass(frozen=True)
class SurveyResponse:
    session_id: str
    message_id: int
    commitment: Optional[str] = None
    signaling: Optional[int] = None
    emotion: Optional[str] = None
    prediction: Optional[int] = None
    guilt: Optional[int] = None
    trustor_behavior: Optional[str] = None
    trustee_behavior: Optional[str] = None
    guilt_clues: Optional[str] = None
    response_time_ms: Optional[int] = None

    def as_params(self) -> dict:
        return {
            "session_id": self.session_id,
            "message_id": self.message_id,
            "commitment": self.commitment,
            "signaling": self.signaling,
            "emotion": self.emotion,
            "prediction": self.prediction,
            "guilt": self.guilt,
            "trustor_behavior": self.trustor_behavior,
            "trustee_behavior": self.trustee_behavior,
            "guilt_clues": self.guilt_clues,
            "response_time_ms": self.response_time_ms,
        }


@dataclass(frozen=True)
class TaggedMessage:
    """A message returned for a session, tagged with the axis that drew it."""

    message: Message
    message_type: MessageType


__all__ = [
    "Origin",
    "SessionStatus",
    "MessageType",
    "Message",
    "SurveySession",
    "SurveyResponse",
    "TaggedMessage",
    "parse_timestamp",
]
