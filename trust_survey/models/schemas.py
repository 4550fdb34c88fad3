"""Pydantic models for API request and response bodies.

Field names are snake_case in Python and serialised with the camelCase
aliases the survey frontend consumes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from trust_survey.models.entities import Message


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MessageOut(_CamelModel):
    id: str
    message: str
    generated: int
    in_role: Optional[int] = Field(default=None, alias="in")
    roll: Optional[int] = None
    generation_type: Optional[str] = Field(default=None, alias="generationType")
    set_quant: Optional[int] = Field(default=None, alias="setQuant")
    set_qual: Optional[int] = Field(default=None, alias="setQual")
    db_id: int = Field(alias="dbId")

    @classmethod
    def from_message(cls, m: Message) -> "MessageOut":
        return cls(
            id=m.display_id,
            message=m.text,
            generated=m.origin.generated,
            in_role=m.in_role,
            roll=m.roll_value,
            generation_type=m.generation_type,
            set_quant=m.set_quant,
            set_qual=m.set_qual,
            db_id=m.id,
        )


class SessionCreateIn(_CamelModel):
    participant_id: Optional[str] = Field(default=None, alias="participantId")


class SessionOut(_CamelModel):
    id: str
    participant_id: Optional[str] = Field(default=None, alias="participantId")
    set_quant: Optional[int] = Field(default=None, alias="setQuant")
    set_qual: Optional[int] = Field(default=None, alias="setQual")
    status: str


class SessionMessagesOut(_CamelModel):
    session_id: str = Field(alias="sessionId")
    set_quant: Optional[int] = Field(default=None, alias="setQuant")
    set_qual: Optional[int] = Field(default=None, alias="setQual")
    quantitative_messages: List[MessageOut] = Field(alias="quantitativeMessages")
    qualitative_messages: List[MessageOut] = Field(alias="qualitativeMessages")
    total_messages: int = Field(alias="totalMessages")


class MessageRef(_CamelModel):
    """Message metadata echoed back by the client for response correlation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    db_id: Optional[int] = Field(default=None, alias="dbId")


class SubmissionIn(_CamelModel):
    responses: Dict[str, Any] = Field(default_factory=dict)
    response_times: Optional[Dict[str, Any]] = Field(default=None, alias="responseTimes")
    total_session_time: Optional[float] = Field(default=None, alias="totalSessionTime")
    quantitative_messages: List[MessageRef] = Field(default_factory=list, alias="quantitativeMessages")
    qualitative_messages: List[MessageRef] = Field(default_factory=list, alias="qualitativeMessages")


class SubmissionOut(_CamelModel):
    success: bool
    message: str
    session_id: str = Field(alias="sessionId")
    saved_count: int = Field(alias="savedCount")
    skipped_count: int = Field(alias="skippedCount")


class NextAssignmentOut(_CamelModel):
    set_quant: Optional[int] = Field(default=None, alias="setQuant")
    set_qual: Optional[int] = Field(default=None, alias="setQual")


__all__ = [
    "MessageOut",
    "SessionCreateIn",
    "SessionOut",
    "SessionMessagesOut",
    "MessageRef",
    "SubmissionIn",
    "SubmissionOut",
    "NextAssignmentOut",
]
