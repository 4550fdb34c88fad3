"""Stratified message sampling by origin (human vs AI).

Two modes:

- balanced sample: draw up to `size` active messages, half human and half AI
  (the extra slot of an odd size goes to human), uniformly at random within
  each stratum, returned in random order. A short stratum contributes what it
  has; the sample is never padded from the other stratum.
- messages for session: every active message tagged with the session's
  quantitative set, plus every active message tagged with its qualitative
  set, partitioned by the axis that selected it.

Functions here are pure; the repositories supply the candidate pools.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from trust_survey.models.entities import Message, MessageType, Origin, TaggedMessage


def split_quota(size: int) -> Tuple[int, int]:
    """Return (human, ai) quotas for a sample of `size` messages."""
    if size < 1:
        raise ValueError("sample size must be >= 1")
    human = (size + 1) // 2
    return human, size - human


def draw_balanced_sample(
    pool: Iterable[Message],
    size: int,
    rng: Optional[random.Random] = None,
) -> List[Message]:
    """Draw a stratified sample from `pool` (inactive messages are ignored)."""
    rng = rng or random.Random()
    human_quota, ai_quota = split_quota(size)

    humans: list[Message] = []
    ais: list[Message] = []
    seen: set[int] = set()
    for m in pool:
        if not m.is_active or m.id in seen:
            continue
        seen.add(m.id)
        (humans if m.origin is Origin.HUMAN else ais).append(m)

    sample = rng.sample(humans, min(human_quota, len(humans)))
    sample += rng.sample(ais, min(ai_quota, len(ais)))
    rng.shuffle(sample)
    return sample


@dataclass
class SessionMessages:
    quantitative: List[Message] = field(default_factory=list)
    qualitative: List[Message] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.quantitative) + len(self.qualitative)


def partition_session_messages(
    tagged: Sequence[TaggedMessage],
    set_quant: Optional[int],
    set_qual: Optional[int],
) -> SessionMessages:
    """Split tagged rows into quantitative and qualitative lists.

    Rows that do not belong to the requested set on their axis, or that are
    inactive, are dropped; a null set id therefore yields an empty list.
    """
    result = SessionMessages()
    for item in tagged:
        m = item.message
        if not m.is_active:
            continue
        if item.message_type is MessageType.QUANTITATIVE:
            if set_quant is not None and m.set_quant == set_quant:
                result.quantitative.append(m)
        elif set_qual is not None and m.set_qual == set_qual:
            result.qualitative.append(m)
    return result


__all__ = [
    "split_quota",
    "draw_balanced_sample",
    "SessionMessages",
    "partition_session_messages",
]
