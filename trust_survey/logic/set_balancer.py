"""Least-loaded set assignment for new survey sessions.

Each axis (quantitative, qualitative) is balanced independently. The caller
queries a fresh snapshot of how many sessions already hold each set id and
passes it to `choose_set`; this module performs no I/O and keeps no state.

The snapshot read and the session insert are separate store operations, so
sessions created concurrently may observe the same least-loaded set. Balance
is therefore approximate under concurrency and exact when sessions are
created one after another (max - min <= 1 per axis).
"""

from __future__ import annotations

import enum
from typing import Mapping, Optional


class SetAxis(str, enum.Enum):
    QUANT = "quant"
    QUAL = "qual"

    @property
    def column(self) -> str:
        """Name of the set column on both `messages` and `survey_sessions`."""
        return "set_quant" if self is SetAxis.QUANT else "set_qual"


def choose_set(assignment_counts: Mapping[int, int]) -> Optional[int]:
    """Return the set id with the fewest assigned sessions.

    Ties go to the smallest set id so identical snapshots always yield the
    same choice. An empty snapshot (no tagged messages on this axis) yields
    None, the no-assignment sentinel.
    """
    if not assignment_counts:
        return None
    return min(assignment_counts, key=lambda set_id: (assignment_counts[set_id], set_id))


__all__ = ["SetAxis", "choose_set"]
