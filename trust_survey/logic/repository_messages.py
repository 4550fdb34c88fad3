"""Message pool data access helpers.

Encapsulates queries against `messages` to keep route handlers and the
sampler free of inline SQL. Callers own the connection and transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from trust_survey.models.entities import Message, MessageType, TaggedMessage

logger = logging.getLogger(__name__)

_MESSAGE_COLUMNS = (
    "id, message, generated, in_role, roll_value, generation_type, set_quant, set_qual, is_active"
)


def _parse_message(row: Any) -> Optional[Message]:
    # Malformed rows are logged and left out of the pool
    try:
        return Message.from_row(row)
    except ValueError as exc:
        logger.warning("message_row_skipped id=%s reason=%s", row.get("id"), exc)
        return None


def _to_messages(rows: Iterable[Any]) -> List[Message]:
    return [m for m in map(_parse_message, rows) if m is not None]


def list_active_messages(conn: Connection) -> List[Message]:
    """Return every active message, both origins, ordered by id."""
    rows = conn.execute(
        sql_text(f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE is_active = :active ORDER BY id"),
        {"active": True},
    ).mappings().all()
    return _to_messages(rows)


def list_messages_for_session(
    conn: Connection, set_quant: Optional[int], set_qual: Optional[int]
) -> List[TaggedMessage]:
    """Return active messages of the session's sets, tagged by axis.

    A null set id matches nothing (SQL `= NULL` is never true), so that axis
    contributes no rows.
    """
    rows = conn.execute(
        sql_text(
            f"""
            SELECT {_MESSAGE_COLUMNS}, 'quantitative' AS message_type
            FROM messages
            WHERE is_active = :active AND set_quant = :set_quant
            UNION ALL
            SELECT {_MESSAGE_COLUMNS}, 'qualitative' AS message_type
            FROM messages
            WHERE is_active = :active AND set_qual = :set_qual
            ORDER BY message_type DESC, id ASC
            """
        ),
        {"active": True, "set_quant": set_quant, "set_qual": set_qual},
    ).mappings().all()
    tagged: list[TaggedMessage] = []
    for r in rows:
        message = _parse_message(r)
        if message is not None:
            tagged.append(TaggedMessage(message=message, message_type=MessageType(r["message_type"])))
    return tagged


def count_active_by_origin(conn: Connection) -> Dict[int, int]:
    rows = conn.execute(
        sql_text(
            "SELECT generated, COUNT(*) FROM messages WHERE is_active = :active GROUP BY generated ORDER BY generated"
        ),
        {"active": True},
    ).fetchall()
    return {int(r[0]): int(r[1]) for r in rows}


def list_set_pairs(conn: Connection) -> List[Dict[str, Any]]:
    """Summarise active messages per (set_quant, set_qual) pair."""
    rows = conn.execute(
        sql_text(
            """
            SELECT set_quant,
                   set_qual,
                   COUNT(*) AS total_messages,
                   SUM(CASE WHEN generated = 0 THEN 1 ELSE 0 END) AS human_messages,
                   SUM(CASE WHEN generated = 1 THEN 1 ELSE 0 END) AS ai_messages
            FROM messages
            WHERE is_active = :active
            GROUP BY set_quant, set_qual
            ORDER BY set_quant, set_qual
            """
        ),
        {"active": True},
    ).mappings().all()
    return [
        {
            "set_quant": r["set_quant"],
            "set_qual": r["set_qual"],
            "total_messages": int(r["total_messages"]),
            "human_messages": int(r["human_messages"] or 0),
            "ai_messages": int(r["ai_messages"] or 0),
        }
        for r in rows
    ]


def list_messages_in_pair(conn: Connection, set_quant: int, set_qual: int, limit: int = 10) -> List[Message]:
    rows = conn.execute(
        sql_text(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM messages
            WHERE set_quant = :sq AND set_qual = :sl AND is_active = :active
            ORDER BY id
            LIMIT :lim
            """
        ),
        {"sq": set_quant, "sl": set_qual, "active": True, "lim": limit},
    ).mappings().all()
    return _to_messages(rows)


def retag_pair(conn: Connection, old_quant: int, old_qual: int, new_quant: int, new_qual: int) -> int:
    result = conn.execute(
        sql_text(
            """
            UPDATE messages
            SET set_quant = :new_q, set_qual = :new_l
            WHERE set_quant = :old_q AND set_qual = :old_l
            """
        ),
        {"old_q": old_quant, "old_l": old_qual, "new_q": new_quant, "new_l": new_qual},
    )
    return int(result.rowcount or 0)


def deactivate_pair(conn: Connection, set_quant: int, set_qual: int) -> int:
    """Soft-delete the messages of one set pair.

    Responses reference messages, so rows are retired with `is_active`
    instead of being removed.
    """
    result = conn.execute(
        sql_text(
            "UPDATE messages SET is_active = :inactive WHERE set_quant = :sq AND set_qual = :sl AND is_active = :active"
        ),
        {"inactive": False, "active": True, "sq": set_quant, "sl": set_qual},
    )
    return int(result.rowcount or 0)


def deactivate_all(conn: Connection) -> int:
    result = conn.execute(
        sql_text("UPDATE messages SET is_active = :inactive WHERE is_active = :active"),
        {"inactive": False, "active": True},
    )
    return int(result.rowcount or 0)


def insert_message(conn: Connection, row: Dict[str, Any]) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO messages (message, generated, in_role, roll_value, generation_type, set_quant, set_qual)
            VALUES (:message, :generated, :in_role, :roll_value, :generation_type, :set_quant, :set_qual)
            """
        ),
        {
            "message": row["message"],
            "generated": row["generated"],
            "in_role": row.get("in_role"),
            "roll_value": row.get("roll_value"),
            "generation_type": row.get("generation_type"),
            "set_quant": row.get("set_quant"),
            "set_qual": row.get("set_qual"),
        },
    )


__all__ = [
    "list_active_messages",
    "list_messages_for_session",
    "count_active_by_origin",
    "list_set_pairs",
    "list_messages_in_pair",
    "retag_pair",
    "deactivate_pair",
    "deactivate_all",
    "insert_message",
]
