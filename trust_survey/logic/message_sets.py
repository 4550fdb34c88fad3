"""Administrative operations on message sets."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from trust_survey.db.base import get_engine, transaction
from trust_survey.logic import repository_messages
from trust_survey.logic.errors import store_errors
from trust_survey.models.entities import Message

logger = logging.getLogger(__name__)


def list_sets() -> List[Dict[str, Any]]:
    with store_errors("list_sets"), get_engine().connect() as conn:
        return repository_messages.list_set_pairs(conn)


def messages_in_set(set_quant: int, set_qual: int, limit: int = 10) -> List[Message]:
    with store_errors("messages_in_set"), get_engine().connect() as conn:
        return repository_messages.list_messages_in_pair(conn, set_quant, set_qual, limit)


def retag_set(old_quant: int, old_qual: int, new_quant: int, new_qual: int) -> int:
    with store_errors("retag_set"), transaction() as conn:
        count = repository_messages.retag_pair(conn, old_quant, old_qual, new_quant, new_qual)
    logger.info(
        "message_set_retagged from=%s/%s to=%s/%s count=%s",
        old_quant,
        old_qual,
        new_quant,
        new_qual,
        count,
    )
    return count


def retire_set(set_quant: int, set_qual: int, confirm: bool = False) -> int:
    """Deactivate every message of a set pair; a no-op unless confirmed."""
    if not confirm:
        logger.warning("message_set_retire_unconfirmed set=%s/%s", set_quant, set_qual)
        return 0
    with store_errors("retire_set"), transaction() as conn:
        count = repository_messages.deactivate_pair(conn, set_quant, set_qual)
    logger.info("message_set_retired set=%s/%s count=%s", set_quant, set_qual, count)
    return count


__all__ = ["list_sets", "messages_in_set", "retag_set", "retire_set"]
