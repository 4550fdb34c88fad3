"""RFC 4180 CSV import of the message pool.

Expected header: `generated,message,in,roll` with optional `set_quant`,
`set_qual` and `generation_type` columns (case-insensitive). `N/A` and empty
cells are null. Rows without message text are dropped; rows with malformed
numbers are reported and skipped.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from trust_survey.db.base import transaction
from trust_survey.logic import repository_messages
from trust_survey.logic.errors import store_errors

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("generated", "message")
_NULL_TOKENS = {"", "n/a"}
_INT_COLUMNS = {"generated": "generated", "in": "in_role", "roll": "roll_value", "set_quant": "set_quant", "set_qual": "set_qual"}


@dataclass
class ImportResult:
    imported: int = 0
    dropped: int = 0
    errors: List[Dict[str, object]] = field(default_factory=list)


def _cell(row: Dict[str, Optional[str]], key: str) -> Optional[str]:
    raw = row.get(key)
    if raw is None or raw.strip().lower() in _NULL_TOKENS:
        return None
    return raw.strip()


def parse_messages_csv(
    data: bytes,
    default_set_quant: Optional[int] = None,
    default_set_qual: Optional[int] = None,
) -> tuple[list[dict], ImportResult]:
    """Parse CSV bytes into insertable message rows plus a result skeleton."""
    text = (data or b"").decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(text))
    result = ImportResult()
    if reader.fieldnames is None:
        return [], result
    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    missing = [c for c in REQUIRED_COLUMNS if c not in reader.fieldnames]
    if missing:
        result.errors.append({"line": 1, "message": f"missing columns: {', '.join(missing)}"})
        return [], result

    rows: list[dict] = []
    for line_no, raw in enumerate(reader, start=2):  # header is line 1
        message = _cell(raw, "message")
        if not message:
            result.dropped += 1
            continue
        parsed: dict = {"message": message, "generation_type": _cell(raw, "generation_type")}
        try:
            for column, target in _INT_COLUMNS.items():
                value = _cell(raw, column)
                parsed[target] = int(value) if value is not None else None
        except ValueError as exc:
            result.errors.append({"line": line_no, "message": f"invalid integer: {exc}"})
            continue
        if parsed["generated"] not in (0, 1):
            result.errors.append({"line": line_no, "message": "generated must be 0 (human) or 1 (ai)"})
            continue
        if parsed["set_quant"] is None:
            parsed["set_quant"] = default_set_quant
        if parsed["set_qual"] is None:
            parsed["set_qual"] = default_set_qual
        rows.append(parsed)
    return rows, result


def import_messages_csv(
    data: bytes,
    default_set_quant: Optional[int] = None,
    default_set_qual: Optional[int] = None,
    replace: bool = False,
) -> ImportResult:
    """Insert parsed messages; optionally retire the existing pool first.

    Each row is inserted under its own savepoint so one bad row does not
    abort the import.
    """
    rows, result = parse_messages_csv(data, default_set_quant, default_set_qual)
    if not rows:
        logger.info("message_import_empty errors=%s", len(result.errors))
        return result
    with store_errors("import_messages_csv"), transaction() as conn:
        if replace:
            retired = repository_messages.deactivate_all(conn)
            logger.info("message_pool_retired count=%s", retired)
        for row in rows:
            try:
                with conn.begin_nested():
                    repository_messages.insert_message(conn, row)
                result.imported += 1
            except SQLAlchemyError as exc:
                logger.error("message_import_row_failed message=%r", row["message"][:80], exc_info=True)
                result.errors.append({"line": None, "message": f"insert failed: {exc.__class__.__name__}"})
    logger.info(
        "message_import_done imported=%s dropped=%s errors=%s",
        result.imported,
        result.dropped,
        len(result.errors),
    )
    return result


__all__ = ["ImportResult", "parse_messages_csv", "import_messages_csv"]
