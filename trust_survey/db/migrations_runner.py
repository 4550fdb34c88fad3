"""Lightweight SQL migrations runner ("ensure schema").

Applies .sql files in lexical order from a migrations directory. Each file is
split into statements and every statement runs in its own transaction, so
objects that already exist are skipped instead of failing the run. Applied
filenames are journaled in the `schema_migrations` table of the target
database so a migration is not reapplied.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

MIGRATIONS_ROOT = Path(__file__).resolve().parents[1] / "migrations"

_ALREADY_EXISTS_MARKERS = ("already exists", "duplicate column")


@dataclass
class MigrationSummary:
    files_applied: int = 0
    statements_executed: int = 0
    statements_skipped: int = 0


def default_migrations_dir(engine: Engine) -> Path:
    """Packaged scripts for the engine's dialect (`sqlite` or `postgresql`)."""
    name = "sqlite" if engine.dialect.name == "sqlite" else "postgresql"
    return MIGRATIONS_ROOT / name


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        # Skip rollback scripts in forward runs
        if "rollback" in p.name.lower():
            continue
        yield p


def split_sql_statements(sql: str) -> List[str]:
    """Split a script on ';' while keeping $$-quoted function bodies intact.

    Whole-line `--` comments are dropped; transaction control statements are
    ignored because each statement runs in its own transaction.
    """
    statements: list[str] = []
    current: list[str] = []
    in_dollar_block = False
    for line in sql.splitlines():
        stripped = line.strip()
        if not in_dollar_block and (not stripped or stripped.startswith("--")):
            continue
        current.append(line)
        if line.count("$$") % 2 == 1:
            in_dollar_block = not in_dollar_block
        if stripped.endswith(";") and not in_dollar_block:
            stmt = "\n".join(current).strip().rstrip(";").strip()
            current = []
            if stmt and stmt.upper() not in {"BEGIN", "COMMIT", "END"}:
                statements.append(stmt)
    tail = "\n".join(current).strip().rstrip(";").strip()
    if tail:
        statements.append(tail)
    return statements


def _is_already_exists(exc: Exception) -> bool:
    msg = str(exc).lower()
    return any(marker in msg for marker in _ALREADY_EXISTS_MARKERS)


def _ensure_journal(engine: Engine) -> set[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "filename VARCHAR(255) PRIMARY KEY, applied_at VARCHAR(32) NOT NULL)"
        )
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def _record_applied(engine: Engine, filename: str) -> None:
    # applied_at is ISO-8601 UTC without fractional seconds
    applied_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    with engine.begin() as conn:
        conn.execute(
            sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
            {"f": filename, "at": applied_at},
        )


def apply_migrations(
    engine: Engine,
    migrations_dir: str | os.PathLike[str] | None = None,
) -> MigrationSummary:
    root = Path(migrations_dir) if migrations_dir is not None else default_migrations_dir(engine)
    summary = MigrationSummary()
    if not root.is_dir():
        logger.error("migrations_dir_missing path=%s", str(root))
        raise FileNotFoundError(f"migrations directory not found: {root}")

    sql_files = list(_iter_sql_files(root))
    if not sql_files:
        logger.error("migrations_dir_empty path=%s", str(root))
        raise FileNotFoundError(f"no .sql files in {root}")

    applied = _ensure_journal(engine)

    for sql_path in sql_files:
        fname = sql_path.name
        if fname in applied:
            continue
        sql = sql_path.read_text(encoding="utf-8")
        for stmt in split_sql_statements(sql):
            try:
                with engine.begin() as conn:
                    conn.exec_driver_sql(stmt)
                summary.statements_executed += 1
            except SQLAlchemyError as exc:
                if _is_already_exists(exc):
                    summary.statements_skipped += 1
                    logger.info("migration_statement_skipped_existing file=%s", fname)
                    continue
                logger.error("migration_statement_failed file=%s statement=%s", fname, stmt[:100])
                raise
        summary.files_applied += 1
        _record_applied(engine, fname)

    logger.info(
        "migrations_applied files=%s executed=%s skipped=%s",
        summary.files_applied,
        summary.statements_executed,
        summary.statements_skipped,
    )
    return summary


__all__ = ["MigrationSummary", "apply_migrations", "default_migrations_dir", "split_sql_statements"]
