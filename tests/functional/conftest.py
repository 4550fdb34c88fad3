from __future__ import annotations

"""Functional test bootstrap.

Each test gets its own file-backed SQLite database under pytest's tmp_path.
The SQLite migrations are applied before the FastAPI app is created, and
startup auto-migrations stay disabled so the app never touches another DB.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from trust_survey.db.base import get_engine, reset_engine, transaction
from trust_survey.db.migrations_runner import apply_migrations
from trust_survey.logic import repository_messages
from trust_survey.main import create_app


@pytest.fixture
def db_url(tmp_path, monkeypatch) -> Iterator[str]:
    url = f"sqlite:///{tmp_path / 'survey.db'}"
    monkeypatch.setenv("TEST_DATABASE_URL", url)
    monkeypatch.setenv("AUTO_APPLY_MIGRATIONS", "0")
    monkeypatch.delenv("SAMPLE_DEFAULT_SIZE", raising=False)
    monkeypatch.delenv("SAMPLE_MAX_SIZE", raising=False)
    reset_engine()
    apply_migrations(get_engine(url))
    yield url
    reset_engine()


@pytest.fixture
def client(db_url) -> Iterator[TestClient]:
    with TestClient(create_app()) as c:
        yield c


def _message(
    text: str,
    generated: int,
    set_quant: Optional[int] = None,
    set_qual: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "message": text,
        "generated": generated,
        "in_role": None,
        "roll_value": None,
        "generation_type": None if generated == 0 else "llm",
        "set_quant": set_quant,
        "set_qual": set_qual,
    }


@pytest.fixture
def seed_messages(db_url) -> Callable[[Iterable[Dict[str, Any]]], None]:
    """Insert message rows directly into the store."""

    def _seed(rows: Iterable[Dict[str, Any]]) -> None:
        with transaction() as conn:
            for row in rows:
                repository_messages.insert_message(conn, row)

    return _seed


@pytest.fixture
def make_message() -> Callable[..., Dict[str, Any]]:
    return _message
