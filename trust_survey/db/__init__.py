"""Database bootstrap utilities for the Trust Survey service.

This module exposes convenience imports for engine construction, the
transaction helper and the migrations runner that applies SQL files from the
packaged trust_survey/migrations/ scripts. The DB layer does not leak ORM models into route
handlers.
"""

from trust_survey.db.base import get_engine, reset_engine, transaction
from trust_survey.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "reset_engine",
    "transaction",
    "apply_migrations",
]
