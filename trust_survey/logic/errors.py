"""Domain exceptions raised by the survey logic layer.

Route handlers never catch these directly; `create_app()` registers a
problem+json handler for `SurveyError` that maps each subclass to its HTTP
status via `trust_survey.http.error_mapping`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class SurveyError(Exception):
    """Base class for errors surfaced to API callers."""


class DataUnavailable(SurveyError):
    """The message/session store could not be read or written."""


class NotFound(SurveyError):
    """A referenced session or message does not exist."""


class SessionCompleted(SurveyError):
    """The session has already been completed and is read-only."""


class ValidationSkip(ValueError):
    """One submitted response entry cannot be stored and is skipped.

    Not a `SurveyError`: the orchestration layer logs and drops the entry
    while the rest of the submission continues.
    """


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as DataUnavailable."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("store_operation_failed operation=%s", operation, exc_info=True)
        raise DataUnavailable(f"{operation} failed: {exc.__class__.__name__}") from exc


__all__ = [
    "SurveyError",
    "DataUnavailable",
    "NotFound",
    "SessionCompleted",
    "ValidationSkip",
    "store_errors",
]
