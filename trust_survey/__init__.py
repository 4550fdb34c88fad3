"""FastAPI application package for the Trust Survey service.

The service assigns each participant session to a balanced pair of message
sets, samples trust-game messages for display and persists survey responses.
Business logic lives in `trust_survey/logic/` and route handlers in
`trust_survey/routes/`.
"""

from __future__ import annotations

from trust_survey.main import create_app

__all__ = ["create_app"]
