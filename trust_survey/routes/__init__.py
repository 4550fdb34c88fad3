"""APIRouter registration for the Trust Survey service."""

from __future__ import annotations

from fastapi import APIRouter

from trust_survey.routes.messages import router as messages_router
from trust_survey.routes.results import router as results_router
from trust_survey.routes.sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(messages_router, tags=["Messages"])
api_router.include_router(sessions_router, tags=["Sessions"])
api_router.include_router(results_router, tags=["Results"])

__all__ = ["api_router"]
