from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from trust_survey.config import AppConfig, load_config
from trust_survey.db.base import get_engine
from trust_survey.db.migrations_runner import apply_migrations
from trust_survey.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_survey_error,
    handle_unexpected_error,
)
from trust_survey.http.request_id import RequestIdMiddleware
from trust_survey.logging_setup import configure_logging
from trust_survey.logic.errors import SurveyError
from trust_survey.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("health_db_check_failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": e.__class__.__name__}

    return check


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()

    app = FastAPI(title="Trust Survey API")
    app.state.config = cfg

    app.add_exception_handler(SurveyError, handle_survey_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.cors_allow_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not cfg.migrations.auto_apply:
            logger.info("startup_migrations_disabled")
            return
        try:
            apply_migrations(get_engine(), migrations_dir=cfg.migrations.directory)
        except Exception:
            logger.error("startup_migrations_failed", exc_info=True)
            raise

    app.include_router(api_router, prefix="/api")

    # Health endpoint sits outside the /api prefix for load balancers
    health_check = _health_check()

    @app.get("/health")
    def health():
        return health_check()

    logger.info("app_created environment=%s", cfg.server.environment)
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
