"""Configuration utilities for the Trust Survey service.

This module loads application configuration with the following rules:
- Primary source: `trust_survey_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("trust_survey_config.json")
DEFAULT_DSN = "sqlite+pysqlite:///trust_survey.db"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str
    ssl_required: bool = Field(default=False)
    pool_size: int = Field(default=20, gt=0)
    connect_timeout_seconds: int = Field(default=10, gt=0)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        v = v.strip()
        # Hosting platforms hand out the legacy scheme SQLAlchemy no longer accepts
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        return v


class SamplingConfig(BaseModel):
    default_size: int = Field(default=10, gt=0)
    max_size: int = Field(default=200, gt=0)

    @model_validator(mode="after")
    def max_covers_default(self) -> "SamplingConfig":
        if self.max_size < self.default_size:
            raise ValueError("sampling.max_size must be >= sampling.default_size")
        return self


class MigrationsConfig(BaseModel):
    auto_apply: bool = Field(default=False)
    directory: Optional[str] = None


class ServerConfig(BaseModel):
    environment: str = Field(default="development")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class AppConfig(BaseModel):
    database: DatabaseConfig
    sampling: SamplingConfig
    migrations: MigrationsConfig
    server: ServerConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) trust_survey_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(item) for item in cur)
        return str(cur) if cur is not None else default

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or DEFAULT_DSN
    )
    environment = (_env("APP_ENV") or _read_config_file("server.environment") or _base("server.environment", "development")).strip()
    # SSL defaults on in production, matching managed Postgres offerings
    ssl_default = "true" if environment == "production" else "false"
    ssl_required_text = _env("DATABASE_SSL_REQUIRED") or _read_config_file("database.ssl.required") or _base("database.ssl_required", ssl_default)
    pool_size_text = _env("DATABASE_POOL_SIZE") or _base("database.pool_size", "20")

    # Sampling
    default_size_text = _env("SAMPLE_DEFAULT_SIZE") or _read_config_file("sampling.default_size") or _base("sampling.default_size", "10")
    max_size_text = _env("SAMPLE_MAX_SIZE") or _read_config_file("sampling.max_size") or _base("sampling.max_size", "200")

    # Migrations
    auto_apply_text = _env("AUTO_APPLY_MIGRATIONS") or _base("migrations.auto_apply", "false")
    migrations_dir = _env("MIGRATIONS_DIR") or _base("migrations.directory")

    # CORS
    origins_text = _env("CORS_ALLOW_ORIGINS") or _read_config_file("cors.allow_origins") or _base("server.cors_allow_origins", "*")
    origins = [o.strip() for o in str(origins_text).split(",") if o.strip()]

    try:
        cfg = AppConfig(
            database=DatabaseConfig(
                dsn=dsn,
                ssl_required=_truthy(ssl_required_text),
                pool_size=int(str(pool_size_text).strip()),
            ),
            sampling=SamplingConfig(
                default_size=int(str(default_size_text).strip()),
                max_size=int(str(max_size_text).strip()),
            ),
            migrations=MigrationsConfig(auto_apply=_truthy(auto_apply_text), directory=migrations_dir),
            server=ServerConfig(environment=environment, cors_allow_origins=origins),
        )
        return cfg
    except PydanticValidationError as e:
        # Surface actionable message before propagating
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SamplingConfig",
    "MigrationsConfig",
    "ServerConfig",
    "load_config",
]
