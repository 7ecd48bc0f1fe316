"""Configuration for the assessment service.

Precedence (highest first):
1) Environment variables
2) `assessment_config.json` in the working directory
3) Defaults suitable for local development
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_FILE = Path("assessment_config.json")
logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "postgresql://postgres@localhost:5432/assessment"


class DatabaseConfig(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def url_must_be_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("database.url must be a non-empty string")
        return v.strip()


class AssessmentConfig(BaseModel):
    default_assessment_id: str = "main_vocational"
    # the stored suggestion list is documented to hold at most 10 codes
    suggestion_limit: int = Field(default=5, ge=1, le=10)


class LoggingConfig(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"logging.level {v!r} is not a logging level")
        return level


class AppConfig(BaseModel):
    database: DatabaseConfig
    assessment: AssessmentConfig
    logging: LoggingConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    base = _read_json_file(path)

    def _base(dotted: str) -> Optional[str]:
        cur: object = base
        for key in dotted.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return None
            cur = cur[key]
        return None if cur is None else str(cur)

    def _pick(env_key: str, dotted: str, default: str) -> str:
        return os.environ.get(env_key) or _base(dotted) or default

    try:
        return AppConfig(
            database=DatabaseConfig(url=_pick("DATABASE_URL", "database.url", DEFAULT_DATABASE_URL)),
            assessment=AssessmentConfig(
                default_assessment_id=_pick("ASSESSMENT_ID", "assessment.default_assessment_id", "main_vocational"),
                suggestion_limit=int(_pick("SUGGESTION_LIMIT", "assessment.suggestion_limit", "5")),
            ),
            logging=LoggingConfig(level=_pick("LOG_LEVEL", "logging.level", "INFO")),
        )
    except (ValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


_CONFIG: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def reset_config() -> None:
    global _CONFIG
    _CONFIG = None
