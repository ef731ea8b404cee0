"""Configuration utilities for the Assessment Service.

This module loads application configuration with the following rules:
- Primary source: `assessment_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from assessment_service.models.scoring import RiskLevel, RoutingBand, RoutingOutcome

CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("assessment_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _truthy(value: Any) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


DEFAULT_ROUTING_BANDS: List[dict] = [
    {"min_score": 75, "risk_level": RiskLevel.HIGH.value, "routing_outcome": RoutingOutcome.SPECIALIST.value},
    {"min_score": 25, "risk_level": RiskLevel.MODERATE.value, "routing_outcome": RoutingOutcome.CONSULTATION.value},
    {"min_score": 0, "risk_level": RiskLevel.LOW.value, "routing_outcome": RoutingOutcome.EDUCATIONAL.value},
]


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class StoreConfig(BaseModel):
    backend: str = Field(default="sql")  # one of: sql, memory
    auto_apply_migrations: bool = Field(default=True)

    @field_validator("backend")
    @classmethod
    def backend_must_be_allowed(cls, v: str) -> str:
        allowed = {"sql", "memory"}
        if v not in allowed:
            raise ValueError(f"store.backend must be one of {sorted(allowed)}")
        return v


class RoutingConfig(BaseModel):
    bands: List[RoutingBand]

    @field_validator("bands")
    @classmethod
    def bands_must_cover_zero(cls, v: List[RoutingBand]) -> List[RoutingBand]:
        if not v:
            raise ValueError("routing.bands must not be empty")
        if min(b.min_score for b in v) != 0:
            raise ValueError("routing.bands must include a band starting at 0")
        thresholds = [b.min_score for b in v]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("routing.bands thresholds must be unique")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    store: StoreConfig
    routing: RoutingConfig
    log_level: str = Field(default="INFO")
    test_support: bool = Field(default=False)


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) assessment_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Any = None) -> Any:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return cur if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    backend = (_env("ASSESSMENT_STORE_BACKEND") or _read_config_file("store.backend") or _base("store.backend", "sql")).strip()
    auto_migrate_text = (
        _env("AUTO_APPLY_MIGRATIONS")
        or _read_config_file("store.auto_apply_migrations")
        or _base("store.auto_apply_migrations", "true")
    )

    bands_raw: Any = _env("ROUTING_BANDS") or _read_config_file("routing.bands")
    if isinstance(bands_raw, str):
        try:
            bands_raw = json.loads(bands_raw)
        except json.JSONDecodeError as e:
            logger.error("Invalid ROUTING_BANDS JSON: %s", e)
            raise
    if bands_raw is None:
        bands_raw = _base("routing.bands", DEFAULT_ROUTING_BANDS)

    log_level = _env("LOG_LEVEL") or _read_config_file("log.level") or _base("log_level", "INFO")
    test_support_text = _env("ENABLE_TEST_SUPPORT") or _read_config_file("test_support") or _base("test_support", "false")

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            store=StoreConfig(backend=backend, auto_apply_migrations=_truthy(auto_migrate_text)),
            routing=RoutingConfig(bands=bands_raw),
            log_level=str(log_level),
            test_support=_truthy(test_support_text),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "StoreConfig",
    "RoutingConfig",
    "DEFAULT_ROUTING_BANDS",
    "load_config",
]
