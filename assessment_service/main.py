"""FastAPI application factory for the Assessment Service.

`create_app()` configures logging, builds the configured store (applying
migrations for the SQL backend), registers the problem+json handlers and
mounts the versioned API router. Nothing is instantiated at import time.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from assessment_service.config import AppConfig, load_config
from assessment_service.db.base import get_engine
from assessment_service.db.migrations_runner import apply_migrations
from assessment_service.http.problem import (
    handle_assessment_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from assessment_service.http.request_id import RequestIdMiddleware
from assessment_service.logging_setup import configure_logging
from assessment_service.logic.errors import AssessmentError
from assessment_service.logic.kv_store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from assessment_service.logic.routing_policy import RoutingPolicy
from assessment_service.routes import api_router

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> KeyValueStore:
    """Construct the configured store adapter, applying migrations for SQL."""
    if config.store.backend == "memory":
        logger.info("store.backend=memory")
        return InMemoryKeyValueStore()
    engine = get_engine(config.database.dsn)
    if config.store.auto_apply_migrations:
        try:
            # Migrations are idempotent (IF NOT EXISTS); a fresh in-memory DB needs them every time
            apply_migrations(engine, use_journal=False)
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
    else:
        logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
    return SqlKeyValueStore(engine)


def create_app(config: Optional[AppConfig] = None, store: Optional[KeyValueStore] = None) -> FastAPI:
    """Build the FastAPI application.

    `config` defaults to `load_config()`; passing `store` bypasses the
    configured backend (tests inject an in-memory store this way).
    """
    config = config or load_config()
    configure_logging(config.log_level)

    app = FastAPI(title="Assessment Service")
    app.state.config = config
    app.state.store = store if store is not None else build_store(config)
    app.state.routing_policy = RoutingPolicy.from_config(config.routing.bands)

    app.add_exception_handler(AssessmentError, handle_assessment_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix="/api/v1")
    if config.test_support:
        from assessment_service.routes.test_support import router as test_support_router

        app.include_router(test_support_router)

    @app.get("/health")
    def health() -> dict:
        try:
            app.state.store.ping()
        except Exception as e:
            logger.error("Health store check failed", exc_info=True)
            return {"status": "degraded", "store": False, "reason": str(e)}
        return {"status": "ok", "store": True}

    logger.info(
        "app.created store=%s bands=%s",
        type(app.state.store).__name__,
        len(app.state.routing_policy.bands),
    )
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
