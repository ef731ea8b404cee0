"""Database bootstrap utilities for the Assessment Service.

Exposes engine construction and the migrations runner that applies SQL files
from the local migrations/ directory. The DB layer does not leak ORM models
into route handlers.
"""

from assessment_service.db.base import dispose_engine, get_engine
from assessment_service.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
