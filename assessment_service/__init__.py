"""Assessment Service: versioned, percentage-weighted assessments.

This package exposes a FastAPI application factory plus the engine it wraps:
question authoring, version lifecycle and session scoring. Business logic
lives in `assessment_service/logic/` and route handlers in
`assessment_service/routes/`.
"""

from __future__ import annotations

from assessment_service.main import create_app

__all__ = ["create_app"]
