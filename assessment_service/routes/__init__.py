"""APIRouter registration for the Assessment Service."""

from __future__ import annotations

from fastapi import APIRouter

from assessment_service.routes.questions import router as questions_router
from assessment_service.routes.sessions import router as sessions_router
from assessment_service.routes.versions import router as versions_router

api_router = APIRouter()
api_router.include_router(questions_router, tags=["Questions"])
api_router.include_router(versions_router, tags=["Versions"])
api_router.include_router(sessions_router, tags=["Scoring"])

__all__ = ["api_router"]
