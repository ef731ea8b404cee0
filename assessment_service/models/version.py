"""Pydantic models for version summaries and version display metadata."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VersionMetadata(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    estimated_time: Optional[str] = None


class VersionSummary(BaseModel):
    """Projection of the questions sharing one version id."""

    id: str
    is_active: bool
    question_count: int
    active_question_count: int
    last_updated: Optional[datetime] = None
    metadata: Optional[VersionMetadata] = None


__all__ = ["VersionMetadata", "VersionSummary"]
