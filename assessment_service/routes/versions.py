"""Version lifecycle routes: summaries, activation and cascade delete."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from assessment_service.logic.version_registry import VersionRegistry
from assessment_service.models.version import VersionMetadata
from assessment_service.routes.dependencies import get_version_registry

router = APIRouter(prefix="/versions")
logger = logging.getLogger(__name__)


def _registry_state(registry: VersionRegistry) -> dict:
    return {"active_version_id": registry.active_version_id()}


@router.get("")
def list_versions(registry: VersionRegistry = Depends(get_version_registry)) -> dict:
    versions = registry.list_versions()
    return {
        "versions": [v.model_dump(mode="json") for v in versions],
        **_registry_state(registry),
    }


@router.get("/{version_id}")
def get_version(version_id: str, registry: VersionRegistry = Depends(get_version_registry)) -> dict:
    return registry.get_version(version_id).model_dump(mode="json")


@router.put("/{version_id}/metadata")
def save_version_metadata(
    version_id: str,
    payload: VersionMetadata,
    registry: VersionRegistry = Depends(get_version_registry),
) -> dict:
    return registry.save_metadata(version_id, payload).model_dump(mode="json")


@router.post("/{version_id}/activate")
def activate_version(version_id: str, registry: VersionRegistry = Depends(get_version_registry)) -> dict:
    registry.activate_version(version_id)
    return _registry_state(registry)


@router.post("/{version_id}/deactivate")
def deactivate_version(version_id: str, registry: VersionRegistry = Depends(get_version_registry)) -> dict:
    registry.deactivate_version(version_id)
    return _registry_state(registry)


@router.delete("/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_version(version_id: str, registry: VersionRegistry = Depends(get_version_registry)) -> Response:
    removed = registry.delete_version(version_id)
    logger.info("versions.delete version=%s removed=%s", version_id, removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
