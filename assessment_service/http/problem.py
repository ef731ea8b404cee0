"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type, a builder for problem bodies and the
handler callables registered by `create_app()`. Domain errors are mapped to
statuses through `assessment_service.http.error_mapping`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from assessment_service.http.error_mapping import lookup
from assessment_service.logic.errors import AssessmentError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_body(code: str, detail: str, **extra: Any) -> Dict[str, Any]:
    entry = lookup(code)
    body: Dict[str, Any] = {
        "type": "about:blank",
        "title": entry["title"],
        "status": entry["status"],
        "detail": detail,
        "code": code,
    }
    body.update(extra)
    return body


def problem_response(code: str, detail: str, headers: Optional[Dict[str, str]] = None, **extra: Any) -> JSONResponse:
    body = problem_body(code, detail, **extra)
    return JSONResponse(
        jsonable_encoder(body),
        status_code=int(body["status"]),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


async def handle_assessment_error(request: Request, exc: AssessmentError) -> JSONResponse:
    status = lookup(exc.code)["status"]
    logger.info(
        "error_handler.handle code=%s status=%s path=%s",
        exc.code,
        status,
        request.url.path,
    )
    return problem_response(exc.code, exc.detail, **exc.extra)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        body = dict(exc.detail)
        body.setdefault("status", status_code)
    else:
        body = {"title": "Error", "status": status_code, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()} or None
    return JSONResponse(body, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problem = {
        "type": "about:blank",
        "title": "Unprocessable Entity",
        "status": 422,
        "detail": "Request validation failed",
        "code": "VALIDATION_FAILED",
        "errors": jsonable_encoder(exc.errors()),
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        {"type": "about:blank", "title": "Internal Server Error", "status": 500},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_body",
    "problem_response",
    "handle_assessment_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
