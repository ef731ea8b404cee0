"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
question, version and scoring flows.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

QUESTION_CREATED = "question.created"
QUESTION_UPDATED = "question.updated"
QUESTION_DELETED = "question.deleted"
VERSION_ACTIVATED = "version.activated"
VERSION_DEACTIVATED = "version.deactivated"
VERSION_DELETED = "version.deleted"
SESSION_SCORED = "session.scored"

# In-memory buffer for domain events (test-only visibility)
EVENT_BUFFER: List[Dict[str, Any]] = []
_BUFFER_LOCK = threading.Lock()


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event.

    Events are logged for observability and buffered in-process; delivery to
    other systems is left to the deployment.
    """
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    with _BUFFER_LOCK:
        EVENT_BUFFER.append({"type": event_type, "payload": dict(payload)})


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    with _BUFFER_LOCK:
        events = list(EVENT_BUFFER)
        if clear:
            EVENT_BUFFER.clear()
    return events


__all__ = [
    "QUESTION_CREATED",
    "QUESTION_UPDATED",
    "QUESTION_DELETED",
    "VERSION_ACTIVATED",
    "VERSION_DEACTIVATED",
    "VERSION_DELETED",
    "SESSION_SCORED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
