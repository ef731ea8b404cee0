"""FastAPI dependencies wiring route handlers to the domain services.

The store and routing policy are built once by `create_app()` and kept on
`app.state`; handlers receive fresh, stateless service objects per request.
"""

from __future__ import annotations

from fastapi import Depends, Request

from assessment_service.logic.kv_store import KeyValueStore
from assessment_service.logic.question_bank import QuestionBank
from assessment_service.logic.routing_policy import RoutingPolicy
from assessment_service.logic.version_registry import VersionRegistry


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_routing_policy(request: Request) -> RoutingPolicy:
    return request.app.state.routing_policy


def get_question_bank(store: KeyValueStore = Depends(get_store)) -> QuestionBank:
    return QuestionBank(store)


def get_version_registry(bank: QuestionBank = Depends(get_question_bank)) -> VersionRegistry:
    return VersionRegistry(bank.store, bank)


__all__ = ["get_store", "get_routing_policy", "get_question_bank", "get_version_registry"]
