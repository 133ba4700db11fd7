"""
FastAPI dependencies.

Shared collaborators are built once in the app lifespan and parked on
app.state; routes receive them through these providers so tests can
swap them with app.dependency_overrides.
"""

from fastapi import Request

from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.orchestrator import ChatOrchestrator


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


def get_vector_store(request: Request) -> BaseVectorStore:
    return request.app.state.vector_store
