"""
FastAPI application factory.

Expensive collaborators (embedding client, vector store, chat model)
are created once in the lifespan and shared by every request. Tests
and embedders of the app can hand in prebuilt ones instead.

    uvicorn "rag_chat.api.app:create_app" --factory
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rag_chat.api.routes import router
from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import AppConfig
from rag_chat.indexing.vectorstore import get_vector_store
from rag_chat.orchestrator import ChatOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    orchestrator: Optional[ChatOrchestrator] = None,
    vector_store: Optional[BaseVectorStore] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        config: Defaults to AppConfig.from_env().
        orchestrator: Prebuilt orchestrator; built from config when omitted.
        vector_store: Store shared by the orchestrator and /api/health.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or AppConfig.from_env()
        store = vector_store or get_vector_store(cfg.vector_store)
        app.state.vector_store = store
        app.state.orchestrator = orchestrator or build_orchestrator(cfg, vector_store=store)
        count = await asyncio.to_thread(store.count)
        logger.info("rag-chat ready (%s store, %d chunks)", cfg.vector_store.store_type.value, count)
        yield
        logger.info("rag-chat shutting down")

    app = FastAPI(title="rag-chat", lifespan=lifespan)
    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed chat body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    return app
