"""
Chat API endpoints.

Routes:
- POST /api/chat   - Answer the last user message, streamed as d:/0: frames
- GET  /api/health - Liveness plus the number of stored chunks

Status codes are only meaningful until the first byte is streamed:

    400  invalid request (empty, last turn not from the user, blank question)
    404  no stored chunk above the similarity threshold
    500  embedding / search / lookup failure, or the model failed
         before producing its first delta

After that, a failure ends the stream abruptly; clients must treat an
unexpected close as an error.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from rag_chat.api.deps import get_orchestrator, get_vector_store
from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.errors import InvalidRequest, NoRelevantContext, RagChatError
from rag_chat.models.chat import ChatRequest
from rag_chat.orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

NO_CONTEXT_MESSAGE = (
    "No relevant documents found. Please make sure you have run the ingestion script."
)
GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/chat")
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """
    Answer a chat turn with retrieved context.

    Flow:
    1. Validate and retrieve context (may end in 400/404/500)
    2. Start generation and wait for the first delta (may end in 500)
    3. Stream the sources frame followed by one text frame per delta
    """
    try:
        prepared = await orchestrator.prepare(request)
        chat_stream = await orchestrator.open_stream(prepared)
    except InvalidRequest as e:
        logger.info("Rejected chat request: %s", e)
        return error_response(400, e.message)
    except NoRelevantContext:
        return error_response(404, NO_CONTEXT_MESSAGE)
    except RagChatError as e:
        logger.error("Chat request failed: %s", e)
        return error_response(500, GENERIC_ERROR_MESSAGE)

    return StreamingResponse(
        chat_stream.frames(),
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable proxy buffering
        },
    )


@router.get("/health")
async def health(vector_store: BaseVectorStore = Depends(get_vector_store)) -> dict:
    documents = await asyncio.to_thread(vector_store.count)
    return {"status": "ok", "documents": documents}
