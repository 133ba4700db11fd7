"""
Pydantic models shared across rag-chat.

Import from here rather than reaching into submodules:
    from rag_chat.models import Chunk, Match, ChatRequest
"""

from .document import Chunk, StoredRecord, Match
from .chat import (
    ConversationTurn,
    ChatRequest,
    Source,
    SourcesPayload,
    ChatResponse,
)

__all__ = [
    # Document
    "Chunk",
    "StoredRecord",
    "Match",
    # Chat
    "ConversationTurn",
    "ChatRequest",
    "Source",
    "SourcesPayload",
    "ChatResponse",
]
