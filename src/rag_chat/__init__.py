"""
rag-chat: chat over a private document corpus with cited sources.

Quick start:
    from rag_chat import AppConfig, build_orchestrator
    from rag_chat.models import ChatRequest, ConversationTurn

    orchestrator = build_orchestrator(AppConfig())
    response = await orchestrator.answer(
        ChatRequest(messages=[ConversationTurn(role="user", content="What is covered?")])
    )
    print(response.answer)

Two paths:
    - Ingestion:  DirectoryDocumentLoader → BoundaryChunker → embeddings → vector store
    - Query:      SimilarityRetriever → render_prompt → ChatModelGenerator → d:/0: frames
"""

from rag_chat.config import (
    AppConfig,
    ChunkingConfig,
    EmbeddingConfig,
    IngestionConfig,
    LLMConfig,
    RetrieverConfig,
    ServerConfig,
    TimeoutConfig,
    VectorStoreConfig,
)
from rag_chat.indexing import BoundaryChunker, IngestionPipeline
from rag_chat.orchestrator import ChatOrchestrator, build_orchestrator
from rag_chat.retrieval import SimilarityRetriever

__all__ = [
    # Pipeline (public API)
    "BoundaryChunker",
    "IngestionPipeline",
    "SimilarityRetriever",
    "ChatOrchestrator",
    "build_orchestrator",
    # Config
    "AppConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "ChunkingConfig",
    "RetrieverConfig",
    "VectorStoreConfig",
    "TimeoutConfig",
    "IngestionConfig",
    "ServerConfig",
]

__version__ = "0.1.0"
