"""
Connectivity check for the external collaborators.

Run before a first ingestion to find out whether the embedding provider
accepts the configured credentials and whether the vector store opens.
Each probe is independent; one failure does not hide the others.
"""

import logging
from typing import Optional

from langchain_core.embeddings import Embeddings
from pydantic import BaseModel

from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import AppConfig
from rag_chat.indexing.embeddings import get_embedding_model, is_valid_vector
from rag_chat.indexing.vectorstore import get_vector_store

logger = logging.getLogger(__name__)

PROBE_TEXT = "connection check"


class ProbeResult(BaseModel):
    name: str
    ok: bool
    detail: str = ""


def check_connections(
    config: AppConfig,
    embeddings: Optional[Embeddings] = None,
    vector_store: Optional[BaseVectorStore] = None,
) -> list[ProbeResult]:
    """Probe the embedding provider and the vector store."""
    return [
        _probe_embeddings(config, embeddings),
        _probe_vector_store(config, vector_store),
    ]


def _probe_embeddings(config: AppConfig, embeddings: Optional[Embeddings]) -> ProbeResult:
    name = f"embeddings ({config.embedding.provider}/{config.embedding.model_name})"
    try:
        model = embeddings or get_embedding_model(config.embedding)
        vector = model.embed_query(PROBE_TEXT)
    except Exception as exc:
        logger.error("Embedding probe failed: %s", exc)
        return ProbeResult(name=name, ok=False, detail=f"{type(exc).__name__}: {exc}")

    if not is_valid_vector(vector):
        return ProbeResult(name=name, ok=False, detail="provider returned a malformed vector")
    return ProbeResult(name=name, ok=True, detail=f"dimension {len(vector)}")


def _probe_vector_store(config: AppConfig, vector_store: Optional[BaseVectorStore]) -> ProbeResult:
    name = f"vector store ({config.vector_store.store_type.value})"
    try:
        store = vector_store or get_vector_store(config.vector_store)
        count = store.count()
    except Exception as exc:
        logger.error("Vector store probe failed: %s", exc)
        return ProbeResult(name=name, ok=False, detail=f"{type(exc).__name__}: {exc}")
    return ProbeResult(name=name, ok=True, detail=f"{count} stored chunk(s)")
