"""
Vector store backends and factory.

This is the final step of the ingestion path and the first lookup of
the query path:

    Loader → Chunker → Embeddings → VectorStore (this file) → Retriever

Embeddings are computed by the pipeline, not by the store, so both
backends accept precomputed vectors.

    memory: numpy cosine similarity over an in-process list. Stable
            ordering on ties (insertion order). Good for tests and
            throwaway sessions; nothing survives the process.
    chroma: LangChain's Chroma wrapper on a cosine-space collection.
            Persists to disk when persist_directory is set, so the
            ingest command and the server can share it.

Usage:
    from rag_chat.indexing.vectorstore import get_vector_store
    from rag_chat.config import VectorStoreConfig

    store = get_vector_store(VectorStoreConfig(store_type="memory"))
    ids = store.add(chunks, vectors)
    matches = store.similarity_search(query_vector, threshold=0.5, limit=4)
"""

import logging
import threading
import uuid
from typing import Any

import numpy as np

from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import VectorStoreConfig, VectorStoreType
from rag_chat.errors import ConfigurationError
from rag_chat.models.document import Chunk, Match, StoredRecord

logger = logging.getLogger(__name__)


def get_vector_store(config: VectorStoreConfig) -> BaseVectorStore:
    """
    Factory that returns the configured vector store backend.

    Raises:
        ConfigurationError: If the store type is not recognized.
    """
    if config.store_type == VectorStoreType.MEMORY:
        return MemoryVectorStore()

    elif config.store_type == VectorStoreType.CHROMA:
        return ChromaVectorStore(config)

    else:
        raise ConfigurationError(
            f"Unknown vector store type: '{config.store_type}'. "
            f"Supported: 'memory', 'chroma'.",
            details={"store_type": str(config.store_type)},
        )


def _check_batch(chunks: list[Chunk], embeddings: list[list[float]]) -> None:
    if len(chunks) != len(embeddings):
        raise ValueError(
            f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
        )


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

class MemoryVectorStore(BaseVectorStore):
    """
    In-process store with exact cosine similarity.

    Scores are clipped to 0-1 (opposite vectors count as unrelated) and
    ties keep insertion order because the sort is stable.
    """

    def __init__(self):
        self._records: list[StoredRecord] = []
        self._matrix = None
        self._lock = threading.Lock()

    def add(self, chunks: list[Chunk], embeddings: list[list[float]]) -> list[str]:
        _check_batch(chunks, embeddings)
        if not chunks:
            return []

        vectors = np.asarray(embeddings, dtype=float)
        if vectors.ndim != 2:
            raise ValueError("All embeddings must have the same dimension")

        records = [
            StoredRecord(
                id=str(uuid.uuid4()),
                content=chunk.content,
                metadata=dict(chunk.metadata),
                embedding=list(map(float, vector)),
            )
            for chunk, vector in zip(chunks, embeddings)
        ]

        with self._lock:
            if self._matrix is not None and self._matrix.shape[1] != vectors.shape[1]:
                raise ValueError(
                    f"Embedding dimension {vectors.shape[1]} does not match "
                    f"stored dimension {self._matrix.shape[1]}"
                )
            self._matrix = vectors if self._matrix is None else np.vstack([self._matrix, vectors])
            self._records.extend(records)

        return [record.id for record in records]

    def similarity_search(
        self,
        embedding: list[float],
        threshold: float,
        limit: int,
    ) -> list[Match]:
        with self._lock:
            matrix = self._matrix
            records = list(self._records)

        if matrix is None:
            return []

        query = np.asarray(embedding, dtype=float)
        if query.shape != (matrix.shape[1],):
            raise ValueError(
                f"Query dimension {query.shape} does not match stored dimension {matrix.shape[1]}"
            )

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
        scores = np.clip(scores, 0.0, 1.0)

        matches: list[Match] = []
        for i in np.argsort(-scores, kind="stable"):
            score = float(scores[i])
            if score < threshold or len(matches) >= limit:
                break
            record = records[i]
            matches.append(Match(
                id=record.id,
                content=record.content,
                score=score,
                metadata=dict(record.metadata),
            ))
        return matches

    def get_by_ids(self, ids: list[str]) -> list[StoredRecord]:
        wanted = set(ids)
        with self._lock:
            return [
                record.model_copy(update={"embedding": None})
                for record in self._records
                if record.id in wanted
            ]

    def count(self) -> int:
        return len(self._records)


# ---------------------------------------------------------------------------
# Chroma
# ---------------------------------------------------------------------------

class ChromaVectorStore(BaseVectorStore):
    """
    Chroma-backed store.

    The collection is created in cosine space, so Chroma's distance is
    1 - cosine similarity and the score is recovered as 1 - distance.
    Chroma only accepts scalar metadata values; anything else is
    stored as its string form.
    """

    # Chroma rejects very large single writes; stay well under its limit.
    write_batch_size = 1000

    def __init__(self, config: VectorStoreConfig):
        from langchain_chroma import Chroma

        kwargs: dict[str, Any] = {
            "collection_name": config.collection_name,
            "collection_metadata": {"hnsw:space": "cosine"},
        }
        if config.persist_directory:
            kwargs["persist_directory"] = config.persist_directory

        self._store = Chroma(**kwargs)
        logger.info(
            "Chroma collection '%s' ready (%d records)",
            config.collection_name,
            self.count(),
        )

    def add(self, chunks: list[Chunk], embeddings: list[list[float]]) -> list[str]:
        _check_batch(chunks, embeddings)
        ids = [str(uuid.uuid4()) for _ in chunks]

        for lo in range(0, len(chunks), self.write_batch_size):
            hi = lo + self.write_batch_size
            self._store._collection.add(
                ids=ids[lo:hi],
                embeddings=embeddings[lo:hi],
                documents=[chunk.content for chunk in chunks[lo:hi]],
                metadatas=[_scalar_metadata(chunk.metadata) for chunk in chunks[lo:hi]],
            )
        return ids

    def similarity_search(
        self,
        embedding: list[float],
        threshold: float,
        limit: int,
    ) -> list[Match]:
        results = self._store.similarity_search_by_vector_with_relevance_scores(
            embedding, k=limit,
        )

        matches: list[Match] = []
        for doc, distance in results:
            score = min(max(1.0 - float(distance), 0.0), 1.0)
            if score < threshold:
                continue
            matches.append(Match(
                id=str(doc.id),
                content=doc.page_content,
                score=score,
                metadata=dict(doc.metadata or {}),
            ))

        # HNSW results are already ordered; the stable sort only settles ties.
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def get_by_ids(self, ids: list[str]) -> list[StoredRecord]:
        return [
            StoredRecord(id=str(doc.id), content=doc.page_content, metadata=dict(doc.metadata or {}))
            for doc in self._store.get_by_ids(ids)
        ]

    def count(self) -> int:
        return self._store._collection.count()


def _scalar_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    cleaned = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            cleaned[key] = value
        else:
            cleaned[key] = str(value)
    return cleaned
