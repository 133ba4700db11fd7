"""
Query-time retrieval.

Embeds the question, runs a thresholded similarity search and then
fetches the full records of the hits so every match carries its
complete citation metadata (source path etc.), even when the search
response itself is metadata-sparse.

Each step maps its collaborator's failures to one error type:

    embed()   → EmbeddingError
    search()  → RetrievalError, or NoRelevantContext on zero hits
    enrich()  → RetrievalError

NoRelevantContext is a normal outcome ("nothing in the corpus on
that"), never a RetrievalError.

Usage:
    retriever = SimilarityRetriever(embeddings, store, RetrieverConfig(threshold=0.5, limit=4))
    matches = await retriever.retrieve("What is the refund policy?")
"""

import asyncio
import logging
from typing import Optional

from langchain_core.embeddings import Embeddings

from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import RetrieverConfig, TimeoutConfig
from rag_chat.errors import EmbeddingError, NoRelevantContext, RetrievalError
from rag_chat.indexing.embeddings import is_valid_vector
from rag_chat.models.document import Match

logger = logging.getLogger(__name__)


class SimilarityRetriever:
    """
    Cosine-similarity retriever over a BaseVectorStore.

    Results come back highest score first; equal scores keep the
    store's order (insertion order for the bundled backends).
    Synchronous store calls run in a worker thread so the event loop
    stays free while the store works.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        vector_store: BaseVectorStore,
        config: Optional[RetrieverConfig] = None,
        timeouts: Optional[TimeoutConfig] = None,
    ):
        self._embeddings = embeddings
        self._store = vector_store
        self._config = config or RetrieverConfig()
        self._timeouts = timeouts or TimeoutConfig()

    async def retrieve(
        self,
        question: str,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[Match]:
        vector = await self.embed(question)
        matches = await self.search(vector, threshold, limit)
        return await self.enrich(matches)

    async def embed(self, question: str) -> list[float]:
        try:
            vector = await asyncio.wait_for(
                self._embeddings.aembed_query(question),
                self._timeouts.embedding,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Question embedding timed out after %ss", self._timeouts.embedding)
            raise EmbeddingError("Embedding timed out", stage="embedding", cause=exc) from exc
        except Exception as exc:
            logger.error("Question embedding failed: %s", exc)
            raise EmbeddingError("Embedding failed", stage="embedding", cause=exc) from exc

        if not is_valid_vector(vector):
            logger.error("Embedding service returned a malformed vector: %r", type(vector))
            raise EmbeddingError("Embedding returned a malformed vector", stage="embedding")
        return list(vector)

    async def search(
        self,
        vector: list[float],
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[Match]:
        threshold = self._config.threshold if threshold is None else threshold
        limit = limit or self._config.limit

        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self._store.similarity_search, vector, threshold, limit),
                self._timeouts.search,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Similarity search timed out after %ss", self._timeouts.search)
            raise RetrievalError("Similarity search timed out", stage="search", cause=exc) from exc
        except Exception as exc:
            logger.error("Similarity search failed: %s", exc)
            raise RetrievalError("Similarity search failed", stage="search", cause=exc) from exc

        # Stores are trusted to honour the contract, but a leaky backend
        # must not widen it.
        matches = [m for m in raw if m.score >= threshold]
        matches = sorted(matches, key=lambda m: m.score, reverse=True)[:limit]

        logger.info(
            "Similarity search: %d match(es) at threshold %.2f (limit %d)",
            len(matches), threshold, limit,
        )
        if not matches:
            raise NoRelevantContext(threshold)
        return matches

    async def enrich(self, matches: list[Match]) -> list[Match]:
        """
        Replace each match's metadata with its full record's metadata.

        Lookup order is not trusted; results are re-keyed by id and put
        back in ranked order. A match whose record is missing keeps its
        search metadata.
        """
        ids = [m.id for m in matches]
        try:
            records = await asyncio.wait_for(
                asyncio.to_thread(self._store.get_by_ids, ids),
                self._timeouts.search,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Record lookup timed out after %ss", self._timeouts.search)
            raise RetrievalError("Record lookup timed out", stage="lookup", cause=exc) from exc
        except Exception as exc:
            logger.error("Record lookup failed for %d id(s): %s", len(ids), exc)
            raise RetrievalError("Record lookup failed", stage="lookup", cause=exc) from exc

        by_id = {record.id: record for record in records}
        missing = [i for i in ids if i not in by_id]
        if missing:
            logger.warning("Record lookup missed %d of %d id(s)", len(missing), len(ids))

        enriched = []
        for match in matches:
            record = by_id.get(match.id)
            if record is None:
                enriched.append(match)
            else:
                enriched.append(match.model_copy(update={
                    "content": record.content or match.content,
                    "metadata": {**match.metadata, **record.metadata},
                }))
        return enriched
