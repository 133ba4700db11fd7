"""
Ingestion pipeline: documents → chunks → embeddings → vector store.

A single-shot batch job. It is all-or-nothing per run: every chunk is
embedded before anything is written, and the write is one logical
add() call, so a failed run leaves no half-embedded corpus behind.
Re-running on the same documents stores them again (no dedup).

Usage:
    pipeline = IngestionPipeline(
        embeddings=get_embedding_model(config.embedding),
        vector_store=get_vector_store(config.vector_store),
        chunking_config=config.chunking,
    )
    stored = pipeline.run(DirectoryDocumentLoader(config.ingestion))
"""

import logging
from typing import Optional

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from rag_chat.base.indexer import BaseChunker, BaseLoader
from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import ChunkingConfig
from rag_chat.errors import IngestionError
from rag_chat.indexing.chunking import BoundaryChunker
from rag_chat.indexing.embeddings import is_valid_vector
from rag_chat.models.document import Chunk

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Orchestrates chunker, embedding model and vector store.

    Args:
        embeddings: LangChain embedding model (embed_documents is used).
        vector_store: Destination store.
        chunker: Custom chunker; defaults to BoundaryChunker(chunking_config).
        chunking_config: Sizes for the default chunker.
        batch_size: Chunks per embed_documents() call.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        vector_store: BaseVectorStore,
        chunker: Optional[BaseChunker] = None,
        chunking_config: Optional[ChunkingConfig] = None,
        batch_size: int = 64,
    ):
        self._embeddings = embeddings
        self._store = vector_store
        self._chunker = chunker or BoundaryChunker(chunking_config or ChunkingConfig())
        self._batch_size = batch_size

    def run(self, loader: BaseLoader) -> int:
        """Load every document from a loader and ingest them."""
        return self.ingest(loader.load())

    def ingest(self, documents: list[Document]) -> int:
        """
        Chunk, embed and store documents.

        Returns:
            Number of chunks written to the store.

        Raises:
            IngestionError: If embedding or the store write fails.
        """
        chunks = self._split(documents)
        logger.info("Split %d document(s) into %d chunk(s)", len(documents), len(chunks))
        if not chunks:
            logger.warning("Nothing to ingest: no document produced any chunk")
            return 0

        vectors = self._embed(chunks)

        try:
            ids = self._store.add(chunks, vectors)
        except Exception as exc:
            logger.error("Vector store rejected the write of %d chunk(s): %s", len(chunks), exc)
            raise IngestionError(
                "Vector store write failed",
                stage="store",
                cause=exc,
                details={"chunks": len(chunks)},
            ) from exc

        logger.info("Stored %d chunk(s)", len(ids))
        return len(ids)

    def _split(self, documents: list[Document]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for document in documents:
            source = document.metadata.get("source", "<unknown>")
            if not document.page_content or not document.page_content.strip():
                logger.warning("Dropping empty document: %s", source)
                continue
            doc_chunks = self._chunker.split(document)
            logger.debug("%s -> %d chunk(s)", source, len(doc_chunks))
            chunks.extend(doc_chunks)
        return chunks

    def _embed(self, chunks: list[Chunk]) -> list[list[float]]:
        """
        Embed all chunks in batches; any failure aborts the whole run.

        Every vector must be valid and share the first vector's dimension.
        """
        vectors: list[list[float]] = []
        for lo in range(0, len(chunks), self._batch_size):
            batch = chunks[lo:lo + self._batch_size]
            try:
                batch_vectors = self._embeddings.embed_documents([c.content for c in batch])
            except Exception as exc:
                logger.error("Embedding failed for chunks %d-%d: %s", lo, lo + len(batch) - 1, exc)
                raise IngestionError(
                    "Embedding service failed; nothing was stored",
                    stage="embedding",
                    cause=exc,
                    details={"batch_start": lo, "batch_size": len(batch)},
                ) from exc

            if len(batch_vectors) != len(batch):
                raise IngestionError(
                    f"Embedding service returned {len(batch_vectors)} vectors for {len(batch)} chunks",
                    stage="embedding",
                )
            vectors.extend(batch_vectors)

        dimension = len(vectors[0]) if vectors else None
        for i, vector in enumerate(vectors):
            if not is_valid_vector(vector, dimension):
                raise IngestionError(
                    "Embedding service returned a malformed vector; nothing was stored",
                    stage="embedding",
                    details={"chunk": i, "source": chunks[i].source},
                )
        return vectors
