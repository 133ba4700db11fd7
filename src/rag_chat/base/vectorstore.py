"""
Abstract base class for vector stores.

The store is an external collaborator; this is the whole contract the
rest of the package relies on. Embeddings are computed outside the
store, so backends only persist and compare vectors.
"""

from abc import ABC, abstractmethod

from rag_chat.models.document import Chunk, Match, StoredRecord


class BaseVectorStore(ABC):
    """
    Contract for vector stores.

    similarity_search() must return at most `limit` matches, every one
    scoring >= threshold, sorted by descending score with ties left in
    insertion order.
    """

    @abstractmethod
    def add(self, chunks: list[Chunk], embeddings: list[list[float]]) -> list[str]:
        """
        Persist chunks with their vectors in one logical write.

        Returns:
            The store-assigned record ids, in input order.
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        embedding: list[float],
        threshold: float,
        limit: int,
    ) -> list[Match]:
        """
        Find the stored records closest to a query vector.

        Args:
            embedding: Query vector, same dimension as the stored ones.
            threshold: Minimum cosine similarity, 0-1.
            limit: Maximum number of matches.
        """
        ...

    @abstractmethod
    def get_by_ids(self, ids: list[str]) -> list[StoredRecord]:
        """
        Fetch full records. Unknown ids are skipped; order is not guaranteed.
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        ...
