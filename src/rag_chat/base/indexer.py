"""
Abstract base classes for document loading and chunking.

Loading and chunking are separate steps so the file formats a corpus
comes in and the way its text gets cut can vary independently:
    loader = DirectoryDocumentLoader(config.ingestion)
    chunker = BoundaryChunker(config.chunking)
    chunks = chunker.chunk(loader.load())
"""

from abc import ABC, abstractmethod

from langchain_core.documents import Document

from rag_chat.config import ChunkingConfig
from rag_chat.models.document import Chunk


class BaseLoader(ABC):
    """
    Contract for document loaders.

    A loader returns LangChain Documents with page_content and a
    "source" metadata entry. It does NOT chunk.
    """

    @abstractmethod
    def load(self) -> list[Document]:
        """
        Load every document the loader is configured for.

        Returns:
            List of Document objects with page_content and metadata populated.
        """
        ...


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    split() must be deterministic and side-effect free: the same
    document always yields the same chunks. It never raises; degenerate
    input yields zero or one chunk.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def split(self, document: Document) -> list[Chunk]:
        """
        Split one document into ordered chunks.

        Args:
            document: A loaded document.

        Returns:
            Chunks in document order, each carrying the document's
            metadata plus chunk_index.
        """
        ...

    def chunk(self, documents: list[Document]) -> list[Chunk]:
        """Split several documents, keeping document order."""
        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self.split(document))
        return chunks
