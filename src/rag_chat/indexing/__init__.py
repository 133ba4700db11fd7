"""
Indexing layer: turns source documents into a searchable corpus.

    from rag_chat.indexing import BoundaryChunker, IngestionPipeline
"""

from .chunking import BoundaryChunker, merge_chunks
from .embeddings import get_embedding_model
from .loaders import DirectoryDocumentLoader
from .pipeline import IngestionPipeline
from .vectorstore import ChromaVectorStore, MemoryVectorStore, get_vector_store

__all__ = [
    "BoundaryChunker",
    "merge_chunks",
    "get_embedding_model",
    "DirectoryDocumentLoader",
    "IngestionPipeline",
    "ChromaVectorStore",
    "MemoryVectorStore",
    "get_vector_store",
]
