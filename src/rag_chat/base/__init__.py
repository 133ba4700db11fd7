"""
Abstract base classes defining the contract for each pipeline stage.

Import from here:
    from rag_chat.base import BaseChunker, BaseVectorStore, BaseGenerator
"""

from .indexer import BaseLoader, BaseChunker
from .vectorstore import BaseVectorStore
from .generator import BaseGenerator

__all__ = [
    "BaseLoader",
    "BaseChunker",
    "BaseVectorStore",
    "BaseGenerator",
]
