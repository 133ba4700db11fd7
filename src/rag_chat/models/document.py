"""
Document models for the RAG pipeline.

These represent data at each stage:
  Raw document (loaded) → Chunk (split) → StoredRecord (embedded + stored)
  → Match (retrieved + scored)

Raw documents themselves are LangChain Documents; only their chunks
are persisted.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """
    A contiguous slice of one document's text.

    This is the unit that gets embedded and stored in the vector store.
    content is always exactly text[start:start + len(content)] of the
    source document, so overlaps can be stripped to rebuild the original.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="The actual text content")
    index: int = Field(default=0, ge=0, description="Position of this chunk within its document")
    start: int = Field(default=0, ge=0, description="Character offset of content in the document")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Origin metadata inherited from the document, plus chunk_index",
    )
    chunk_size: int = Field(default=1000, gt=0, description="Target length used to cut this chunk")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap with the neighbouring chunks")

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", ""))


class StoredRecord(BaseModel):
    """A chunk as persisted by the vector store, addressed by a store-assigned id."""

    id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: Optional[list[float]] = Field(
        default=None,
        description="Stored vector; lookups may leave it out",
    )


class Match(BaseModel):
    """
    One similarity-search hit.

    score follows the cosine-similarity convention: 0-1, higher is more
    similar. Matches are transient, one list per query.
    """

    id: str
    content: str
    score: float = Field(ge=0.0, le=1.0, description="Cosine similarity to the question")
    metadata: dict[str, Any] = Field(default_factory=dict)
