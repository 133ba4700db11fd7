"""
Document chunking.

Takes loaded Documents and splits them into overlapping chunks for
embedding. Chunks are exact slices of the source text: nothing is
stripped or rejoined, so dropping the first chunk_overlap characters of
every chunk after the first and concatenating gives back the document.

How a window is cut:

    |<----------- chunk_size ----------->|
    start         floor        ^ last boundary found
                               cut here (right after the separator)

    Separators are tried in priority order (paragraph, line, sentence,
    word). Only boundaries past `floor` count, so chunks never shrink
    below half the target size and always advance past the overlap.
    No boundary → hard cut at chunk_size.

The next window starts chunk_overlap characters before the previous
cut, so consecutive chunks share exactly chunk_overlap characters.

Usage:
    from rag_chat.indexing.chunking import BoundaryChunker
    from rag_chat.config import ChunkingConfig

    chunker = BoundaryChunker(ChunkingConfig(chunk_size=500, chunk_overlap=50))
    chunks = chunker.chunk(documents)
"""

from langchain_core.documents import Document

from rag_chat.base.indexer import BaseChunker
from rag_chat.config import ChunkingConfig
from rag_chat.models.document import Chunk


class BoundaryChunker(BaseChunker):
    """
    Fixed-size windows with boundary-aware cut points.

    Prefers to end a chunk on a paragraph break, then a line break,
    then a sentence end, then a space, looking back at most half a
    window.
    """

    def __init__(self, config: ChunkingConfig = None):
        super().__init__(config or ChunkingConfig())

    def split(self, document: Document) -> list[Chunk]:
        text = document.page_content or ""
        if not text:
            return []

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        chunks: list[Chunk] = []
        start = 0
        while True:
            window_end = start + size
            if window_end >= len(text):
                chunks.append(self._make_chunk(document, text[start:], start, len(chunks)))
                break

            end = self._find_break(text, start, window_end)
            chunks.append(self._make_chunk(document, text[start:end], start, len(chunks)))
            start = end - overlap

        return chunks

    def _find_break(self, text: str, start: int, window_end: int) -> int:
        """
        Return the cut position for the window text[start:window_end].

        The cut is always > start + chunk_overlap, which guarantees the
        next window starts after this one.
        """
        floor = max(start + self.config.chunk_overlap, start + self.config.chunk_size // 2)

        for separator in self.config.separators:
            if not separator:
                continue
            pos = text.rfind(separator, floor, window_end)
            if pos != -1:
                return pos + len(separator)

        return window_end

    def _make_chunk(self, document: Document, content: str, start: int, index: int) -> Chunk:
        metadata = dict(document.metadata)
        metadata["chunk_index"] = index
        return Chunk(
            content=content,
            index=index,
            start=start,
            metadata=metadata,
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )


def merge_chunks(chunks: list[Chunk]) -> str:
    """
    Rebuild a document's text from its chunks by dropping the overlaps.

    Inverse of BoundaryChunker.split() for the chunks of one document.
    """
    if not chunks:
        return ""
    ordered = sorted(chunks, key=lambda c: c.index)
    parts = [ordered[0].content]
    for chunk in ordered[1:]:
        parts.append(chunk.content[chunk.chunk_overlap:])
    return "".join(parts)
