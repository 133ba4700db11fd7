"""
Shared test fixtures for the rag-chat test suite.

Provides reusable fixtures: sample documents, configs, a keyword-based
fake embedding model, stub generators and vector stores. Nothing here
calls a real provider.
"""

from typing import Optional
from unittest.mock import MagicMock

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from rag_chat.base.generator import BaseGenerator
from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import ChunkingConfig, RetrieverConfig, TimeoutConfig
from rag_chat.indexing.vectorstore import MemoryVectorStore
from rag_chat.models.chat import ChatRequest, ConversationTurn
from rag_chat.models.document import Match, StoredRecord


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

VOCABULARY = ["refund", "shipping", "warranty", "invoice", "privacy"]


class KeywordEmbeddings(Embeddings):
    """
    Deterministic embeddings: one dimension per vocabulary word, valued
    by how often the word occurs. Texts sharing no vocabulary word are
    orthogonal (similarity 0).
    """

    def __init__(self, vocabulary: Optional[list[str]] = None):
        self.vocabulary = vocabulary or VOCABULARY
        self.calls = 0

    def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        lowered = text.lower()
        return [float(lowered.count(word)) for word in self.vocabulary]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]


class StubGenerator(BaseGenerator):
    """
    Generator replaying canned deltas.

    fail_before raises on the first pull; fail_at raises when delta
    number fail_at would be produced. `closed` records whether the
    stream was shut down.
    """

    def __init__(self, deltas: list[str], fail_before: bool = False, fail_at: Optional[int] = None):
        self.deltas = deltas
        self.fail_before = fail_before
        self.fail_at = fail_at
        self.prompts: list[str] = []
        self.closed = False

    def stream(self, prompt: str):
        self.prompts.append(prompt)
        return self._run()

    async def _run(self):
        try:
            if self.fail_before:
                raise RuntimeError("model unavailable")
            for i, delta in enumerate(self.deltas):
                if self.fail_at is not None and i == self.fail_at:
                    raise RuntimeError("connection reset")
                yield delta
        finally:
            self.closed = True


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chunking_config():
    return ChunkingConfig(chunk_size=120, chunk_overlap=20)


@pytest.fixture
def retriever_config():
    return RetrieverConfig(threshold=0.5, limit=4)


@pytest.fixture
def timeouts():
    return TimeoutConfig(embedding=5.0, search=5.0, generation=5.0)


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_documents():
    """Policy documents, one topic each, so keyword embeddings separate them."""
    return [
        Document(
            page_content="Refund requests are accepted within 30 days. The refund goes back to the original card.",
            metadata={"source": "data/refunds.docx"},
        ),
        Document(
            page_content="Shipping takes three to five business days. Express shipping is available.",
            metadata={"source": "data/shipping.docx"},
        ),
        Document(
            page_content="Every device carries a two year warranty. The warranty covers manufacturing defects.",
            metadata={"source": "data/warranty.docx"},
        ),
    ]


@pytest.fixture
def chat_request():
    return ChatRequest(messages=[
        ConversationTurn(role="user", content="Hi"),
        ConversationTurn(role="assistant", content="Hello! How can I help?"),
        ConversationTurn(role="user", content="How long do I have to ask for a refund?"),
    ])


@pytest.fixture
def ranked_matches():
    return [
        Match(id="rec-a", content="Alpha passage", score=0.8, metadata={}),
        Match(id="rec-b", content="Beta passage", score=0.6, metadata={}),
    ]


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def embeddings():
    return KeywordEmbeddings()


@pytest.fixture
def memory_store(sample_documents, embeddings, chunking_config):
    """A memory store already holding the chunks of sample_documents."""
    from rag_chat.indexing.pipeline import IngestionPipeline

    store = MemoryVectorStore()
    IngestionPipeline(embeddings, store, chunking_config=chunking_config).ingest(sample_documents)
    return store


@pytest.fixture
def mock_vector_store(ranked_matches):
    """
    A mock store returning two matches (0.8 and 0.6).

    get_by_ids answers in reverse order with richer metadata, the way
    an `IN (...)` query would.
    """
    store = MagicMock(spec=BaseVectorStore)
    store.similarity_search.return_value = list(ranked_matches)
    store.get_by_ids.return_value = [
        StoredRecord(id="rec-b", content="Beta passage", metadata={"source": "data/b.docx", "chunk_index": 3}),
        StoredRecord(id="rec-a", content="Alpha passage", metadata={"source": "data/a.docx", "chunk_index": 0}),
    ]
    store.count.return_value = 2
    return store


@pytest.fixture
def make_generator():
    """The StubGenerator class, for tests that need several configurations."""
    return StubGenerator
