"""Tests for SimilarityRetriever: fake embeddings and mocked stores."""

import asyncio
from unittest.mock import MagicMock

import pytest

from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import RetrieverConfig, TimeoutConfig
from rag_chat.errors import EmbeddingError, NoRelevantContext, RetrievalError
from rag_chat.models.document import Match
from rag_chat.retrieval.search import SimilarityRetriever


def _match(id, score, content=None):
    return Match(id=id, content=content or f"text {id}", score=score, metadata={})


class SlowEmbeddings:
    async def aembed_query(self, text):
        await asyncio.sleep(1)
        return [1.0]


class TestRetrieve:

    @pytest.mark.asyncio
    async def test_end_to_end_over_memory_store(self, embeddings, memory_store):
        retriever = SimilarityRetriever(embeddings, memory_store)
        matches = await retriever.retrieve("What is the refund policy?")

        assert matches
        assert all("refund" in m.content.lower() for m in matches)
        assert matches[0].metadata["source"] == "data/refunds.docx"

    @pytest.mark.asyncio
    async def test_unrelated_question_raises_no_context(self, embeddings, memory_store):
        retriever = SimilarityRetriever(embeddings, memory_store)
        with pytest.raises(NoRelevantContext) as exc_info:
            await retriever.retrieve("Tell me about privacy")
        assert exc_info.value.threshold == 0.5


class TestSearch:

    @pytest.mark.asyncio
    async def test_filters_sorts_and_limits(self, embeddings):
        store = MagicMock(spec=BaseVectorStore)
        store.similarity_search.return_value = [
            _match("c", 0.5), _match("a", 0.9), _match("x", 0.3), _match("b", 0.7),
        ]
        retriever = SimilarityRetriever(embeddings, store, RetrieverConfig(threshold=0.5, limit=4))

        matches = await retriever.search([1.0, 0.0])

        assert [m.id for m in matches] == ["a", "b", "c"]
        store.similarity_search.assert_called_once_with([1.0, 0.0], 0.5, 4)

    @pytest.mark.asyncio
    async def test_limit(self, embeddings):
        store = MagicMock(spec=BaseVectorStore)
        store.similarity_search.return_value = [_match(str(i), 0.9) for i in range(6)]
        retriever = SimilarityRetriever(embeddings, store)
        matches = await retriever.search([1.0], limit=2)
        assert [m.id for m in matches] == ["0", "1"]

    @pytest.mark.asyncio
    async def test_all_below_threshold(self, embeddings):
        store = MagicMock(spec=BaseVectorStore)
        store.similarity_search.return_value = [_match("a", 0.4), _match("b", 0.2)]
        retriever = SimilarityRetriever(embeddings, store)
        with pytest.raises(NoRelevantContext):
            await retriever.search([1.0])

    @pytest.mark.asyncio
    async def test_empty_store(self, embeddings):
        store = MagicMock(spec=BaseVectorStore)
        store.similarity_search.return_value = []
        with pytest.raises(NoRelevantContext):
            await SimilarityRetriever(embeddings, store).search([1.0])

    @pytest.mark.asyncio
    async def test_store_failure(self, embeddings):
        store = MagicMock(spec=BaseVectorStore)
        store.similarity_search.side_effect = ConnectionError("refused")
        with pytest.raises(RetrievalError) as exc_info:
            await SimilarityRetriever(embeddings, store).search([1.0])
        assert exc_info.value.stage == "search"


class TestEmbed:

    @pytest.mark.asyncio
    async def test_embedding_failure(self, mock_vector_store):
        broken = MagicMock()
        broken.aembed_query.side_effect = RuntimeError("401 unauthorized")
        with pytest.raises(EmbeddingError):
            await SimilarityRetriever(broken, mock_vector_store).embed("question")
        mock_vector_store.similarity_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_vector(self, mock_vector_store):
        broken = MagicMock()

        async def empty(text):
            return []

        broken.aembed_query.side_effect = empty
        with pytest.raises(EmbeddingError, match="malformed"):
            await SimilarityRetriever(broken, mock_vector_store).embed("question")

    @pytest.mark.asyncio
    async def test_timeout(self, mock_vector_store):
        retriever = SimilarityRetriever(
            SlowEmbeddings(), mock_vector_store, timeouts=TimeoutConfig(embedding=0.01),
        )
        with pytest.raises(EmbeddingError, match="timed out"):
            await retriever.embed("question")


class TestEnrich:

    @pytest.mark.asyncio
    async def test_reorders_lookup_and_merges_metadata(self, embeddings, mock_vector_store, ranked_matches):
        retriever = SimilarityRetriever(embeddings, mock_vector_store)
        enriched = await retriever.enrich(ranked_matches)

        assert [m.id for m in enriched] == ["rec-a", "rec-b"]
        assert [m.score for m in enriched] == [0.8, 0.6]
        assert enriched[0].metadata == {"source": "data/a.docx", "chunk_index": 0}
        assert enriched[1].metadata["source"] == "data/b.docx"
        mock_vector_store.get_by_ids.assert_called_once_with(["rec-a", "rec-b"])

    @pytest.mark.asyncio
    async def test_missing_record_keeps_search_result(self, embeddings, mock_vector_store):
        mock_vector_store.get_by_ids.return_value = []
        match = Match(id="gone", content="kept", score=0.7, metadata={"source": "s"})
        enriched = await SimilarityRetriever(embeddings, mock_vector_store).enrich([match])
        assert enriched == [match]

    @pytest.mark.asyncio
    async def test_lookup_failure(self, embeddings, mock_vector_store, ranked_matches):
        mock_vector_store.get_by_ids.side_effect = RuntimeError("boom")
        with pytest.raises(RetrievalError) as exc_info:
            await SimilarityRetriever(embeddings, mock_vector_store).enrich(ranked_matches)
        assert exc_info.value.stage == "lookup"
