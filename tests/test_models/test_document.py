"""Tests for document and chat models."""

import pytest
from pydantic import ValidationError

from rag_chat.models import (
    ChatRequest,
    ChatResponse,
    Chunk,
    ConversationTurn,
    Match,
    Source,
    SourcesPayload,
    StoredRecord,
)


class TestChunk:

    def test_source_from_metadata(self):
        chunk = Chunk(content="text", metadata={"source": "data/a.docx"})
        assert chunk.source == "data/a.docx"

    def test_source_missing(self):
        assert Chunk(content="text").source == ""

    def test_frozen(self):
        chunk = Chunk(content="text")
        with pytest.raises(ValidationError):
            chunk.content = "other"


class TestStoredRecord:

    def test_embedding_optional(self):
        record = StoredRecord(id="1", content="c")
        assert record.embedding is None
        assert record.metadata == {}


class TestMatch:

    @pytest.mark.parametrize("score", [-0.1, 1.01])
    def test_score_range(self, score):
        with pytest.raises(ValidationError):
            Match(id="1", content="c", score=score)

    def test_bounds_allowed(self):
        Match(id="1", content="c", score=0.0)
        Match(id="1", content="c", score=1.0)


class TestChatRequest:

    def test_question_and_history(self, chat_request):
        assert chat_request.question == "How long do I have to ask for a refund?"
        assert [t.content for t in chat_request.history] == ["Hi", "Hello! How can I help?"]

    def test_empty(self):
        request = ChatRequest(messages=[])
        assert request.question == ""
        assert request.history == []

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            ConversationTurn(role="system", content="x")


class TestSource:

    def test_from_match_drops_id_and_score(self):
        match = Match(id="1", content="c", score=0.9, metadata={"source": "s"})
        source = Source.from_match(match)
        assert source.model_dump() == {"content": "c", "metadata": {"source": "s"}}

    def test_payload_default(self):
        assert SourcesPayload().sources == []

    def test_response_defaults(self):
        response = ChatResponse(answer="a")
        assert response.sources == []
