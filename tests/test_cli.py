"""Tests for the typer CLI: providers patched out, memory store only."""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from rag_chat.cli import app
from rag_chat.diagnostics import ProbeResult
from rag_chat.errors import NoRelevantContext, RetrievalError
from rag_chat.indexing.vectorstore import MemoryVectorStore
from rag_chat.models.chat import ChatResponse
from rag_chat.models.document import Match

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI callback reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestIngest:

    def test_ingests_directory(self, tmp_path, embeddings):
        (tmp_path / "refunds.txt").write_text("Refunds are accepted within 30 days.", encoding="utf-8")
        store = MemoryVectorStore()

        with patch("rag_chat.cli.get_embedding_model", return_value=embeddings), \
                patch("rag_chat.cli.get_vector_store", return_value=store):
            result = runner.invoke(app, ["ingest", "--data-dir", str(tmp_path), "--glob", "*.txt"])

        assert result.exit_code == 0, result.output
        assert "Ingested 1 chunk(s)." in result.output
        assert store.count() == 1

    def test_missing_directory_exits_1(self, tmp_path, embeddings):
        with patch("rag_chat.cli.get_embedding_model", return_value=embeddings), \
                patch("rag_chat.cli.get_vector_store", return_value=MemoryVectorStore()):
            result = runner.invoke(app, ["ingest", "--data-dir", str(tmp_path / "nope")])

        assert result.exit_code == 1

    def test_missing_provider_package_exits_1(self, tmp_path):
        missing = ImportError("langchain-google-genai is not installed")
        with patch("rag_chat.cli.get_embedding_model", side_effect=missing), \
                patch("rag_chat.cli.get_vector_store", return_value=MemoryVectorStore()):
            result = runner.invoke(app, ["ingest", "--data-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert not isinstance(result.exception, ImportError)

    def test_invalid_setting_exits_1(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RAG_CHAT_CHUNKING__CHUNK_SIZE", "not-a-number")
        with patch("rag_chat.cli.get_embedding_model") as factory:
            result = runner.invoke(app, ["ingest", "--data-dir", str(tmp_path)])

        assert result.exit_code == 1
        factory.assert_not_called()


class TestAsk:

    def _orchestrator(self, **kwargs):
        orchestrator = AsyncMock()
        orchestrator.answer = AsyncMock(**kwargs)
        return orchestrator

    def test_prints_answer_and_sources(self):
        response = ChatResponse(
            answer="Within 30 days.",
            sources=[Match(id="1", content="c", score=0.91, metadata={"source": "data/refunds.docx"})],
        )
        orchestrator = self._orchestrator(return_value=response)

        with patch("rag_chat.cli.build_orchestrator", return_value=orchestrator):
            result = runner.invoke(app, ["ask", "How long for a refund?"])

        assert result.exit_code == 0, result.output
        assert "Within 30 days." in result.output
        assert "data/refunds.docx (score 0.91)" in result.output

    def test_no_context_exits_2(self):
        orchestrator = self._orchestrator(side_effect=NoRelevantContext(0.5))
        with patch("rag_chat.cli.build_orchestrator", return_value=orchestrator):
            result = runner.invoke(app, ["ask", "privacy?"])
        assert result.exit_code == 2
        assert "No relevant documents found" in result.output

    def test_failure_exits_1(self):
        orchestrator = self._orchestrator(side_effect=RetrievalError("down", stage="search"))
        with patch("rag_chat.cli.build_orchestrator", return_value=orchestrator):
            result = runner.invoke(app, ["ask", "refund?"])
        assert result.exit_code == 1

    def test_missing_provider_package_exits_1(self):
        with patch("rag_chat.cli.build_orchestrator", side_effect=ImportError("langchain-groq is not installed")):
            result = runner.invoke(app, ["ask", "refund?"])
        assert result.exit_code == 1
        assert not isinstance(result.exception, ImportError)

    def test_invalid_setting_exits_1(self, monkeypatch):
        monkeypatch.setenv("RAG_CHAT_RETRIEVER__THRESHOLD", "2")
        with patch("rag_chat.cli.build_orchestrator") as build:
            result = runner.invoke(app, ["ask", "refund?"])
        assert result.exit_code == 1
        build.assert_not_called()


class TestCheck:

    def test_all_ok(self):
        probes = [ProbeResult(name="embeddings", ok=True, detail="dimension 5")]
        with patch("rag_chat.cli.check_connections", return_value=probes):
            result = runner.invoke(app, ["check"])
        assert result.exit_code == 0
        assert "OK   embeddings: dimension 5" in result.output

    def test_failure_exits_1(self):
        probes = [
            ProbeResult(name="embeddings", ok=False, detail="401"),
            ProbeResult(name="vector store", ok=True, detail="0 stored chunk(s)"),
        ]
        with patch("rag_chat.cli.check_connections", return_value=probes):
            result = runner.invoke(app, ["check"])
        assert result.exit_code == 1
        assert "FAIL embeddings: 401" in result.output

    def test_invalid_setting_exits_1(self, monkeypatch):
        monkeypatch.setenv("RAG_CHAT_VECTOR_STORE__STORE_TYPE", "cassandra")
        with patch("rag_chat.cli.check_connections") as check:
            result = runner.invoke(app, ["check"])
        assert result.exit_code == 1
        check.assert_not_called()
