"""Tests for utility helpers."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from rag_chat.config import LLMConfig
from rag_chat.errors import ConfigurationError
from rag_chat.utils.helpers import get_llm
from rag_chat.utils.log import configure_logging, preview


class TestGetLLM:

    @patch("langchain_openai.ChatOpenAI")
    def test_openai_provider(self, mock_openai_cls):
        """Should instantiate a streaming ChatOpenAI for the openai provider."""
        mock_openai_cls.return_value = MagicMock()
        config = LLMConfig(provider="openai", model_name="gpt-4o-mini")
        result = get_llm(config)

        assert result is mock_openai_cls.return_value
        mock_openai_cls.assert_called_once_with(
            model="gpt-4o-mini", temperature=0.3, max_tokens=1024, streaming=True,
        )

    def test_unknown_provider_raises(self):
        """Unknown provider should raise ConfigurationError (a ValueError)."""
        # Create a config with valid enum then override
        config = LLMConfig()
        config.provider = "unsupported"
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm(config)

    def test_unknown_provider_is_configuration_error(self):
        config = LLMConfig()
        config.provider = "unsupported"
        with pytest.raises(ConfigurationError):
            get_llm(config)


class TestPreview:

    def test_short_text_unchanged(self):
        assert preview("hello world") == "hello world"

    def test_flattens_whitespace(self):
        assert preview("line one\n\tline two") == "line one line two"

    def test_truncates(self):
        assert preview("x" * 100, max_length=10) == "x" * 10 + "..."


class TestConfigureLogging:

    def test_sets_level_and_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("debug")
            configure_logging("warning")
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
