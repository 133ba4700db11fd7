"""
Streaming answer generation.

Wraps a LangChain chat model as `model | StrOutputParser()` and exposes
its astream() as a plain async iterator of text deltas. Deltas are
handed on exactly as the model emits them; nothing is buffered,
merged or reordered here.

Usage:
    generator = ChatModelGenerator(llm_config=LLMConfig())
    async for delta in generator.stream(prompt):
        ...
"""

from typing import AsyncIterator, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser

from rag_chat.base.generator import BaseGenerator
from rag_chat.config import LLMConfig
from rag_chat.utils.helpers import get_llm


class ChatModelGenerator(BaseGenerator):
    """
    Generator backed by any LangChain chat model.

    Pass `llm` to use a prebuilt model (tests pass LangChain's fake chat
    models); otherwise the model is built from llm_config.
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        config = llm_config or LLMConfig()
        if llm is None:
            llm = get_llm(config)
            self.model_name = f"{config.provider.value}/{config.model_name}"
        else:
            self.model_name = type(llm).__name__

        self._chain = llm | StrOutputParser()

    def stream(self, prompt: str) -> AsyncIterator[str]:
        return self._chain.astream(prompt)
