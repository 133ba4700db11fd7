"""
Chat orchestration: retrieve → render prompt → generate → frame.

One ChatOrchestrator is shared by all requests; it holds no per-request
state, so concurrent requests never interfere. Each request walks:

    RECEIVED → EMBEDDING → RETRIEVING → NO_CONTEXT                (terminal)
                                      → CONTEXT_FOUND → GENERATING
                                        → STREAMING → DONE
    any non-terminal state → FAILED

The work is split so the HTTP layer can still pick a status code for
every failure that happens before the first byte is sent:

    prepared = await orchestrator.prepare(request)   # InvalidRequest / NoRelevantContext /
                                                     # EmbeddingError / RetrievalError
    stream = await orchestrator.open_stream(prepared) # GenerationError (pre-stream)
    async for frame in stream.frames():               # mid-stream failures end the stream
        ...

Usage (non-streaming, e.g. the CLI):
    orchestrator = build_orchestrator(AppConfig())
    response = await orchestrator.answer(ChatRequest(messages=[...]))
    print(response.answer)
"""

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional

from langchain_core.embeddings import Embeddings
from pydantic import BaseModel, Field

from rag_chat.base.generator import BaseGenerator
from rag_chat.base.vectorstore import BaseVectorStore
from rag_chat.config import AppConfig, RetrieverConfig, TimeoutConfig
from rag_chat.errors import GenerationError, InvalidRequest, NoRelevantContext, RagChatError
from rag_chat.generation.generate import ChatModelGenerator
from rag_chat.generation.prompt import render_prompt
from rag_chat.indexing.embeddings import get_embedding_model
from rag_chat.indexing.vectorstore import get_vector_store
from rag_chat.models.chat import ChatRequest, ChatResponse
from rag_chat.models.document import Match
from rag_chat.retrieval.search import SimilarityRetriever
from rag_chat.streaming.framing import encode_delta, encode_sources
from rag_chat.utils.log import preview

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    RECEIVED = "received"
    EMBEDDING = "embedding"
    RETRIEVING = "retrieving"
    NO_CONTEXT = "no_context"
    CONTEXT_FOUND = "context_found"
    GENERATING = "generating"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


class PreparedChat(BaseModel):
    """Everything generation needs, produced before any byte is sent."""

    question: str
    matches: list[Match] = Field(default_factory=list)
    prompt: str


def _transition(state: ChatState, **context) -> None:
    logger.debug("chat state -> %s %s", state.value, context or "")


async def _aclose(iterator) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


class ChatStream:
    """
    The response body of one chat request.

    Created by ChatOrchestrator.open_stream() with the first delta
    already pulled, so a model that fails immediately is reported
    before any byte goes out. frames() is single-use.
    """

    def __init__(
        self,
        matches: list[Match],
        deltas: AsyncIterator[str],
        first_delta: Optional[str],
        timeout: Optional[float] = None,
    ):
        self.matches = matches
        self._deltas = deltas
        self._first = first_delta
        self._timeout = timeout

    async def frames(self) -> AsyncIterator[bytes]:
        """
        Yield the sources frame, then one text frame per delta.

        A generation failure after the first byte cannot change the
        status code any more; it is logged and re-raised so the
        transport closes abruptly. Closing this iterator (client went
        away) closes the model stream too.
        """
        count = 0
        try:
            yield encode_sources(self.matches)

            _transition(ChatState.STREAMING)
            if self._first is not None:
                yield encode_delta(self._first)
                count = 1
                while True:
                    try:
                        delta = await asyncio.wait_for(anext(self._deltas), self._timeout)
                    except StopAsyncIteration:
                        break
                    yield encode_delta(delta)
                    count += 1
        except Exception as exc:
            _transition(ChatState.FAILED, stage="streaming")
            logger.error("Generation failed mid-stream after %d delta(s): %s", count, exc)
            raise GenerationError(
                "Generation failed mid-stream",
                stage="streaming",
                cause=exc,
                details={"deltas_sent": count},
            ) from exc
        finally:
            await _aclose(self._deltas)

        _transition(ChatState.DONE, deltas=count)
        logger.info("Chat stream finished: %d delta(s)", count)

    async def collect(self) -> str:
        """Drain the deltas into one string (skips the framing)."""
        parts = []
        try:
            if self._first is None:
                return ""
            parts.append(self._first)
            while True:
                try:
                    parts.append(await asyncio.wait_for(anext(self._deltas), self._timeout))
                except StopAsyncIteration:
                    break
        except Exception as exc:
            raise GenerationError("Generation failed", stage="generation", cause=exc) from exc
        finally:
            await _aclose(self._deltas)
        return "".join(parts)


class ChatOrchestrator:
    """
    Binds retriever, prompt assembly and generator for one request at a time.

    Args:
        retriever: Question → ranked, enriched matches.
        generator: Prompt → async iterator of text deltas.
        retriever_config: threshold and limit for the search.
        timeouts: generation timeout applies per delta.
    """

    def __init__(
        self,
        retriever: SimilarityRetriever,
        generator: BaseGenerator,
        retriever_config: Optional[RetrieverConfig] = None,
        timeouts: Optional[TimeoutConfig] = None,
    ):
        self._retriever = retriever
        self._generator = generator
        self._config = retriever_config or RetrieverConfig()
        self._timeouts = timeouts or TimeoutConfig()

    @staticmethod
    def validate(request: ChatRequest) -> None:
        if not request.messages:
            raise InvalidRequest("Request must contain at least one message", field="messages")
        last = request.messages[-1]
        if last.role != "user":
            raise InvalidRequest("The last message must come from the user", field="messages")
        if not last.content or not last.content.strip():
            raise InvalidRequest("The question must not be empty", field="messages")

    async def prepare(self, request: ChatRequest) -> PreparedChat:
        """
        Validate, retrieve context and render the prompt.

        Raises:
            InvalidRequest: Before any collaborator call.
            NoRelevantContext: Nothing above threshold; generation must not run.
            EmbeddingError, RetrievalError: Collaborator failures.
        """
        _transition(ChatState.RECEIVED, turns=len(request.messages))
        self.validate(request)

        question = request.question
        logger.info("Chat question: %s", preview(question))

        state = ChatState.EMBEDDING
        _transition(state)
        try:
            vector = await self._retriever.embed(question)

            state = ChatState.RETRIEVING
            _transition(state)
            matches = await self._retriever.search(vector, self._config.threshold, self._config.limit)
            matches = await self._retriever.enrich(matches)
        except NoRelevantContext:
            _transition(ChatState.NO_CONTEXT)
            logger.info("No relevant context for question: %s", preview(question))
            raise
        except RagChatError as exc:
            _transition(ChatState.FAILED, stage=state.value)
            logger.error("Chat failed while %s: %s", state.value, exc)
            raise

        _transition(ChatState.CONTEXT_FOUND, matches=len(matches))
        prompt = render_prompt(question, request.history, matches)
        return PreparedChat(question=question, matches=matches, prompt=prompt)

    async def open_stream(self, prepared: PreparedChat) -> ChatStream:
        """
        Start generation and pull the first delta.

        Raises:
            GenerationError: The model failed before producing anything.
        """
        _transition(ChatState.GENERATING)
        deltas = None
        try:
            deltas = aiter(self._generator.stream(prepared.prompt))
            first = await asyncio.wait_for(anext(deltas), self._timeouts.generation)
        except StopAsyncIteration:
            first = None
        except Exception as exc:
            _transition(ChatState.FAILED, stage="generating")
            logger.error("Generation failed before streaming: %s", exc)
            if deltas is not None:
                await _aclose(deltas)
            raise GenerationError("Generation failed", stage="generation", cause=exc) from exc

        return ChatStream(prepared.matches, deltas, first, self._timeouts.generation)

    async def answer(self, request: ChatRequest) -> ChatResponse:
        """Run the whole pipeline and return the collected answer."""
        prepared = await self.prepare(request)
        chat_stream = await self.open_stream(prepared)
        text = await chat_stream.collect()
        _transition(ChatState.DONE)
        return ChatResponse(answer=text, sources=prepared.matches)


def build_orchestrator(
    config: Optional[AppConfig] = None,
    vector_store: Optional[BaseVectorStore] = None,
    embeddings: Optional[Embeddings] = None,
    generator: Optional[BaseGenerator] = None,
) -> ChatOrchestrator:
    """
    Wire an orchestrator from config; any collaborator can be passed in prebuilt.
    """
    config = config or AppConfig()
    retriever = SimilarityRetriever(
        embeddings=embeddings or get_embedding_model(config.embedding),
        vector_store=vector_store or get_vector_store(config.vector_store),
        config=config.retriever,
        timeouts=config.timeouts,
    )
    return ChatOrchestrator(
        retriever=retriever,
        generator=generator or ChatModelGenerator(llm_config=config.llm),
        retriever_config=config.retriever,
        timeouts=config.timeouts,
    )
