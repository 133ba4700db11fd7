"""
Chat exchange models.

A request is the whole conversation so far; the last turn is always the
pending user question and is never rendered as history.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .document import Match


class ConversationTurn(BaseModel):
    """One message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    Only the shape is checked here. Business rules (non-empty, ends in
    a user turn with text) are enforced by the orchestrator so they
    surface as InvalidRequest.
    """

    messages: list[ConversationTurn] = Field(default_factory=list)

    @property
    def question(self) -> str:
        return self.messages[-1].content if self.messages else ""

    @property
    def history(self) -> list[ConversationTurn]:
        return self.messages[:-1]


class Source(BaseModel):
    """A citation as sent to the client in the sources frame."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_match(cls, match: Match) -> "Source":
        return cls(content=match.content, metadata=dict(match.metadata))


class SourcesPayload(BaseModel):
    """JSON body of the `d:` frame."""

    sources: list[Source] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """
    A fully collected answer.

    The HTTP path streams instead; this is what the CLI and
    ChatOrchestrator.answer() hand back.
    """

    answer: str = Field(description="The generated answer")
    sources: list[Match] = Field(
        default_factory=list,
        description="Matches used as context, in ranked order",
    )
