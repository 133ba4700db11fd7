"""
Exception hierarchy for rag-chat.

Every error carries a human-readable message plus a details dict with
the stage and the underlying collaborator error, so logs have enough
context while user-facing responses stay generic.

    RagChatError
    ├── InvalidRequest        bad chat input, rejected before any call
    ├── EmbeddingError        embedding model failed or returned garbage
    ├── RetrievalError        vector store search / lookup failed
    ├── NoRelevantContext     search worked but nothing passed the threshold
    ├── GenerationError       chat model failed before or during streaming
    ├── IngestionError        batch ingestion aborted
    ├── FramingError          malformed wire frame
    └── ConfigurationError    unknown provider / backend
"""

from typing import Any, Optional


class RagChatError(Exception):
    """Base exception for all rag-chat errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidRequest(RagChatError):
    """Raised when a chat request is empty or malformed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class StageError(RagChatError):
    """
    Base for failures of an external collaborator.

    stage names the pipeline step ("embedding", "search", "lookup",
    "generation", ...); cause is the collaborator's own exception.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        cause: Optional[BaseException] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["stage"] = stage
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        self.stage = stage
        self.cause = cause
        super().__init__(message, details)


class EmbeddingError(StageError):
    """Raised when the embedding model fails or returns a malformed vector."""


class RetrievalError(StageError):
    """Raised when the vector store search or record lookup fails."""


class GenerationError(StageError):
    """Raised when the chat model fails before or while streaming."""


class IngestionError(StageError):
    """Raised when any step of a batch ingestion run fails."""


class NoRelevantContext(RagChatError):
    """
    Raised when the search succeeded but returned nothing above threshold.

    This is a legitimate outcome, not a failure: the corpus simply has
    nothing on the question, or ingestion has not been run yet.
    """

    def __init__(self, threshold: float, details: Optional[dict[str, Any]] = None) -> None:
        details = details or {}
        details["threshold"] = threshold
        self.threshold = threshold
        super().__init__("No stored chunk matched the question above threshold", details)


class FramingError(RagChatError):
    """Raised by the stream decoder on a frame it cannot parse."""


class ConfigurationError(RagChatError, ValueError):
    """Raised when config names an unknown provider or backend."""
