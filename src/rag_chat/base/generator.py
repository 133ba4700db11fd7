"""
Abstract base class for answer generators.

The generator is the final stage: it takes an already-rendered prompt
and produces the answer as a stream of text deltas. Prompt assembly
lives in generation/prompt.py so it can be tested without a model.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator


class BaseGenerator(ABC):
    """
    Contract for streaming generators.

    stream() returns a lazy, finite, non-restartable async iterator.
    Deltas come out in generation order and are never merged, so the
    caller can relay each one as soon as it arrives. Closing the
    iterator early must release the underlying model call.
    """

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Generate an answer for a rendered prompt.

        Args:
            prompt: Full model input from render_prompt().

        Returns:
            Async iterator of text deltas.
        """
        ...
