"""
Prompt assembly.

Renders retrieved context, prior conversation and the pending question
into one model input. Pure and deterministic: the same inputs always
give byte-identical output, so prompts can be asserted on in tests and
diffed in logs.

The template is fixed on purpose. Answers are trusted only because the
model is told to stay inside the context and to say when it cannot
find the answer there.
"""

from typing import Sequence

from langchain_core.prompts import PromptTemplate

from rag_chat.models.chat import ConversationTurn
from rag_chat.models.document import Match

GROUNDED_TEMPLATE = (
    "You are a helpful AI assistant. Answer the user's question based *only* on the provided context.\n"
    "Respond in the same language as the user's question.\n"
    "If the context does not contain the answer, state that you cannot find the answer "
    "in the provided documents.\n"
    "\n"
    "Context:\n"
    "{context}\n"
    "\n"
    "Current conversation:\n"
    "{chat_history}\n"
    "\n"
    "User: {question}\n"
    "Answer:"
)

_PROMPT = PromptTemplate(
    input_variables=["context", "chat_history", "question"],
    template=GROUNDED_TEMPLATE,
)


def format_context(matches: Sequence[Match]) -> str:
    """Match contents in ranked order, separated by a blank line."""
    return "\n\n".join(match.content for match in matches)


def format_history(history: Sequence[ConversationTurn]) -> str:
    """One `role: content` line per prior turn, oldest first."""
    return "\n".join(f"{turn.role}: {turn.content}" for turn in history)


def render_prompt(
    question: str,
    history: Sequence[ConversationTurn],
    matches: Sequence[Match],
) -> str:
    """
    Build the model input for one chat turn.

    Args:
        question: The pending user question (not part of history).
        history: Earlier turns, oldest first.
        matches: Retrieved context, best match first.
    """
    return _PROMPT.format(
        context=format_context(matches),
        chat_history=format_history(history),
        question=question,
    )
