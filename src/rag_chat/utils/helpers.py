"""
Shared utility functions.

LLM factory used by the generator and the CLI.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from rag_chat.config import LLMConfig, LLMProvider
from rag_chat.errors import ConfigurationError


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a streaming LangChain chat model based on config.

    Same pattern as the embedding factory: lazy imports so you only
    need the package for the provider you actually use.

    Args:
        config: LLMConfig with provider, model_name, temperature, max_tokens.

    Returns:
        A LangChain BaseChatModel instance.
    """
    if config.provider == LLMProvider.GROQ:
        try:
            from langchain_groq import ChatGroq
        except ImportError:
            raise ImportError(
                "Groq models require langchain-groq. "
                "Install with: pip install rag-chat[groq]"
            )

        return ChatGroq(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            streaming=True,
        )

    elif config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            streaming=True,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic models require langchain-anthropic. "
                "Install with: pip install rag-chat[anthropic]"
            )

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            streaming=True,
        )

    else:
        raise ConfigurationError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'groq', 'openai', 'anthropic'.",
            details={"provider": str(config.provider)},
        )
