"""
Embedding model factory.

Returns the right LangChain embedding model based on EmbeddingConfig.
This is the single place that maps provider strings to actual classes.
Ingestion calls embed_documents() per batch of chunks; the query path
calls aembed_query() once per question.

Supported providers:
    "google"      → GoogleGenerativeAIEmbeddings (API-based, default)
    "openai"      → OpenAIEmbeddings (API-based)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)
    "cohere"      → CohereEmbeddings (API-based)

Usage:
    from rag_chat.indexing.embeddings import get_embedding_model
    from rag_chat.config import EmbeddingConfig

    model = get_embedding_model(EmbeddingConfig())

    model = get_embedding_model(EmbeddingConfig(
        provider="huggingface",
        model_name="all-MiniLM-L6-v2",
    ))
"""

import math

from langchain_core.embeddings import Embeddings

from rag_chat.config import EmbeddingConfig
from rag_chat.errors import ConfigurationError


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. We import
    them lazily (inside the if-branch) so you only need the package
    for the provider you actually use.

    Raises:
        ConfigurationError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    provider = config.provider.lower()

    if provider == "google":
        try:
            from langchain_google_genai import GoogleGenerativeAIEmbeddings
        except ImportError:
            raise ImportError(
                "Google embeddings require langchain-google-genai. "
                "Install with: pip install rag-chat[google]"
            )

        return GoogleGenerativeAIEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    elif provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install rag-chat[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install rag-chat[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    else:
        raise ConfigurationError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'google', 'openai', 'huggingface', 'cohere'.",
            details={"provider": config.provider},
        )


def is_valid_vector(vector, dimension: int = None) -> bool:
    """
    True if vector is a non-empty sequence of finite numbers.

    Providers occasionally hand back empty lists or NaNs on partial
    failures; both stages treat that as an embedding error.
    """
    if not isinstance(vector, (list, tuple)) or not vector:
        return False
    if dimension is not None and len(vector) != dimension:
        return False
    for value in vector:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return True
