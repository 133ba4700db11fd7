"""
Configuration for rag-chat.

Split into one config per concern so each stage module only receives
what it needs. AppConfig bundles them all for convenience.

Usage:
    # Full config: pass to build_orchestrator / the CLI
    config = AppConfig()

    # Override specific parts
    config = AppConfig(
        llm=LLMConfig(provider="groq", model_name="llama-3.3-70b-versatile"),
        retriever=RetrieverConfig(threshold=0.6),
    )

    # Or read overrides from RAG_CHAT_<SECTION>__<FIELD> environment variables
    config = AppConfig.from_env()
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from the working directory first, then from the project root.
# Runs once at import time so provider SDKs (which read their API keys
# straight from the environment) see the values.
load_dotenv(Path.cwd() / ".env")
load_dotenv(Path(__file__).resolve().parents[2] / ".env")

ENV_PREFIX = "RAG_CHAT_"


# ---------------------------------------------------------------------------
# Enums: for things with a genuinely fixed set of choices
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported chat model providers.

    Each provider needs a different LangChain chat class, so the set
    is closed.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"


class VectorStoreType(str, Enum):
    """Supported vector store backends."""

    MEMORY = "memory"
    CHROMA = "chroma"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    Generation model configuration.

    Used by: generation/generate.py (through utils.helpers.get_llm)
    """

    provider: LLMProvider = Field(
        default=LLMProvider.GROQ,
        description="Which chat model provider to use",
    )
    model_name: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model identifier (e.g. 'gpt-4o-mini', 'llama-3.3-70b-versatile')",
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens in the generated answer",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string; the factory maps the known ones to
    LangChain classes and raises a clear error for anything else.

    The same model must be used for ingestion and for queries, otherwise
    the stored vectors and the question vector live in different spaces.
    """

    provider: str = Field(
        default="google",
        description="Embedding provider: 'openai', 'google', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="models/text-embedding-004",
        description="Embedding model identifier",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )
    batch_size: int = Field(
        default=64,
        gt=0,
        description="Number of chunks sent per embed_documents() call during ingestion",
    )


class ChunkingConfig(BaseModel):
    """
    Document chunking configuration.

    Used by: indexing/chunking.py

    separators are tried in order when looking for a break point
    inside a window: paragraphs, then lines, then sentences, then words.
    """

    chunk_size: int = Field(
        default=1000,
        gt=0,
        description="Target chunk size in characters",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Characters shared by consecutive chunks",
    )
    separators: list[str] = Field(
        default_factory=lambda: ["\n\n", "\n", ". ", "! ", "? ", " "],
        description="Break-point separators, highest priority first",
    )

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingConfig":
        """Overlap must be smaller than chunk size, otherwise chunks would never advance."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class RetrieverConfig(BaseModel):
    """
    Retrieval configuration.

    Used by: retrieval/search.py, orchestrator.py
    """

    threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum cosine similarity for a chunk to count as context",
    )
    limit: int = Field(
        default=4,
        gt=0,
        description="Maximum number of chunks used as context",
    )


class VectorStoreConfig(BaseModel):
    """
    Vector store configuration.

    Used by: indexing/vectorstore.py

    persist_directory only applies to Chroma; the memory store lives
    and dies with the process.
    """

    store_type: VectorStoreType = Field(
        default=VectorStoreType.CHROMA,
        description="Vector store backend",
    )
    persist_directory: Optional[str] = Field(
        default="./chroma_db",
        description="Directory to persist the vector store (Chroma only)",
    )
    collection_name: str = Field(
        default="documents",
        description="Collection holding the chunk records",
    )


class TimeoutConfig(BaseModel):
    """
    Per-call timeouts in seconds. None disables the timeout.

    generation applies to each delta, not to the whole answer.
    """

    embedding: Optional[float] = Field(default=30.0, gt=0)
    search: Optional[float] = Field(default=30.0, gt=0)
    generation: Optional[float] = Field(default=60.0, gt=0)


class IngestionConfig(BaseModel):
    """Where the ingestion command looks for source documents."""

    data_dir: str = Field(default="./data", description="Directory scanned for documents")
    glob: str = Field(default="**/*.docx", description="Primary file pattern")
    extra_globs: list[str] = Field(
        default_factory=list,
        description="Additional patterns, e.g. ['**/*.md', '**/*.txt']",
    )


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)


# ---------------------------------------------------------------------------
# Top-level config: bundles everything
# ---------------------------------------------------------------------------

class AppConfig(BaseModel):
    """
    Complete application configuration.

    All sub-configs have sensible defaults, so AppConfig() with no
    arguments gives a working setup once provider API keys are in the
    environment.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "AppConfig":
        """
        Build a config from RAG_CHAT_<SECTION>__<FIELD> variables.

        Examples:
            RAG_CHAT_LLM__PROVIDER=openai
            RAG_CHAT_RETRIEVER__THRESHOLD=0.6
            RAG_CHAT_INGESTION__EXTRA_GLOBS='["**/*.md"]'

        List and dict fields take JSON. Unset variables keep the defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        settings = AppSettings(_env_file=env_file)
        return cls(**{name: getattr(settings, name) for name in cls.model_fields})


class AppSettings(BaseSettings, AppConfig):
    """AppConfig read from the environment and .env by pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
