"""
Command-line interface for rag-chat.

    rag-chat ingest --data-dir ./data
    rag-chat serve --port 8000
    rag-chat ask "What does the contract say about termination?"
    rag-chat check

Settings come from RAG_CHAT_<SECTION>__<FIELD> environment variables (and
.env), e.g. RAG_CHAT_LLM__PROVIDER=openai. The options below override the
matching ones.
"""

import asyncio
import logging
from typing import Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from rag_chat.config import AppConfig
from rag_chat.diagnostics import check_connections
from rag_chat.errors import NoRelevantContext, RagChatError
from rag_chat.indexing.embeddings import get_embedding_model
from rag_chat.indexing.loaders import DirectoryDocumentLoader
from rag_chat.indexing.pipeline import IngestionPipeline
from rag_chat.indexing.vectorstore import get_vector_store
from rag_chat.models.chat import ChatRequest, ConversationTurn
from rag_chat.orchestrator import build_orchestrator
from rag_chat.utils.log import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="Ask questions over your own documents.")


def _load_config() -> AppConfig:
    try:
        return AppConfig.from_env()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Annotated[str, typer.Option("--log-level", help="Logging level")] = "INFO",
):
    configure_logging(log_level)


@app.command()
def ingest(
    data_dir: Annotated[Optional[str], typer.Option("--data-dir", "-d", help="Directory to scan")] = None,
    glob: Annotated[Optional[str], typer.Option("--glob", "-g", help="File pattern, e.g. '**/*.md'")] = None,
):
    """Chunk, embed and store every document in the data directory."""
    config = _load_config()
    if data_dir:
        config.ingestion.data_dir = data_dir
    if glob:
        config.ingestion.glob = glob

    logger.info("Starting ingestion from %s (%s)", config.ingestion.data_dir, config.ingestion.glob)
    try:
        pipeline = IngestionPipeline(
            embeddings=get_embedding_model(config.embedding),
            vector_store=get_vector_store(config.vector_store),
            chunking_config=config.chunking,
            batch_size=config.embedding.batch_size,
        )
        stored = pipeline.run(DirectoryDocumentLoader(config.ingestion))
    except (RagChatError, ImportError) as e:
        logger.error("Ingestion failed: %s", e)
        raise typer.Exit(code=1)

    typer.echo(f"Ingested {stored} chunk(s).")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option(help="Bind port")] = None,
):
    """Run the chat HTTP API."""
    import uvicorn

    from rag_chat.api.app import create_app

    config = _load_config()
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@app.command()
def ask(question: Annotated[str, typer.Argument(help="The question to answer")]):
    """Answer one question and list the sources used."""
    config = _load_config()
    request = ChatRequest(messages=[ConversationTurn(role="user", content=question)])

    try:
        response = asyncio.run(build_orchestrator(config).answer(request))
    except NoRelevantContext:
        typer.echo("No relevant documents found. Please make sure you have run the ingestion script.")
        raise typer.Exit(code=2)
    except (RagChatError, ImportError) as e:
        logger.error("Question failed: %s", e)
        raise typer.Exit(code=1)

    typer.echo(response.answer)
    typer.echo("\nSources:")
    for i, match in enumerate(response.sources, 1):
        typer.echo(f"  [{i}] {match.metadata.get('source', match.id)} (score {match.score:.2f})")


@app.command()
def check():
    """Probe the embedding provider and the vector store."""
    results = check_connections(_load_config())
    for result in results:
        mark = "OK  " if result.ok else "FAIL"
        typer.echo(f"{mark} {result.name}: {result.detail}")
    if not all(r.ok for r in results):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
