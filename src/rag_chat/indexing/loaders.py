"""
Document loaders.

Walks a data directory and turns every matching file into LangChain
Documents with metadata["source"] set to the file path. Word files are
the main input; markdown and plain text can be added through
IngestionConfig.extra_globs.

Usage:
    from rag_chat.indexing.loaders import DirectoryDocumentLoader
    from rag_chat.config import IngestionConfig

    loader = DirectoryDocumentLoader(IngestionConfig(data_dir="./data"))
    documents = loader.load()
"""

import logging
from pathlib import Path

from langchain_core.documents import Document

from rag_chat.base.indexer import BaseLoader
from rag_chat.config import IngestionConfig
from rag_chat.errors import IngestionError

logger = logging.getLogger(__name__)


def _loader_for(path: Path):
    """Pick the LangChain loader for a file, or None if the type is unsupported."""
    from langchain_community.document_loaders import Docx2txtLoader, TextLoader

    suffix = path.suffix.lower()
    if suffix == ".docx":
        return Docx2txtLoader(str(path))
    if suffix in (".txt", ".md"):
        return TextLoader(str(path), encoding="utf-8")
    return None


class DirectoryDocumentLoader(BaseLoader):
    """
    Recursive directory loader.

    Files are loaded in sorted path order so ingestion runs over the
    same directory always produce the same chunk order.
    """

    def __init__(self, config: IngestionConfig = None):
        self.config = config or IngestionConfig()

    def iter_paths(self) -> list[Path]:
        root = Path(self.config.data_dir)
        if not root.is_dir():
            raise IngestionError(
                f"Data directory not found: {root}",
                stage="load",
                details={"data_dir": str(root)},
            )

        paths: set[Path] = set()
        for pattern in [self.config.glob, *self.config.extra_globs]:
            paths.update(p for p in root.glob(pattern) if p.is_file())
        return sorted(paths)

    def load(self) -> list[Document]:
        paths = self.iter_paths()
        if not paths:
            raise IngestionError(
                f"No documents found in {self.config.data_dir}",
                stage="load",
                details={"globs": [self.config.glob, *self.config.extra_globs]},
            )

        documents: list[Document] = []
        for path in paths:
            loader = _loader_for(path)
            if loader is None:
                logger.warning("Skipping unsupported file type: %s", path)
                continue
            try:
                loaded = loader.load()
            except Exception as exc:
                raise IngestionError(
                    f"Failed to load {path}",
                    stage="load",
                    cause=exc,
                ) from exc

            for doc in loaded:
                doc.metadata["source"] = str(path)
            documents.extend(loaded)

        logger.info("Loaded %d document(s) from %s", len(documents), self.config.data_dir)
        return documents
