"""
Logging configuration.

Library modules only create loggers (logging.getLogger(__name__));
handlers are installed once by the entry points (CLI, app lifespan).
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with ISO timestamps on stdout."""
    # Remove any existing handlers to avoid duplicates on reload
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Reduce noise from verbose third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("chromadb").setLevel(logging.WARNING)


def preview(text: str, max_length: int = 80) -> str:
    """Single-line, truncated rendering of user text for log lines."""
    flat = " ".join(text.split())
    if len(flat) > max_length:
        return flat[:max_length] + "..."
    return flat
