from .helpers import get_llm
from .log import configure_logging

__all__ = ["get_llm", "configure_logging"]
