from .generate import ChatModelGenerator
from .prompt import GROUNDED_TEMPLATE, render_prompt

__all__ = ["ChatModelGenerator", "GROUNDED_TEMPLATE", "render_prompt"]
