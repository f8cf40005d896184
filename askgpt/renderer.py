"""Renders Markdown to ANSI text for prompt_toolkit windows."""

from io import StringIO

from rich.console import Console
from rich.markdown import Markdown


class MarkdownRenderer:
    """Renders the transcript with rich, wrapped at min(width, word_wrap)"""

    def __init__(self, config):
        self.config = config

    def render(self, text: str, width: int) -> str:
        if not text:
            return ""
        buffer = StringIO()
        console = Console(
            file=buffer,
            width=max(1, min(width, self.config.word_wrap)),
            force_terminal=True,
            color_system="truecolor",
        )
        console.print(Markdown(text, code_theme=self.config.rich_code_theme), end="")
        return buffer.getvalue()
