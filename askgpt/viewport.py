"""Scrollable window over pre-rendered transcript lines."""

from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.mouse_events import MouseEvent, MouseEventType


class Viewport:
    """Holds rendered lines and a vertical offset into them"""

    def __init__(self, width: int = 80, height: int = 0):
        self.width: int = width
        self.height: int = height
        self.lines: list[str] = []
        self.y_offset: int = 0

    def set_content(self, content: str):
        self.lines = content.split("\n") if content else []
        if self.y_offset > self.max_offset():
            self.goto_bottom()

    def set_size(self, width: int, height: int):
        self.width = width
        self.height = max(0, height)
        self.y_offset = min(self.y_offset, self.max_offset())

    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def _set_offset(self, offset: int):
        self.y_offset = max(0, min(offset, self.max_offset()))

    def scroll_up(self, n: int = 1):
        self._set_offset(self.y_offset - n)

    def scroll_down(self, n: int = 1):
        self._set_offset(self.y_offset + n)

    def page_up(self):
        self.scroll_up(max(1, self.height))

    def page_down(self):
        self.scroll_down(max(1, self.height))

    def half_page_up(self):
        self.scroll_up(max(1, self.height // 2))

    def half_page_down(self):
        self.scroll_down(max(1, self.height // 2))

    def goto_top(self):
        self.y_offset = 0

    def goto_bottom(self):
        self.y_offset = self.max_offset()

    def at_bottom(self) -> bool:
        return self.y_offset >= self.max_offset()

    def scroll_percent(self) -> float:
        if self.height >= len(self.lines):
            return 1.0
        v = self.y_offset / (len(self.lines) - self.height)
        return max(0.0, min(1.0, v))

    def view(self) -> str:
        """Visible lines, padded to the viewport height"""
        visible = self.lines[self.y_offset : self.y_offset + self.height]
        visible += [""] * (self.height - len(visible))
        return "\n".join(visible)


class ViewportControl(FormattedTextControl):
    """FormattedTextControl that scrolls its Viewport on mouse wheel events"""

    def __init__(self, viewport: Viewport, text, scroll_lines: int = 3, **kwargs):
        super().__init__(text, **kwargs)
        self.viewport = viewport
        self.scroll_lines = scroll_lines

    def mouse_handler(self, mouse_event: MouseEvent):
        if mouse_event.event_type == MouseEventType.SCROLL_UP:
            self.viewport.scroll_up(self.scroll_lines)
            return None
        if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
            self.viewport.scroll_down(self.scroll_lines)
        # Clicks never move focus; ctrl+j/ctrl+k own that
        return None
