"""The full-screen application shell: layout, key dispatch and rendering."""

import asyncio

from prompt_toolkit.application import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings, merge_key_bindings
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.layout.processors import BeforeInput

from askgpt.cli_controller import CLIController
from askgpt.conversation import StreamEvent
from askgpt.globals import APP_STYLE
from askgpt.input_field import ModalInput
from askgpt.relay import StreamRelay
from askgpt.renderer import MarkdownRenderer
from askgpt.ui import UIConstructor
from askgpt.viewport import Viewport, ViewportControl

HEADER_HEIGHT = 1
FOOTER_HEIGHT = 1
INPUT_HEIGHT = 1


class ChatApp:
    """Composes header, viewport, footer and input into one Application"""

    def __init__(self, config, session, conversation, input=None, output=None):
        self.config = config
        self.session = session
        self.conversation = conversation
        self.ui = UIConstructor(config, session)
        self.renderer = MarkdownRenderer(config)
        self.text_input = ModalInput()
        self.viewport = Viewport()
        self.relay = StreamRelay(conversation, post=self.post)
        self.controller = CLIController(
            config, session, conversation, self.relay, self.ui
        )
        self.controller.set_interface(self)

        self.loop: asyncio.AbstractEventLoop | None = None
        self.ready: bool = False
        # Terminal size, and the transcript/width the viewport was last rendered for
        self._size: tuple[int, int] = (0, 0)
        self._rendered_for: tuple[str, int] | None = None
        self._follow: bool = False
        self._status = self.ui.status_fragments()

        self.viewport_window = Window(
            ViewportControl(self.viewport, self._viewport_text, focusable=True),
            wrap_lines=False,
        )
        self.input_window = Window(
            BufferControl(
                buffer=self.text_input.buffer,
                input_processors=[
                    BeforeInput(lambda: [("class:prompt", self.text_input.prompt)])
                ],
            ),
            height=INPUT_HEIGHT,
        )
        layout = Layout(
            HSplit(
                [
                    Window(
                        FormattedTextControl(self._header_text),
                        height=HEADER_HEIGHT,
                    ),
                    self.viewport_window,
                    Window(
                        FormattedTextControl(self._footer_text),
                        height=FOOTER_HEIGHT,
                    ),
                    self.input_window,
                ]
            ),
            focused_element=self.input_window,
        )
        self.application: Application = Application(
            layout=layout,
            key_bindings=merge_key_bindings(
                [self.text_input.key_bindings(), self._key_bindings()]
            ),
            style=APP_STYLE,
            full_screen=True,
            mouse_support=True,
            min_redraw_interval=1 / max(1, self.config.refresh_rate),
            input=input,
            output=output,
        )

    # <~~KEYS~~>
    def _key_bindings(self) -> KeyBindings:
        kb = KeyBindings()
        input_focused = Condition(lambda: self.text_input.focused)
        viewport_focused = ~input_focused

        @kb.add("c-c")
        def _quit_or_cancel(event):
            # A second press quits without waiting for the stream to notice the first
            if self.relay.cancel_pending or not self.relay.cancel():
                self.exit()

        @kb.add("c-j")
        @kb.add("c-k")
        def _switch(event):
            self.switch_focus()

        @kb.add("enter", filter=input_focused)
        def _send(event):
            self.send()

        scroll_keys = {
            ("up",): lambda: self.viewport.scroll_up(),
            ("k",): lambda: self.viewport.scroll_up(),
            ("down",): lambda: self.viewport.scroll_down(),
            ("j",): lambda: self.viewport.scroll_down(),
            ("pageup",): self.viewport.page_up,
            ("b",): self.viewport.page_up,
            ("pagedown",): self.viewport.page_down,
            ("f",): self.viewport.page_down,
            (" ",): self.viewport.page_down,
            ("u",): self.viewport.half_page_up,
            ("d",): self.viewport.half_page_down,
            ("home",): self.viewport.goto_top,
            ("g",): self.viewport.goto_top,
            ("end",): self.viewport.goto_bottom,
            ("G",): self.viewport.goto_bottom,
        }
        for keys, action in scroll_keys.items():
            kb.add(*keys, filter=viewport_focused)(lambda event, action=action: action())

        return kb

    def switch_focus(self):
        if self.text_input.focused:
            self.text_input.blur()
            self.application.layout.focus(self.viewport_window)
        else:
            self.text_input.focus()
            self.application.layout.focus(self.input_window)

    def send(self):
        """Runs a command, or sends the question to the model"""
        question = self.text_input.value
        if self.controller.handle_input(question):
            self.text_input.reset()
            # Commands may swap the whole history
            self._status = self.ui.status_fragments()
            self.refresh_content()
            return
        if self.relay.submit(question) is None:
            return
        self.text_input.reset()
        self.refresh_content()

    # <~~STREAM EVENTS~~>
    def post(self, event: StreamEvent):
        """Called from the worker thread, hops onto the event loop"""
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.on_event, event)

    def on_event(self, event: StreamEvent):
        self.relay.dispatch(event)
        if event.finished:
            self._status = self.ui.status_fragments()
        self.refresh_content()

    # <~~RENDERING~~>
    def refresh_content(self):
        """Follows the transcript to the bottom on the next redraw"""
        self._follow = True
        self.application.invalidate()

    def on_resize(self, width: int, height: int):
        self._size = (width, height)
        self.viewport.set_size(
            width, height - HEADER_HEIGHT - FOOTER_HEIGHT - INPUT_HEIGHT
        )
        self.ready = True

    def _sync_size(self):
        size = self.application.output.get_size()
        if (size.columns, size.rows) != self._size:
            self.on_resize(size.columns, size.rows)

    def _render_viewport(self):
        """Re-renders the Markdown only when the transcript or the width changed"""
        key = (self.relay.transcript, self.viewport.width)
        if key != self._rendered_for:
            self.viewport.set_content(
                self.renderer.render(self.relay.transcript, self.viewport.width)
            )
            self._rendered_for = key
        if self._follow:
            self.viewport.goto_bottom()
            self._follow = False

    def _viewport_text(self):
        self._sync_size()
        self._render_viewport()
        return ANSI(self.viewport.view())

    def _header_text(self):
        # The header is drawn first, so it picks up resizes for the whole frame
        self._sync_size()
        return self.ui.header_fragments(self.viewport.width, self.text_input.focused)

    def _footer_text(self):
        return self.ui.footer_fragments(
            self.viewport.width,
            self.viewport.scroll_percent(),
            self.text_input.mode.value,
            self.relay.is_answering,
            self.text_input.focused,
            self._status,
        )

    # <~~RUN~~>
    def _capture_loop(self):
        self.loop = asyncio.get_running_loop()

    def exit(self):
        self.relay.cancel()
        if self.application.is_running:
            self.application.exit()

    def run(self):
        """Runs the application until the user quits"""
        try:
            self.application.run(pre_run=self._capture_loop)
        finally:
            self.relay.cancel()
            self.conversation.shutdown()
