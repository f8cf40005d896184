"""UI-side half of the streaming pipeline. Owns the transcript and the in-flight flag."""

from collections.abc import Callable
from enum import Enum

from askgpt.conversation import StreamEvent, Turn
from askgpt.globals import ASSISTANT_LABEL, USER_LABEL


class RelayState(Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    STREAMING = "streaming"


class StreamRelay:
    """
    Relays streamed chunks into the transcript.

    IDLE -> AWAITING (question sent) -> STREAMING (chunks arriving) -> IDLE
    """

    def __init__(self, conversation, post: Callable[[StreamEvent], None] | None = None):
        self.conversation = conversation
        # post() hands worker events back to the UI thread; defaults to direct dispatch
        self.post: Callable[[StreamEvent], None] = post or self.dispatch
        self.transcript: str = ""
        self.state: RelayState = RelayState.IDLE
        self.is_answering: bool = False
        self.turn: Turn | None = None
        self.last_error: Exception | None = None

    def submit(self, question: str) -> Turn | None:
        """Sends a question. No-op while a turn is in flight or for blank input."""
        if self.is_answering or not question.strip():
            return None

        self.transcript += f"{USER_LABEL}\n{question}\n\n"
        self.transcript += f"{ASSISTANT_LABEL}\n"
        self.is_answering = True
        self.state = RelayState.AWAITING
        self.last_error = None

        turn = Turn(question)
        self.turn = turn
        self.conversation.ask(turn, self.post)
        return turn

    def dispatch(self, event: StreamEvent):
        """Routes a worker event. Events from a stale turn are dropped."""
        if event.turn is not self.turn:
            return
        if event.finished:
            self.on_finished(event)
        else:
            self.on_chunk(event.content)

    def on_chunk(self, text: str):
        self.transcript += text
        self.state = RelayState.STREAMING

    def on_finished(self, event: StreamEvent | None = None):
        if not self.is_answering:
            return
        self.is_answering = False
        self.state = RelayState.IDLE
        if event is not None and event.error is not None:
            self.last_error = event.error
            self.transcript += f"\n\n> **Request failed:** {event.error}"
        elif event is not None and event.cancelled:
            self.transcript += "\n\n> *Canceled.*"
        self.transcript += "\n\n"

    def cancel(self) -> bool:
        """Requests cancellation of the in-flight turn."""
        if not self.is_answering or self.turn is None:
            return False
        self.turn.cancel()
        return True

    @property
    def cancel_pending(self) -> bool:
        """True once the in-flight turn was asked to stop but has not finished"""
        return self.is_answering and self.turn is not None and self.turn.cancelled

    def notice(self, markdown: str):
        """Appends client-side output, such as command results."""
        self.transcript += f"{markdown}\n\n"

    def clear(self):
        self.transcript = ""
