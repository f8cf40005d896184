"""Model interaction. One streaming request per turn, run on a worker thread."""

import threading
import time
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from openai import OpenAI
from openai.types.chat.chat_completion_chunk import ChatCompletionChunk

from askgpt.globals import log_exception, retrieve_key


class Turn:
    """
    A single question and its streamed answer.

    The turn is the request object handed from the UI to the conversation. It
    carries the cancellation token and, once scheduled, the worker future.
    """

    def __init__(self, question: str):
        self.question: str = question
        self.cancel_event = threading.Event()
        self.future: Future | None = None
        self.started: float = 0.0
        self.ended: float = 0.0

    def cancel(self):
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


@dataclass
class StreamEvent:
    """A chunk of a reply, or the marker that closes a turn"""

    turn: Turn
    content: str = ""
    finished: bool = False
    cancelled: bool = False
    error: Exception | None = None


class Conversation:
    """Owns the API client and turns questions into streamed replies"""

    def __init__(self, config, session, client: OpenAI | None = None):
        self.config = config
        self.session = session
        # A key set during the session outlives profile switches
        self.api_key: str | None = None
        self.client: OpenAI = client or self._build_client()
        # A single worker keeps turns strictly ordered
        self.executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="askgpt-turn"
        )

    def _build_client(self, api_key: str | None = None) -> OpenAI:
        if api_key:
            self.api_key = api_key
        return OpenAI(
            base_url=self.config.endpoint,
            api_key=self.api_key or retrieve_key(),
            timeout=self.config.request_timeout,
        )

    def rebuild_client(self, api_key: str | None = None):
        """Recreates the client, used after a profile switch or a key change."""
        self.client = self._build_client(api_key)

    def ask(self, turn: Turn, post: Callable[[StreamEvent], None]) -> Future:
        """Schedules a turn. Every event of the turn is handed to post()."""
        turn.future = self.executor.submit(self._relay, turn, post)
        return turn.future

    def _relay(self, turn: Turn, post: Callable[[StreamEvent], None]):
        delivering = True
        for event in self.stream(turn):
            if not delivering:
                continue
            try:
                post(event)
            except Exception as e:
                # The UI is gone; finish the turn quietly so the stream gets closed
                log_exception(e, "Error in Conversation._relay()")
                turn.cancel()
                delivering = False

    def stream(self, turn: Turn) -> Iterator[StreamEvent]:
        """
        Streams a reply for the turn.

        - Yields one event per non-empty content delta
        - Always ends with a finished event
        - Commits the exchange to history on success, or on cancel with a partial reply
        """
        reply_parts: list[str] = []
        turn.started = time.monotonic()
        try:
            completion = self.client.chat.completions.create(
                model=self.config.model_name,
                messages=self.session.request_messages(turn.question),
                stream=True,
                seed=self.config.seed,
            )
            for chunk in completion:
                if turn.cancelled:
                    completion.close()
                    break
                content = self.chunk_parse(chunk)
                if content:
                    reply_parts.append(content)
                    yield StreamEvent(turn, content=content)
        except Exception as e:
            turn.ended = time.monotonic()
            # Closing the client under a cancelled turn surfaces here as a transport error
            if not turn.cancelled:
                log_exception(e, "Error in Conversation.stream()")
                yield StreamEvent(turn, finished=True, error=e)
                return

        turn.ended = turn.ended or time.monotonic()
        reply = "".join(reply_parts)
        if reply:
            self.session.commit_turn(turn.question, reply)
            self.session.turn_duration(turn.started, turn.ended, reply)
        yield StreamEvent(turn, finished=True, cancelled=turn.cancelled)

    def chunk_parse(self, chunk: ChatCompletionChunk) -> str:
        """Extracts response content from a streamed chat completion chunk"""
        if not chunk.choices:
            return ""
        return getattr(chunk.choices[0].delta, "content", "") or ""

    def shutdown(self):
        """Stops the worker without waiting on an in-flight turn."""
        self.executor.shutdown(wait=False, cancel_futures=True)
        # Unblocks a worker still waiting on the network
        self.client.close()
