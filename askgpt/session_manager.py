"""Session I/O and history management."""

import json
import os

import tiktoken
from openai.types.chat import ChatCompletionMessageParam

from askgpt.globals import SESSIONS_DIR


class SessionManager:
    """Handles session-related I/O and owns the conversation history"""

    def __init__(self, config):
        self.config = config
        self.history: list[ChatCompletionMessageParam] = self._fresh_history()
        self.active_session: str = ""
        self.encoder = tiktoken.get_encoding("o200k_base")
        self.token_cache: list[tuple[int, int] | None] = []
        self.gen_time: float = 0
        self.last_reply_tokens: int = 0

    def _fresh_history(self) -> list[ChatCompletionMessageParam]:
        if self.config.system_prompt:
            return [{"role": "system", "content": self.config.system_prompt}]
        return []

    def _json_helper(self, file_name: str) -> str:
        """JSON extension helper"""
        if not file_name.endswith(".json"):
            file_name += ".json"
        file_path = os.path.join(SESSIONS_DIR, os.path.basename(file_name))
        return file_path

    def save_to_disk(self, filepath: str):
        """Save the current session to disk"""
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.history, f, indent=2)
        self.active_session = os.path.basename(filepath)

    def load_from_disk(self, filepath: str):
        """Load session file from disk"""
        with open(filepath, "r", encoding="utf-8") as f:
            history = json.load(f)
        if not isinstance(history, list) or not all(
            isinstance(m, dict) and "role" in m for m in history
        ):
            raise ValueError(f"Not a session file: {os.path.basename(filepath)}")
        self.history = history
        self.active_session = os.path.basename(filepath)
        self.token_cache = []

    def delete_file(self, filepath: str):
        """Used to remove a session file"""
        os.remove(filepath)
        if self.active_session == os.path.basename(filepath):
            self.active_session = ""

    def find_sessions(self) -> list[str]:
        """Lists all sessions that exist within SESSIONS_DIR"""
        sessions = [f for f in os.listdir(SESSIONS_DIR) if f.endswith(".json")]
        return sorted(sessions)

    def append_message(self, role: str, content: str):
        """Append content to the conversation history"""
        self.history.append({"role": role, "content": content})  # pyright: ignore

    def request_messages(self, question: str) -> list[ChatCompletionMessageParam]:
        """History plus the pending question, without committing the question"""
        return [*self.history, {"role": "user", "content": question}]

    def commit_turn(self, question: str, reply: str):
        """Appends a finished exchange to the history"""
        self.append_message("user", question)
        self.append_message("assistant", reply)

    def reset(self):
        """Reset the current session state"""
        self.history = self._fresh_history()
        self.active_session = ""
        self.token_cache = []
        self.gen_time = 0
        self.last_reply_tokens = 0

    def count_tokens(self) -> int:
        """Counts and caches tokens."""
        # Ensure cache length matches history
        cache: list[tuple[int, int] | None] = self.token_cache
        diff = len(self.history) - len(cache)
        if diff > 0:
            cache.extend([None] * diff)
        elif diff < 0:
            del cache[len(self.history) :]

        total = 0
        for i, msg in enumerate(self.history):
            raw_content = msg.get("content") or ""
            if isinstance(raw_content, list):
                text = "".join(
                    p.get("text", "") for p in raw_content if isinstance(p, dict)
                )
            else:
                text = str(raw_content)
            text_hash = hash(text)
            cached = cache[i]
            if cached is None or cached[0] != text_hash:
                count = self.encode(text)
                cache[i] = (text_hash, count)
                total += count
            else:
                total += cached[1]
        return total

    def context_percentage(self) -> float:
        return round((self.count_tokens() / self.config.context_length) * 100, 1)

    def count_turns(self) -> int:
        """Calculates and returns the turn number"""
        return sum(1 for m in self.history if m["role"] == "user")

    def turn_duration(self, start: float, end: float, reply: str = ""):
        """Sets gen_time by subtraction of two timers."""
        self.gen_time = end - start
        self.last_reply_tokens = self.encode(reply)

    def throughput(self) -> float:
        """Tokens per second of the last reply"""
        if not self.gen_time:
            return 0.0
        return self.last_reply_tokens / self.gen_time

    def encode(self, text: str) -> int:
        """Converts a string to tokens"""
        try:
            count = len(self.encoder.encode(text))
        except Exception:
            count = 0
        return count

    def return_assistant_msg(self) -> str | None:
        """Returns the last assistant message detected in history"""
        for msg in reversed(self.history):
            if msg["role"] == "assistant":
                assistant_msg = msg.get("content", "")
                if isinstance(assistant_msg, str):
                    return assistant_msg
        return None
