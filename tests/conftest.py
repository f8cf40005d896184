"""Shared fixtures. Nothing here touches the network, the keychain or the real config."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from askgpt.config import Config
from askgpt.session_manager import SessionManager


def make_chunk(content):
    """Imitates an openai ChatCompletionChunk carrying one content delta"""
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    """Imitates openai.Stream: iterable, closable, optionally failing mid-way"""

    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __iter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error

    def close(self):
        self.closed = True


class FakeConversation:
    """Records turns instead of talking to a model"""

    def __init__(self):
        self.turns = []
        self.post = None
        self.rebuilt_with = []

    def ask(self, turn, post):
        self.turns.append(turn)
        self.post = post

    def rebuild_client(self, api_key=None):
        self.rebuilt_with.append(api_key)

    def shutdown(self):
        pass


@pytest.fixture
def config(tmp_path):
    # Config file location is patched so we don't overwrite real settings
    with patch("askgpt.config.CONFIG_FILE", str(tmp_path / "settings.json")):
        yield Config()


@pytest.fixture
def session(config, tmp_path):
    sessions_dir = tmp_path / "sessions"
    sessions_dir.mkdir()
    # tiktoken would download its encoding; count words instead
    with (
        patch("askgpt.session_manager.tiktoken") as mock_tiktoken,
        patch("askgpt.session_manager.SESSIONS_DIR", str(sessions_dir)),
    ):
        mock_tiktoken.get_encoding.return_value.encode.side_effect = str.split
        yield SessionManager(config)


@pytest.fixture
def conversation():
    return FakeConversation()
