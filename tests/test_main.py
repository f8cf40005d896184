"""
A 'mock and drive' test for main.py.

- Saves and loads the config file
- Starts the application and exits
- Refuses to start without an API key
"""

from unittest.mock import patch

import pytest

from askgpt import main as entry
from askgpt.config import Config
from askgpt.globals import USER_NAME, retrieve_key

# 1. Configuration Tests


def test_config_defaults(tmp_path):
    """
    Verify Config initializes with correct defaults.
    Config file location is patched to a temp dir so we don't overwrite real settings.
    """
    fake_config_file = tmp_path / "settings.json"

    with patch("askgpt.config.CONFIG_FILE", str(fake_config_file)):
        cfg = Config()

        assert cfg.active_model == "default"
        assert cfg.context_length == 131072
        assert cfg.refresh_rate == 30
        assert cfg.word_wrap == 180
        assert cfg.seed == 1
        assert cfg.model_name == "deepseek-v3"
        assert cfg.endpoint == "https://dashscope.aliyuncs.com/compatible-mode/v1"


def test_config_save_load(tmp_path):
    """Verify the config saves and loads settings from disk."""
    fake_config_file = tmp_path / "settings.json"

    with patch("askgpt.config.CONFIG_FILE", str(fake_config_file)):
        # 1. Create and Save
        cfg = Config()
        cfg.active_model = "test_alias"
        cfg.save()

        # 2. Load into new object
        cfg_loaded = Config()
        cfg_loaded.load()

        assert cfg_loaded.active_model == "test_alias"


def test_config_load_creates_missing_file(tmp_path):
    fake_config_file = tmp_path / "settings.json"

    with patch("askgpt.config.CONFIG_FILE", str(fake_config_file)):
        Config().load()
        assert fake_config_file.exists()


def test_unknown_alias_falls_back_to_first_profile():
    cfg = Config()
    cfg.active_model = "gone"
    assert cfg.alias_name == "default"
    assert cfg.find("gone") is None


# 2. Main Application Flow


@pytest.fixture
def quiet_startup(tmp_path):
    """Keeps main() away from the real log dir, config file and keychain."""
    with (
        patch("askgpt.main.init_logger"),
        patch("askgpt.main.setup_keyring_backend"),
        patch("askgpt.config.CONFIG_FILE", str(tmp_path / "settings.json")),
    ):
        yield


@patch("askgpt.main.ChatApp")
@patch("askgpt.main.Conversation")
@patch("askgpt.main.SessionManager")
@patch("askgpt.main.retrieve_key", return_value="fake-api-key")
def test_application_startup_and_quit(
    mock_key, mock_session, mock_conversation, mock_app, quiet_startup
):
    """
    1. Starts main().
    2. The mocked application returns immediately, as if the user typed '!q'.
    3. Verifies the app shuts down cleanly without errors.
    """
    try:
        entry.main()
    except SystemExit as e:
        pytest.fail(f"App exited during startup: {e.code}")

    mock_app.return_value.run.assert_called_once()
    mock_conversation.assert_called_once()


@patch("askgpt.main.ChatApp")
@patch("askgpt.main.retrieve_key", return_value=None)
def test_missing_api_key_exits_with_error(mock_key, mock_app, quiet_startup):
    with pytest.raises(SystemExit) as e:
        entry.main()

    assert e.value.code == 1
    mock_app.assert_not_called()


@patch("askgpt.main.log_exception")
@patch("askgpt.main.ChatApp")
@patch("askgpt.main.Conversation")
@patch("askgpt.main.SessionManager")
@patch("askgpt.main.retrieve_key", return_value="fake-api-key")
def test_crash_is_logged_and_exits(
    mock_key, mock_session, mock_conversation, mock_app, mock_log, quiet_startup
):
    mock_app.return_value.run.side_effect = RuntimeError("terminal went away")

    with pytest.raises(SystemExit) as e:
        entry.main()

    assert e.value.code == 1
    mock_log.assert_called_once()


# 3. API Key Lookup


@patch("askgpt.globals.get_password", return_value="from-keyring")
def test_env_key_wins_over_keyring(mock_get_pass, monkeypatch):
    monkeypatch.setenv("API_KEY", "from-env")
    monkeypatch.setenv("OPENAI_API_KEY", "from-openai-env")
    assert retrieve_key() == "from-env"
    mock_get_pass.assert_not_called()


@patch("askgpt.globals.get_password", return_value="from-keyring")
def test_keyring_fallback(mock_get_pass, monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert retrieve_key() == "from-keyring"
    mock_get_pass.assert_called_with("AskGPTAPI", USER_NAME)


@patch("askgpt.globals.get_password", return_value=None)
def test_no_key_anywhere(mock_get_pass, monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert retrieve_key() is None
