"""Global functions and variables, used across various modules."""

import getpass
import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler

import keyring
from keyring import get_password
from keyring.backends import null
from platformdirs import user_data_dir
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

# Default directories and system details
APP_DIR = user_data_dir("AskGPT")
CONFIG_DIR = os.path.join(APP_DIR, "config")
SESSIONS_DIR = os.path.join(APP_DIR, "sessions")
LOG_DIR = os.path.join(APP_DIR, "logs")
CONFIG_FILE = os.path.join(CONFIG_DIR, "settings.json")
USER_NAME = getpass.getuser()

# Keyring service name for the stored API key
KEYRING_SERVICE = "AskGPTAPI"

os.makedirs(SESSIONS_DIR, exist_ok=True)
os.makedirs(CONFIG_DIR, exist_ok=True)
os.makedirs(LOG_DIR, exist_ok=True)

# Terminal integration, used outside of the full-screen application
CONSOLE = Console()

# Transcript labels
USER_LABEL = "You ->"
ASSISTANT_LABEL = "GPT ->"

# Style sheet for the full-screen application
APP_STYLE = Style.from_dict(
    {
        "title": "bold",
        "rule": "",
        "rule.focused": "#71eb34",
        "state": "bold #f5a742",
        "mode": "bold",
        "info": "",
        "status": "#808080",
        "status.warn": "#e5c07b",
        "status.danger": "#e06c75",
        "prompt": "bold #34eb8f",
    }
)


def init_logger():
    """Initializes the logging system."""
    date_str = datetime.now().strftime("%Y%m%d")
    # Output example: askgpt_20251109.log
    log_path = os.path.join(LOG_DIR, f"askgpt_{date_str}.log")
    # Max of 3 backups, max size of 1MB
    handler = RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    logging.basicConfig(
        level=logging.ERROR,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )


def log_exception(e: Exception, context: str = ""):
    """Creates a full formatted traceback string and writes it to a log file"""
    import traceback

    # Format the traceback (exception class, exception instance, traceback object)
    tb = "".join(traceback.format_exception(type(e), e, e.__traceback__))
    msg = f"{context}\n{tb}" if context else tb
    logging.error(msg)


def setup_keyring_backend():
    """Safely detects a keyring backend."""
    try:
        keyring.get_keyring()
    except Exception as e:
        keyring.set_keyring(null.Keyring())
        logging.error(
            f"Keyring backend failed. Falling back to NullBackend. Error: {e}"
        )


def retrieve_key() -> str | None:
    """
    Attempts to retrieve an API key.\n
    Prio: API_KEY env variable -> OPENAI_API_KEY env variable -> OS keyring entry
    """
    api_key = os.getenv("API_KEY") or os.getenv("OPENAI_API_KEY")
    if not api_key:
        try:
            api_key = get_password(KEYRING_SERVICE, USER_NAME)
        except Exception as e:
            log_exception(e, "Keyring lookup failed")
    return api_key or None


def spawn_error_panel(error: str, exception: str):
    """Error panel for failures that happen outside of the application"""
    CONSOLE.print(
        Panel(
            exception,
            title=Text(f"❌ {error}", style="bold red"),
            title_align="left",
            border_style="red",
            expand=False,
        )
    )
    CONSOLE.print()
