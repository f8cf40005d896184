"""Command interactivity logic lives here."""

import json
import os
import re
import textwrap

import pyperclip
from keyring import set_password
from keyring.errors import KeyringError

from askgpt.globals import (
    ASSISTANT_LABEL,
    KEYRING_SERVICE,
    USER_LABEL,
    USER_NAME,
    log_exception,
)

CODE_BLOCK_PATTERN = re.compile(r"```[^\S\n]*\w*[^\S\n]*\n(.*?)\n[^\S\n]*```", re.DOTALL)


class CLIController:
    """Handles all `!` command input typed into the chat field"""

    def __init__(self, config, session, conversation, relay, ui):
        self.config = config
        self.session = session
        self.conversation = conversation
        self.relay = relay
        self.ui = ui
        self.interface = None

        # Command dict
        self.commands = {
            "!h": self.spawn_help_chart,
            "!help": self.spawn_help_chart,
            "!q": self.quit,
            "!quit": self.quit,
            "!reset": self.reset_session,
            "!clear": self.clear_transcript,
            "!s": self.save_session,
            "!save": self.save_session,
            "!l": self.load_session,
            "!load": self.load_session,
            "!sessions": self.list_sessions,
            "!delete": self.delete_session,
            "!cp": self.copy_last_snippet,
            "!profile": self.switch_model,
            "!key": self.set_api_key,
            "!config": self.spawn_settings_chart,
        }
        # Safe to run while an answer is streaming
        self.always_allowed = {"!h", "!help", "!q", "!quit", "!config"}

    def set_interface(self, chat_interface):
        """Setter to inject the application shell."""
        self.interface = chat_interface

    def handle_input(self, user_input: str) -> bool:
        """Parse user input for a command & handle it. Returns False if it is not one."""
        stripped = user_input.strip()
        if not stripped.startswith("!"):
            return False

        cmd, _, arg = stripped.partition(" ")
        cmd = cmd.lower()
        handler = self.commands.get(cmd)
        if handler is None:
            self.relay.notice(f"> Unknown command `{cmd}`. Type `!h` for a list of commands.")
            return True
        if self.relay.is_answering and cmd not in self.always_allowed:
            self.relay.notice(f"> `{cmd}` is unavailable while an answer is streaming.")
            return True
        handler(arg.strip())
        return True

    # <~~CHARTS~~>
    def spawn_help_chart(self, _arg: str = ""):
        self.relay.notice(self.ui.help_chart())

    def spawn_settings_chart(self, _arg: str = ""):
        self.relay.notice(self.ui.settings_chart())

    def quit(self, _arg: str = ""):
        if self.interface:
            self.interface.exit()

    # <~~SESSION MANAGEMENT~~>
    def reset_session(self, _arg: str = ""):
        """Simple session resetter."""
        self.session.reset()
        self.relay.clear()
        self.relay.notice("> The current session has been reset.")

    def clear_transcript(self, _arg: str = ""):
        self.relay.clear()

    def save_session(self, file_name: str = ""):
        """Saves a session to a .json file"""
        file_name = file_name or self.session.active_session
        if not file_name:
            self.relay.notice("> Usage: `!save <name>`")
            return

        file_path = self.session._json_helper(file_name)
        try:
            self.session.save_to_disk(file_path)
            self.relay.notice(f"> Session saved in: `{file_path}`")
        except OSError as e:
            log_exception(
                e, f"Error in save_session() - file: {os.path.basename(file_path)}"
            )
            self.relay.notice(f"> **Error saving:** {e}")

    def load_session(self, file_name: str = ""):
        """Loads a session from a .json file and rebuilds the transcript"""
        if not file_name:
            self.list_sessions()
            self.relay.notice("> Usage: `!load <name>`")
            return

        file_path = self.session._json_helper(file_name)
        try:
            self.session.load_from_disk(file_path)
        except FileNotFoundError:
            self.relay.notice(f"> No session file found: `{file_path}`")
            return
        except (json.JSONDecodeError, ValueError):
            self.relay.notice(f"> Corrupted session file: `{file_path}`")
            return
        except OSError as e:
            log_exception(
                e, f"Error in load_session() - file: {os.path.basename(file_path)}"
            )
            self.relay.notice(f"> **Error loading:** {e}")
            return

        self.render_history()
        self.relay.notice(f"> Session loaded from: `{file_path}`")

    def render_history(self):
        """Rebuilds the transcript from the conversation history"""
        self.relay.clear()
        for msg in self.session.history:
            content = msg.get("content") or ""
            if msg["role"] == "user":
                self.relay.notice(f"{USER_LABEL}\n{content}")
            elif msg["role"] == "assistant":
                self.relay.notice(f"{ASSISTANT_LABEL}\n{content}")

    def list_sessions(self, _arg: str = ""):
        """Fetches the session list and displays it."""
        sessions = self.session.find_sessions()
        if not sessions:
            self.relay.notice("> No saved sessions found.")
            return
        listing = "\n".join(f"- `{s}`" for s in sessions)
        self.relay.notice(f"**Available sessions:**\n\n{listing}")

    def delete_session(self, file_name: str = ""):
        if not file_name:
            self.relay.notice("> Usage: `!delete <name>`")
            return

        file_path = self.session._json_helper(file_name)
        try:
            self.session.delete_file(file_path)
            self.relay.notice(f"> Session deleted: `{file_path}`")
        except FileNotFoundError:
            self.relay.notice(f"> No session file found: `{file_path}`")
        except OSError as e:
            log_exception(
                e, f"Error in delete_session() - file: {os.path.basename(file_path)}"
            )
            self.relay.notice(f"> **Deletion error:** {e}")

    # <~~MODEL MANAGEMENT~~>
    def switch_model(self, alias: str = ""):
        """List profiles, or switch the active one by alias."""
        if not alias:
            self.relay.notice(self.ui.profiles_chart())
            return

        match = self.config.find(alias)
        if not match:
            self.relay.notice(f"> No profile found under alias `{alias}`.")
            return

        self.config.active_model = alias
        self.config.save()
        self.conversation.rebuild_client()
        self.relay.notice(f"> Switched to: **{match['name']}** `{match['endpoint']}`")

    def set_api_key(self, new_key: str = ""):
        """Stores an API key with keyring and rebuilds the client with it"""
        if not new_key:
            self.relay.notice("> Usage: `!key <api key>`")
            return
        try:
            set_password(KEYRING_SERVICE, USER_NAME, new_key)
            self.relay.notice("> API key updated.")
        except (KeyringError, ValueError, RuntimeError, OSError) as e:
            log_exception(e, "Error in set_api_key()")
            self.relay.notice(
                f"> **Keyring error:** could not save to your OS keychain: {e}\n"
                "> Using the key for this session only."
            )
        self.conversation.rebuild_client(new_key)

    # <~~CLIPBOARD~~>
    def copy_last_snippet(self, _arg: str = ""):
        """Copies all Markdown code blocks from the last assistant message"""
        assistant_msg = self.session.return_assistant_msg()
        if not assistant_msg:
            self.relay.notice("> No assistant response found to copy from.")
            return

        blocks = CODE_BLOCK_PATTERN.findall(assistant_msg)
        if not blocks:
            self.relay.notice("> No code blocks found in the last response.")
            return

        code = "\n\n".join(textwrap.dedent(b) for b in blocks).strip()
        try:
            pyperclip.copy(code)
            self.relay.notice(f"> Copied {len(blocks)} code block(s) to your clipboard.")
        except pyperclip.PyperclipException as e:
            log_exception(e, "Error in copy_last_snippet()")
            self.relay.notice(f"> **Clipboard error:** could not copy to clipboard: {e}")
