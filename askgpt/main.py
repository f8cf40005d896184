#!/usr/bin/env python3

# <~~~~~~>
#  ASKGPT
# <~~~~~~>

import sys

from askgpt.app import ChatApp
from askgpt.config import Config
from askgpt.conversation import Conversation
from askgpt.globals import (
    CONSOLE,
    init_logger,
    log_exception,
    retrieve_key,
    setup_keyring_backend,
    spawn_error_panel,
)
from askgpt.session_manager import SessionManager


def main():
    try:
        # Spinner, mostly for cold starts (tiktoken loads its encoding here)
        with CONSOLE.status(
            "[bold medium_orchid]Launching AskGPT...[/bold medium_orchid]",
            spinner="moon",
        ):
            init_logger()
            setup_keyring_backend()
            config = Config()
            config.load()
            api_key = retrieve_key()
            if api_key:
                session = SessionManager(config)
                conversation = Conversation(config, session)
                app = ChatApp(config, session, conversation)
        if not api_key:
            spawn_error_panel(
                "NO API KEY",
                "no api key\nSet API_KEY (or OPENAI_API_KEY), or store one in your OS keychain.",
            )
            sys.exit(1)
        app.run()
        config.save()
        CONSOLE.print("[yellow]✨ Farewell![/yellow]\n")
    except (KeyboardInterrupt, EOFError):
        CONSOLE.print("[yellow]✨ Farewell![/yellow]\n")
    except Exception as e:
        log_exception(e, "Critical error")
        spawn_error_panel("CRITICAL ERROR", f"{e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
