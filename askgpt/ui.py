"""Builds UI pieces: header and footer fragments, plus Markdown charts."""

import os
import textwrap

from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.utils import get_cwidth

from askgpt import __version__
from askgpt.globals import CONFIG_FILE, LOG_DIR, SESSIONS_DIR

RULE = "─"


def fragments_width(fragments: StyleAndTextTuples) -> int:
    return sum(get_cwidth(text) for _, text, *_ in fragments)


class UIConstructor:
    """Constructs and returns various UI objects"""

    def __init__(self, config, session):
        self.config = config
        self.session = session

    def header_fragments(self, width: int, input_focused: bool) -> StyleAndTextTuples:
        title: StyleAndTextTuples = [
            ("class:title", f" AskGPT {__version__} "),
            ("class:info", f" {self.config.model_name} "),
            ("class:rule", "├"),
        ]
        rule_style = "class:rule" if input_focused else "class:rule.focused"
        line = RULE * max(0, width - fragments_width(title))
        return title + [(rule_style, line)]

    def status_fragments(self) -> StyleAndTextTuples:
        """Context consumption, turn counter and throughput"""
        context_percentage = self.session.context_percentage()
        # Colorize context percentage based on context consumption
        context_style = "class:status"
        if 50 <= context_percentage < 80:
            context_style = "class:status.warn"
        elif context_percentage >= 80:
            context_style = "class:status.danger"

        fragments: StyleAndTextTuples = [
            ("class:status", " Context: "),
            (context_style, f"{context_percentage}%"),
            ("class:status", f" | Turn: {self.session.count_turns()}"),
        ]
        throughput = self.session.throughput()
        if throughput:
            fragments.append(("class:status", f" | Tk/s: {throughput:.1f}"))
        fragments.append(("class:status", " "))
        return fragments

    def footer_fragments(
        self,
        width: int,
        scroll_percent: float,
        mode: str,
        is_answering: bool,
        input_focused: bool,
        status: StyleAndTextTuples,
    ) -> StyleAndTextTuples:
        info: StyleAndTextTuples = [("class:info", f"┤ {scroll_percent * 100:3.0f}% ")]
        left: StyleAndTextTuples = []
        if is_answering:
            left.append(("class:state", " Answering "))
        left.append(("class:mode", f" {mode} "))
        left.extend(status)

        rule_style = "class:rule.focused" if input_focused else "class:rule"
        used = fragments_width(left) + fragments_width(info)
        return left + [(rule_style, RULE * max(0, width - used))] + info

    def help_chart(self) -> str:
        return textwrap.dedent("""
            | **Keys** | |
            | --- | --- |
            | `Enter` | Send the question (or run a `!` command). |
            | `Esc` / `i` | Normal mode / back to Insert mode. `h` and `l` move the cursor in Normal mode. |
            | `Ctrl + J` / `Ctrl + K` | Switch focus between the input and the transcript. |
            | `j` `k` `f` `b` `u` `d` `g` `G` | Scroll the transcript while it has focus. The mouse wheel works too. |
            | `Ctrl + C` | Cancel the answer being streamed. Quits when nothing is streaming. |

            | **Commands** | |
            | --- | --- |
            | `!h` or `!help` | Show this chart. |
            | `!q` or `!quit` | Exit AskGPT. |
            | `!reset` | Start a fresh session. |
            | `!clear` | Clear the transcript, keeping the session. |
            | `!s` or `!save [name]` | Save the current session. |
            | `!l` or `!load <name>` | Load a saved session. |
            | `!sessions` | List saved sessions. |
            | `!delete <name>` | Delete a saved session. |
            | `!cp` | Copy all code blocks from the last response. |
            | `!profile [alias]` | List profiles, or switch to one. |
            | `!key <api key>` | Store an API key in your OS keychain. |
            | `!config` | Show your current settings. |
            """).strip()

    def settings_chart(self) -> str:
        return textwrap.dedent(f"""
            | **Current Settings** | |
            | --- | --- |
            | **Profile** | *{self.config.alias_name}* |
            | **Model Name** | *{self.config.model_name}* |
            | **Endpoint** | *{self.config.endpoint}* |
            | **Context Length** | *{self.config.context_length}* |
            | **Refresh Rate** | *{self.config.refresh_rate}* |
            | **Markdown Theme** | *{self.config.rich_code_theme}* |
            | **Word Wrap** | *{self.config.word_wrap}* |

            - Configuration file: `{CONFIG_FILE}`
            - Session files: `{SESSIONS_DIR}`
            - Error logs: `{LOG_DIR}`
            - Working directory: `{os.getcwd()}`
            """).strip()

    def profiles_chart(self) -> str:
        rows = ["| **Profile** | **Model** | **Endpoint** |", "| --- | --- | --- |"]
        for m in self.config.models:
            tag = " *(active)*" if m["alias"] == self.config.active_model else ""
            rows.append(f"| {m['alias']}{tag} | {m['name']} | `{m['endpoint']}` |")
        return "\n".join(rows)
