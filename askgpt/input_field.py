"""Modal single-line text input, wrapping a prompt_toolkit Buffer."""

from dataclasses import dataclass
from enum import Enum

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys


class InputMode(Enum):
    INSERT = "INSERT"
    NORMAL = "NORMAL"


@dataclass
class KeyMap:
    """Key names, as prompt_toolkit spells them"""

    left: tuple[str, ...] = ("h",)
    right: tuple[str, ...] = ("l",)
    escape: tuple[str, ...] = ("escape",)
    insert: tuple[str, ...] = ("i",)


DEFAULT_KEYMAP = KeyMap()

# prompt_toolkit's default cursor and editing keys, dead in Normal mode
NORMAL_MODE_BLOCKED = (
    "left",
    "right",
    "up",
    "down",
    "home",
    "end",
    "c-a",
    "c-e",
    "c-b",
    "c-f",
    "c-left",
    "c-right",
    "delete",
    "backspace",
    "c-w",
    "c-u",
)


class ModalInput:
    """
    Text field with an Insert and a Normal mode.

    - Insert: keys edit the text
    - Normal: only cursor-left, cursor-right and enter-insert do anything
    - Escape always lands in Normal
    """

    def __init__(
        self,
        keymap: KeyMap | None = None,
        insert_prompt: str = "> ",
        normal_prompt: str = "< ",
    ):
        self.keymap: KeyMap = keymap or DEFAULT_KEYMAP
        self.insert_prompt = insert_prompt
        self.normal_prompt = normal_prompt
        self.mode: InputMode = InputMode.INSERT
        self.focused: bool = True
        self.buffer = Buffer(
            multiline=False,
            read_only=Condition(lambda: self.mode is InputMode.NORMAL),
        )

    def handle_key(self, key: str) -> bool:
        """
        Dispatches one key. Returns True when the key was consumed.

        Key presses from the terminal land here through key_bindings(). A key is
        either a KeyMap name or, for typed text, the character itself.
        """
        if not self.focused:
            return False

        if key in self.keymap.escape:
            self.enter_normal()
            return True

        if self.mode is InputMode.NORMAL:
            if key in self.keymap.insert:
                self.enter_insert()
            elif key in self.keymap.left:
                self.cursor_left()
            elif key in self.keymap.right:
                self.cursor_right()
            # Normal mode swallows everything else
            return True

        if len(key) == 1 and key.isprintable():
            self.buffer.insert_text(key)
            return True
        return False

    def enter_normal(self):
        self.mode = InputMode.NORMAL

    def enter_insert(self):
        self.mode = InputMode.INSERT

    def set_cursor(self, position: int):
        self.buffer.cursor_position = max(0, min(position, len(self.buffer.text)))

    def cursor_left(self):
        self.set_cursor(self.buffer.cursor_position - 1)

    def cursor_right(self):
        self.set_cursor(self.buffer.cursor_position + 1)

    @property
    def prompt(self) -> str:
        if self.mode is InputMode.NORMAL:
            return self.normal_prompt
        return self.insert_prompt

    @property
    def value(self) -> str:
        return self.buffer.text

    @property
    def cursor(self) -> int:
        return self.buffer.cursor_position

    def reset(self):
        self.buffer.reset()

    def focus(self):
        self.focused = True

    def blur(self):
        self.focused = False

    def key_bindings(self) -> KeyBindings:
        """Routes real key presses into handle_key()."""
        kb = KeyBindings()
        focused = Condition(lambda: self.focused)
        normal = focused & Condition(lambda: self.mode is InputMode.NORMAL)

        def route(key: str):
            def handler(event):
                self.handle_key(key)

            return handler

        for key in self.keymap.escape:
            kb.add(key, filter=focused, eager=True)(route(key))
        for key in (*self.keymap.insert, *self.keymap.left, *self.keymap.right):
            kb.add(key, filter=normal)(route(key))

        # Named keys outrank Keys.Any, so the editing defaults need explicit no-ops
        for key in NORMAL_MODE_BLOCKED:
            kb.add(key, filter=normal)(lambda event: None)

        @kb.add(Keys.Any, filter=focused)
        def _typed(event):
            self.handle_key(event.data)

        return kb
