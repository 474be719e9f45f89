"""
Single-line prompt that forwards raw keys to the session core.
"""
from typing import Optional

from textual import events
from textual.message import Message
from textual.widgets import Static

from core.input_machine import KeyEvent, KeyKind

PROMPT = "› "
CURSOR = "▏"

_NAMED_KEYS = {
    "enter": KeyKind.ENTER,
    "backspace": KeyKind.BACKSPACE,
    "delete": KeyKind.BACKSPACE,
    "escape": KeyKind.ESCAPE,
    "ctrl+c": KeyKind.INTERRUPT,
    "ctrl+d": KeyKind.INTERRUPT,
    "ctrl+q": KeyKind.INTERRUPT,
}


def translate_key(event) -> Optional[KeyEvent]:
    """Map a Textual key event to a core KeyEvent; None for keys we leave alone."""
    kind = _NAMED_KEYS.get(event.key)
    if kind is not None:
        return KeyEvent.named(kind)
    if event.is_printable and event.character:
        return KeyEvent.character(event.character)
    return None


class PromptInput(Static, can_focus=True):
    """
    Shows the unsent line. Editing happens in the session core's input state
    machine; this widget only renders the buffer it is given.
    """

    class KeyPressed(Message, bubble=True):
        def __init__(self, key: KeyEvent) -> None:
            super().__init__()
            self.key = key

    class Pasted(Message, bubble=True):
        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(PROMPT + CURSOR, markup=False, id=id)
        self.buffer = ""

    def set_buffer(self, text: str) -> None:
        self.buffer = text
        self.update(PROMPT + text + CURSOR)

    async def on_key(self, event: events.Key) -> None:
        key = translate_key(event)
        if key is None:
            return
        event.stop()
        event.prevent_default()
        self.post_message(self.KeyPressed(key))

    async def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self.post_message(self.Pasted(event.text))
