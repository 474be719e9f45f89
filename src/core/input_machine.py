"""
Keystroke state machine: the unsent input line and the double-press exit
confirmation.
"""
import logging
from dataclasses import dataclass
from enum import Enum

from core.domain import InputAction

logger = logging.getLogger(__name__)


class KeyKind(str, Enum):
    CHARACTER = "character"
    BACKSPACE = "backspace"
    ENTER = "enter"
    INTERRUPT = "interrupt"
    ESCAPE = "escape"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""

    @classmethod
    def character(cls, char: str) -> "KeyEvent":
        return cls(KeyKind.CHARACTER, char)

    @classmethod
    def named(cls, kind: KeyKind) -> "KeyEvent":
        return cls(kind)


@dataclass
class InputState:
    buffer: str = ""
    exit_armed: bool = False


class InputStateMachine:
    """
    Consumes one key event at a time and returns the action the session core
    should apply.

    Keys typed while a response is in flight still edit the buffer; only
    Enter is refused. Exit confirmation works regardless of `busy`.
    """

    def __init__(self, state: InputState | None = None) -> None:
        self.state = state or InputState()

    @property
    def buffer(self) -> str:
        return self.state.buffer

    @property
    def exit_armed(self) -> bool:
        return self.state.exit_armed

    def feed(self, key: KeyEvent, busy: bool = False) -> InputAction:
        kind = key.kind

        if kind == KeyKind.ESCAPE:
            return {'type': 'ignored'}

        if kind == KeyKind.INTERRUPT:
            return self._interrupt()

        self.state.exit_armed = False

        if kind == KeyKind.CHARACTER:
            if not key.char:
                return {'type': 'ignored'}
            self.state.buffer += key.char
            return {'type': 'edit', 'buffer': self.state.buffer}

        if kind == KeyKind.BACKSPACE:
            self.state.buffer = self.state.buffer[:-1]
            return {'type': 'edit', 'buffer': self.state.buffer}

        if kind == KeyKind.ENTER:
            if busy:
                return {'type': 'busy'}
            text = self.state.buffer
            self.state.buffer = ""
            if not text.strip():
                return {'type': 'edit', 'buffer': ""}
            return {'type': 'submit', 'text': text}

        logger.debug("Unhandled key kind %r", kind)
        return {'type': 'ignored'}

    def feed_text(self, text: str, busy: bool = False) -> InputAction:
        """Feed pasted text as printable characters. Line breaks are dropped."""
        action: InputAction = {'type': 'ignored'}
        for char in text:
            if char.isprintable():
                action = self.feed(KeyEvent.character(char), busy)
        return action

    def _interrupt(self) -> InputAction:
        if self.state.exit_armed:
            logger.info("Second interrupt received, exiting")
            return {'type': 'terminate', 'code': 0}

        self.state.exit_armed = True
        self.state.buffer = ""
        return {'type': 'exit_hint'}
