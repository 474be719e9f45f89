"""
Pure helpers turning session state into display text.
"""
import unicodedata
from typing import Iterable

from models import ConversationTurn, Role

EXIT_HINT_MESSAGE = "Press Ctrl+C again to exit."
BUSY_MESSAGE = "Responding..."
ERROR_PREFIX = "Error: "


def format_role_label(role: Role) -> str:
    return "you:" if role == Role.USER else "assistant:"


def format_turn(turn: ConversationTurn) -> str:
    return f"{format_role_label(turn.role)} {turn.content}".strip()


def format_conversation(turns: Iterable[ConversationTurn]) -> str:
    """Render the transcript with a blank line between turns."""
    return "\n\n".join(format_turn(turn) for turn in turns)


def format_status(exit_armed: bool, status_message: str, busy: bool) -> str:
    if exit_armed:
        return EXIT_HINT_MESSAGE
    if status_message:
        return status_message
    return BUSY_MESSAGE if busy else ""


def to_single_line_message(error: object, fallback: str = "Unknown error") -> str:
    """
    Collapse an exception (or string) into one printable line.

    Every run of line separators (including the Unicode ones) becomes one
    space, tabs become spaces, and remaining control characters are dropped.
    """
    message = fallback
    if isinstance(error, BaseException) and str(error):
        message = str(error)
    elif isinstance(error, str):
        message = error

    single_line = " ".join(part for part in message.splitlines() if part).replace("\t", " ")
    single_line = "".join(char for char in single_line if unicodedata.category(char) != "Cc").strip()
    return single_line or fallback
