"""
Data models for the agent-chat conversation transcript.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationTurn:
    """
    Represents a single message in the conversation.

    `status` is 'streaming' only while an assistant turn is receiving deltas.
    """
    role: Role
    content: str = ""
    status: str = "final"

    @property
    def is_open(self) -> bool:
        return self.status == "streaming"


@dataclass
class Transcript:
    """
    Ordered list of turns. Insertion order is chronological order and at most
    one assistant turn is open at a time.
    """
    turns: list[ConversationTurn] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self.turns)

    def __getitem__(self, index: int) -> ConversationTurn:
        return self.turns[index]

    def append(self, role: Role, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content)
        self.turns.append(turn)
        return turn

    @property
    def open_turn(self) -> Optional[ConversationTurn]:
        for turn in reversed(self.turns):
            if turn.is_open:
                return turn
        return None

    def open_assistant(self) -> ConversationTurn:
        """Open an empty assistant turn, or return the one already open."""
        current = self.open_turn
        if current is not None:
            logger.debug("Assistant turn already open, reusing it")
            return current

        turn = ConversationTurn(role=Role.ASSISTANT, status="streaming")
        self.turns.append(turn)
        return turn

    def append_delta(self, delta: str) -> ConversationTurn:
        turn = self.open_turn or self.open_assistant()
        turn.content += delta
        return turn

    def finalize(self, text: str) -> ConversationTurn:
        """
        Close the open assistant turn with its final text. When no turn was
        opened during the stream, the final text is appended as a new turn.
        """
        turn = self.open_turn
        if turn is None:
            return self.append(Role.ASSISTANT, text)

        turn.content = text
        turn.status = "final"
        return turn

    def truncate(self, length: int) -> list[ConversationTurn]:
        """Drop every turn from `length` on and return the removed turns."""
        removed = self.turns[length:]
        del self.turns[length:]
        return removed

    def as_pairs(self) -> list[tuple[str, str]]:
        return [(turn.role.value, turn.content) for turn in self.turns]
