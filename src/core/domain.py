"""
Events emitted by the model provider and actions emitted by the input
state machine. Both are tagged by their 'type' key.
"""

from enum import Enum
from typing import Literal, TypedDict, Union


class MessageStartEvent(TypedDict, total=False):
    type: Literal['message_start']
    role: str


class MessageUpdateEvent(TypedDict, total=False):
    type: Literal['message_update']
    delta: str


class MessageEndEvent(TypedDict, total=False):
    """`error` is set when the model finished without producing an answer."""
    type: Literal['message_end']
    text: str
    error: str


class AgentEndEvent(TypedDict, total=False):
    type: Literal['agent_end']


AgentEvent = Union[
    MessageStartEvent, MessageUpdateEvent, MessageEndEvent, AgentEndEvent,
]


class EditAction(TypedDict):
    type: Literal['edit']
    buffer: str


class SubmitAction(TypedDict):
    type: Literal['submit']
    text: str


class BusyAction(TypedDict):
    type: Literal['busy']


class ExitHintAction(TypedDict):
    type: Literal['exit_hint']


class TerminateAction(TypedDict):
    type: Literal['terminate']
    code: int


class IgnoredAction(TypedDict):
    type: Literal['ignored']


InputAction = Union[
    EditAction, SubmitAction, BusyAction, ExitHintAction, TerminateAction, IgnoredAction,
]


class Region(str, Enum):
    """Areas of the screen the session core can write to."""
    CONVERSATION = "conversation"
    STATUS = "status"
    INPUT = "input"


class SessionPhase(str, Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    FAILED = "failed"
