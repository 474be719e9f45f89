import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol

from core.domain import AgentEvent, Region, SessionPhase
from core.formatter import (
    ERROR_PREFIX, format_conversation, format_status, to_single_line_message,
)
from core.input_machine import InputStateMachine, KeyEvent
from core.provider import ModelProvider, ProviderError
from core.stream import StreamSink
from core.terminal import TerminalSession
from models import Role, Transcript

logger = logging.getLogger(__name__)


class Display(Protocol):
    def set_text(self, region: Region, text: str) -> None:
        ...


@dataclass
class SessionState:
    transcript: Transcript = field(default_factory=Transcript)
    busy: bool = False
    phase: SessionPhase = SessionPhase.IDLE
    status_message: str = ""


class Orchestrator:
    """
    Owns the transcript, the input line and the request lifecycle.

    `handle_key` is called from the UI's key dispatch and never blocks; when it
    returns text, the caller schedules `submit(text)` on the event loop.
    """

    def __init__(
        self,
        provider: ModelProvider,
        display: Display,
        terminal: TerminalSession,
        input_machine: Optional[InputStateMachine] = None,
    ):
        self.provider = provider
        self.display = display
        self.terminal = terminal
        self.input = input_machine or InputStateMachine()
        self.state = SessionState()

    @property
    def transcript(self) -> Transcript:
        return self.state.transcript

    @property
    def busy(self) -> bool:
        return self.state.busy

    def handle_key(self, key: KeyEvent) -> Optional[str]:
        return self._apply(self.input.feed(key, self.state.busy))

    def handle_paste(self, text: str) -> Optional[str]:
        return self._apply(self.input.feed_text(text, self.state.busy))

    def _apply(self, action) -> Optional[str]:
        kind = action['type']

        if kind == 'terminate':
            self.terminal.terminate(action['code'])
            return None

        if kind == 'busy':
            logger.info("Submission rejected, a response is in progress")

        self.display.set_text(Region.INPUT, self.input.buffer)
        self.render_status()

        if kind == 'submit':
            return action['text']
        return None

    async def submit(self, text: str) -> bool:
        """
        Run one request: append the user turn, stream the answer into the
        transcript, then either commit it or roll both turns back.
        Returns True when an answer was committed.
        """
        trimmed = text.strip()
        if not trimmed:
            return False

        if self.state.busy:
            logger.info("Submission rejected, a response is in progress")
            self.render_status()
            return False

        transcript = self.state.transcript
        rollback_length = len(transcript)
        self.state.status_message = ""
        transcript.append(Role.USER, trimmed)
        self.render_conversation()
        self._set_busy(True)
        self.state.phase = SessionPhase.AWAITING_MODEL
        logger.info("Submitting %d character(s), %d turn(s) of context", len(trimmed), len(transcript))

        sink = StreamSink(self._append_delta)
        try:
            final_text = await sink.drain(self._fragments(self.provider.stream(list(transcript))))
        except ProviderError as error:
            logger.warning("Model call failed: %s", error)
            self._fail(rollback_length, error)
            return False
        except Exception as error:
            logger.exception("Unexpected failure during model call")
            self._fail(rollback_length, error)
            return False

        transcript.finalize(final_text)
        logger.info("Response complete: %d fragment(s), %d character(s)", sink.fragment_count, len(final_text))
        self.state.phase = SessionPhase.IDLE
        self._set_busy(False)
        self.render_conversation()
        return True

    async def _fragments(self, events: AsyncIterator[AgentEvent]) -> AsyncIterator[str]:
        """Text deltas out of the agent event stream, in arrival order."""
        async for event in events:
            kind = event.get('type')
            if kind == 'message_start':
                if event.get('role', 'assistant') == 'assistant':
                    self.state.transcript.open_assistant()
                    self.render_conversation()
            elif kind == 'message_update':
                delta = event.get('delta')
                if delta:
                    yield delta
            elif kind == 'message_end':
                if event.get('error'):
                    raise ProviderError(event['error'])
            elif kind == 'agent_end':
                continue
            else:
                logger.debug("Ignoring agent event %r", kind)

    def _append_delta(self, delta: str) -> None:
        self.state.transcript.append_delta(delta)
        self.render_conversation()

    def _fail(self, rollback_length: int, error: Exception) -> None:
        self.state.phase = SessionPhase.FAILED
        removed = self.state.transcript.truncate(rollback_length)
        logger.warning("Rolled back %d turn(s)", len(removed))
        self.state.status_message = ERROR_PREFIX + to_single_line_message(error)
        self.render_conversation()
        self.state.phase = SessionPhase.IDLE
        self._set_busy(False)

    def _set_busy(self, value: bool) -> None:
        self.state.busy = value
        self.render_status()

    def render_conversation(self) -> None:
        self.display.set_text(Region.CONVERSATION, format_conversation(self.state.transcript))

    def render_status(self) -> None:
        self.display.set_text(
            Region.STATUS,
            format_status(self.input.exit_armed, self.state.status_message, self.state.busy),
        )
