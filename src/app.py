"""
agent-chat: terminal chat client streaming replies from a remote model.
"""

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from core.configuration import Configuration, ConfigurationError, load_configuration
from core.domain import Region
from core.formatter import ERROR_PREFIX, to_single_line_message
from core.input_machine import KeyEvent, KeyKind
from core.orchestrator import Orchestrator
from core.provider import LangGraphProvider, ModelProvider, ProviderError, text_deltas
from core.stream import stdout_sink
from core.terminal import TerminalSession
from models import ConversationTurn, Role
from widgets import ConversationView, PromptInput

logger = logging.getLogger(__name__)


class TextualDisplay:
    """Routes the session core's region updates to the app's widgets."""

    def __init__(self, app: App) -> None:
        self.app = app

    def set_text(self, region: Region, text: str) -> None:
        if region == Region.CONVERSATION:
            self.app.query_one("#chat_log", ConversationView).set_text(text)
        elif region == Region.STATUS:
            self.app.query_one("#status_line", Static).update(text)
        elif region == Region.INPUT:
            self.app.query_one("#input_text", PromptInput).set_buffer(text)


class ChatApp(App):
    CSS = """
#chat_log {
    height: 1fr;
    padding: 0 1;
}
#status_line {
    height: 1;
    padding: 0 1;
    color: $text-muted;
}
#input_text {
    height: auto;
    border: round $secondary;
    padding: 0 1;
}
    """
    BINDINGS = [
        Binding("ctrl+c", "interrupt", show=False, priority=True),
        Binding("ctrl+d", "interrupt", show=False, priority=True),
        Binding("ctrl+q", "interrupt", show=False, priority=True),
    ]

    def __init__(self, configuration: Configuration, provider: ModelProvider):
        """Initialize the chat application around one session core."""
        super().__init__()
        self.configuration = configuration
        self.terminal_session = TerminalSession(lambda code: self.exit(return_code=code))
        self.orchestrator = Orchestrator(provider, TextualDisplay(self), self.terminal_session)
        self.title = "agent-chat"
        self.sub_title = configuration.model_identifier

    def compose(self) -> ComposeResult:
        """
        Create the main UI layout: transcript, status line, prompt.
        """
        yield ConversationView(id="chat_log")
        yield Static("", markup=False, id="status_line")
        yield PromptInput(id="input_text")

    def on_mount(self) -> None:
        self.terminal_session.enable()
        self.query_one("#input_text", PromptInput).focus()
        self.orchestrator.render_status()

    def on_unmount(self) -> None:
        self.terminal_session.disable()

    def on_prompt_input_key_pressed(self, message: PromptInput.KeyPressed) -> None:
        self._dispatch(self.orchestrator.handle_key(message.key))

    def on_prompt_input_pasted(self, message: PromptInput.Pasted) -> None:
        self._dispatch(self.orchestrator.handle_paste(message.text))

    def action_interrupt(self) -> None:
        self._dispatch(self.orchestrator.handle_key(KeyEvent.named(KeyKind.INTERRUPT)))

    def _dispatch(self, submitted: Optional[str]) -> None:
        if submitted is not None:
            self.run_infer(submitted)

    @work(group='infer')
    async def run_infer(self, user_input: str) -> None:
        """
        Run one model call. The session core rejects a second submission
        while this one is in flight.
        """
        await self.orchestrator.submit(user_input)


async def run_once(provider: ModelProvider, prompt: str) -> int:
    """Stream a single answer to stdout. Used by `agent-chat -p`."""
    text = prompt.strip()
    if not text:
        return 0

    sink = stdout_sink()
    try:
        await sink.drain(text_deltas(provider.stream([ConversationTurn(Role.USER, text)])))
    except ProviderError as error:
        logger.warning("Model call failed: %s", error)
        sys.stderr.write(f"{ERROR_PREFIX}{to_single_line_message(error)}\n")
        return 1
    return 0


def _parse_args(argv: Optional[list[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agent-chat", description="Chat with a language model in the terminal.")
    parser.add_argument("--model", help="model identifier (default: $GEMINI_MODEL or gemini-3-flash-preview)")
    parser.add_argument("-p", "--prompt", help="send one prompt, print the streamed answer and exit")
    parser.add_argument("--log-level", default=os.getenv("AGENT_CHAT_LOG_LEVEL", "INFO"), help="log level for the log file")
    return parser.parse_args(argv)


def _configure_logging(level_name: str) -> Path:
    # The terminal belongs to the UI, so records only go to a file.
    log_file = Path(os.getenv("AGENT_CHAT_LOG_FILE") or Path.home() / ".agent-chat" / "logs" / "agent-chat.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    root.handlers.clear()
    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(file_handler)
    return log_file


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    load_dotenv()
    try:
        log_file = _configure_logging(args.log_level)
    except OSError as error:
        sys.stderr.write(f"Cannot open log file: {to_single_line_message(error)}\n")
        return 1

    try:
        configuration = load_configuration(model_identifier=args.model)
        provider = LangGraphProvider(configuration)
    except ConfigurationError as error:
        sys.stderr.write(f"{to_single_line_message(error)}\n")
        return 1
    except Exception as error:
        logger.exception("Could not create the model provider")
        sys.stderr.write(f"{to_single_line_message(error)}\n")
        return 1

    logger.info("Starting agent-chat model=%s provider=%s log=%s",
                configuration.model_identifier, configuration.model_provider, log_file)

    if args.prompt is not None:
        return asyncio.run(run_once(provider, args.prompt))

    app = ChatApp(configuration, provider)
    app.run()
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
