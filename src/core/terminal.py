"""
Process-wide terminal state behind one capability object.
"""
import logging
import sys
from typing import Callable

logger = logging.getLogger(__name__)


class TerminalSession:
    """
    Owns raw mode and process exit for the chat session.

    Textual's driver does the actual raw-mode switch when the app starts and
    restores the terminal when it stops; this object tracks that window and
    is the only thing allowed to end the process.
    """

    def __init__(self, exit_app: Callable[[int], None]) -> None:
        self._exit_app = exit_app
        self.active = False
        self.exit_code: int | None = None

    def enable(self) -> None:
        if self.active:
            return
        self.active = True
        logger.debug("Terminal session enabled")

    def disable(self) -> None:
        if not self.active:
            return
        self.active = False
        sys.stdout.flush()
        logger.debug("Terminal session disabled")

    def terminate(self, code: int) -> None:
        if self.exit_code is not None:
            return
        self.exit_code = code
        logger.info("Terminating session with exit code %d", code)
        self.disable()
        self._exit_app(code)

    def __enter__(self) -> "TerminalSession":
        self.enable()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disable()
