from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static


class ConversationView(VerticalScroll, can_focus=False):
    """Scrollable transcript pane, rewritten in full on every update."""

    def compose(self) -> ComposeResult:
        yield Static("", markup=False, id="conversation_text")

    def set_text(self, text: str) -> None:
        self.query_one("#conversation_text", Static).update(text)
        self.scroll_end(animate=False)
