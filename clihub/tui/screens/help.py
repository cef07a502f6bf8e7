"""Help modal showing mouse-first actions and key mappings."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class HelpScreen(ModalScreen[None]):
    """Display usage instructions and keyboard shortcuts."""

    CSS_PATH = "../styles/modal.tcss"
    BINDINGS = [
        ("escape", "close", "Close"),
        ("ctrl+h", "close", "Close"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="help-dialog"):
            yield Static(
                "[bold $primary]clihub Help[/bold $primary]",
                id="help-title",
                markup=True,
            )
            yield Static(
                "[bold]Tool panel[/bold]\n"
                "- Click a tool name to chat with it\n"
                "- `Install`: install the tool globally with npm\n"
                "- `Login`: open a terminal running the tool to sign in\n"
                "- `Docs`: open the tool's homepage in your browser\n\n"
                "[bold]Keyboard shortcuts[/bold]\n"
                "- `Ctrl+H`: open help\n"
                "- `Ctrl+C`: stop the running reply\n"
                "- `Ctrl+L`: clear the current transcript\n"
                "- `Ctrl+R`: re-check installed tools\n"
                "- `Ctrl+E`: focus prompt input\n"
                "- `Ctrl+Q`: quit\n"
                "- `F1`: toggle activity log\n\n"
                "[bold]Prompt tips[/bold]\n"
                "- Press `Enter` to send, `Shift+Enter` for newline\n"
                "- `Up`/`Down` recall earlier prompts",
                id="help-body",
                markup=True,
            )
            yield Button("Close", id="help-close", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help-close":
            self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)
