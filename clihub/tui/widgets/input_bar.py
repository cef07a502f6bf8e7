"""Input bar — prompt input with submit handling, history and a stop button."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, TextArea


class PromptInput(TextArea):
    """TextArea that fires SubmitRequested on Enter (Shift+Enter for newlines)."""

    class SubmitRequested(Message):
        """Fired when bare Enter is pressed."""

    async def _on_key(self, event: events.Key) -> None:
        if event.key == "enter":
            event.stop()
            event.prevent_default()
            self.post_message(self.SubmitRequested())
            return
        if event.key == "shift+enter":
            event.stop()
            event.prevent_default()
            self.insert("\n")
            return
        await super()._on_key(event)


class InputBar(Widget):
    """Prompt input area with Send/Stop buttons and Up/Down history."""

    class Submitted(Message):
        """Posted when user submits a prompt."""

        def __init__(self, text: str) -> None:
            self.text = text
            super().__init__()

    class StopRequested(Message):
        """Posted when user clicks the stop button."""

    DEFAULT_CSS = """
    InputBar #stop-btn {
        min-width: 8;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._history: list[str] = []
        self._history_index: int = -1
        self._draft: str = ""

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield PromptInput(id="prompt-input")
            yield Button("Send", id="send-btn", variant="primary")
            yield Button("Stop", id="stop-btn", variant="error", disabled=True)

    def set_busy(self, busy: bool) -> None:
        """Swap Send/Stop availability while a response streams."""
        self.query_one("#send-btn", Button).disabled = busy
        self.query_one("#stop-btn", Button).disabled = not busy

    def focus_input(self) -> None:
        self.query_one("#prompt-input", PromptInput).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()
        elif event.button.id == "stop-btn":
            self.post_message(self.StopRequested())

    def on_prompt_input_submit_requested(self) -> None:
        if not self.query_one("#send-btn", Button).disabled:
            self._submit()

    def on_key(self, event) -> None:
        editor = self.query_one("#prompt-input", PromptInput)
        if not editor.has_focus:
            return

        if event.key == "up":
            if self._history:
                event.prevent_default()
                event.stop()
                self._navigate_history(-1)
        elif event.key == "down":
            if self._history_index >= 0:
                event.prevent_default()
                event.stop()
                self._navigate_history(1)

    def _submit(self) -> None:
        editor = self.query_one("#prompt-input", PromptInput)
        text = editor.text.strip()
        if not text:
            return

        self._history.append(text)
        self._history_index = -1
        self._draft = ""
        self.post_message(self.Submitted(text))

        editor.clear()
        editor.focus()

    def _navigate_history(self, direction: int) -> None:
        """Navigate prompt history. direction: -1=older, 1=newer."""
        editor = self.query_one("#prompt-input", PromptInput)

        if self._history_index == -1 and direction == -1:
            self._draft = editor.text
            self._history_index = len(self._history) - 1
        elif direction == -1 and self._history_index > 0:
            self._history_index -= 1
        elif direction == 1:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                editor.load_text(self._draft)
                return
        else:
            return

        editor.load_text(self._history[self._history_index])
