"""Chat view — scrollable per-tool transcript with live streamed replies.

Transcripts live in memory only and are lost when the window closes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Static

from clihub.engine.models import InvocationResult


@dataclass
class ChatEntry:
    """One line of a transcript.

    ``role`` is one of ``user``, ``assistant``, ``system`` or ``error``.
    An assistant entry is ``streaming`` until its session resolves.
    """
    tool: str
    role: str
    text: str = ""
    streaming: bool = False
    stopped: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


_ROLE_LABELS = {
    "user": ("You", "bold blue"),
    "assistant": ("", "bold cyan"),
    "system": ("System", "dim"),
    "error": ("Error", "bold red"),
}


class EntryWidget(Static):
    """Renders a single ChatEntry; refreshed in place while streaming."""

    DEFAULT_CSS = """
    EntryWidget {
        height: auto;
        margin: 0 0 1 0;
        padding: 0 1;
    }
    """

    def __init__(self, entry: ChatEntry, **kwargs) -> None:
        self.entry = entry
        super().__init__(self._build(), classes=f"message-{entry.role}", **kwargs)

    def _build(self) -> Text:
        entry = self.entry
        label, style = _ROLE_LABELS.get(entry.role, ("", "dim"))
        if entry.role == "assistant":
            label = entry.tool

        out = Text()
        out.append(label, style=style)
        out.append(f" {entry.timestamp:%H:%M:%S}", style="dim")
        if entry.streaming:
            out.append("  …", style="yellow")
        elif entry.stopped:
            out.append("  stopped", style="magenta")
        out.append("\n")
        body_style = "red" if entry.role == "error" else ""
        out.append(entry.text, style=body_style)
        return out

    def refresh_content(self) -> None:
        self.set_classes(f"message-{self.entry.role}")
        self.update(self._build())


class ChatView(Widget):
    """Scrollable conversation pane that switches between tool transcripts."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._transcripts: dict[str, list[ChatEntry]] = {}
        self._current_tool: str | None = None

    def compose(self) -> ComposeResult:
        yield VerticalScroll(id="message-container")

    @property
    def current_tool(self) -> str | None:
        return self._current_tool

    def entries(self, tool: str) -> list[ChatEntry]:
        return list(self._transcripts.get(tool, []))

    # ── Scroll helpers ──

    def _message_container(self) -> VerticalScroll | None:
        try:
            return self.query_one("#message-container", VerticalScroll)
        except NoMatches:
            return None

    def is_near_bottom(self) -> bool:
        container = self._message_container()
        if container is None:
            return False
        if container.max_scroll_y == 0:
            return True
        return container.scroll_y >= container.max_scroll_y - 3

    def _smart_scroll(self) -> None:
        """Scroll to bottom only if already near the bottom."""
        container = self._message_container()
        if container is not None and self.is_near_bottom():
            container.scroll_end(animate=False)

    def _widget_for(self, entry: ChatEntry) -> EntryWidget | None:
        container = self._message_container()
        if container is None or entry.tool != self._current_tool:
            return None
        for widget in container.query(EntryWidget):
            if widget.entry is entry:
                return widget
        return None

    # ── Tool switching ──

    def show_tool(self, tool: str, *, force: bool = False) -> None:
        """Display *tool*'s transcript, rebuilding the pane."""
        if tool == self._current_tool and not force:
            return
        self._current_tool = tool
        container = self._message_container()
        if container is None:
            return
        container.remove_children()
        widgets = [EntryWidget(e) for e in self._transcripts.get(tool, [])]
        if widgets:
            container.mount_all(widgets)
        container.scroll_end(animate=False)

    def _append(self, entry: ChatEntry) -> ChatEntry:
        self._transcripts.setdefault(entry.tool, []).append(entry)
        if entry.tool == self._current_tool:
            container = self._message_container()
            if container is not None:
                container.mount(EntryWidget(entry))
                self._smart_scroll()
        return entry

    # ── Entries ──

    def add_user_message(self, tool: str, text: str) -> ChatEntry:
        return self._append(ChatEntry(tool=tool, role="user", text=text))

    def add_system_message(self, tool: str, text: str) -> ChatEntry:
        return self._append(ChatEntry(tool=tool, role="system", text=text))

    def add_error(self, tool: str, text: str) -> ChatEntry:
        return self._append(ChatEntry(tool=tool, role="error", text=text))

    def begin_response(self, tool: str) -> ChatEntry:
        """Open an empty assistant entry that chunks are appended to."""
        return self._append(ChatEntry(tool=tool, role="assistant", streaming=True))

    def append_chunk(self, entry: ChatEntry, text: str) -> None:
        """Append streamed text. Ignored once the entry is resolved."""
        if not entry.streaming:
            return
        entry.text += text
        widget = self._widget_for(entry)
        if widget is not None:
            widget.refresh_content()
            self._smart_scroll()

    def finish_response(self, entry: ChatEntry, result: InvocationResult) -> None:
        """Resolve a streaming entry with the session's terminal result."""
        entry.streaming = False
        if result.cancelled:
            entry.stopped = True
        elif result.success:
            entry.text = result.response or entry.text
        else:
            entry.role = "error"
            entry.text = result.error or "Unknown error"
        widget = self._widget_for(entry)
        if widget is not None:
            widget.refresh_content()
            self._smart_scroll()

    def clear(self, tool: str | None = None) -> None:
        """Forget *tool*'s transcript (the current one by default)."""
        tool = tool or self._current_tool
        if tool is None:
            return
        self._transcripts.pop(tool, None)
        if tool == self._current_tool:
            container = self._message_container()
            if container is not None:
                container.remove_children()
