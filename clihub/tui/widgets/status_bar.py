"""Status bar — bottom bar showing the selected tool and run state."""

from __future__ import annotations

import time
from typing import Optional

from rich.text import Text
from textual.reactive import reactive
from textual.timer import Timer
from textual.widget import Widget


def _format_elapsed(seconds: float) -> str:
    """Format elapsed seconds into a human-readable string."""
    secs = int(seconds)
    if secs < 60:
        return f"{secs}s"
    elif secs < 3600:
        m, s = divmod(secs, 60)
        return f"{m}m {s}s"
    else:
        h, remainder = divmod(secs, 3600)
        m = remainder // 60
        return f"{h}h {m}m"


class StatusBar(Widget):
    """Single-line status bar with tool info and run state."""

    tool_name: reactive[str] = reactive("No tool")
    version: reactive[str] = reactive("—")
    platform: reactive[str] = reactive("")
    status: reactive[str] = reactive("idle")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._started_at: Optional[float] = None
        self._elapsed_timer: Timer | None = None

    def watch_status(self, old_value: str, new_value: str) -> None:
        """Track elapsed time while a response is streaming."""
        if new_value == "streaming" and old_value != "streaming":
            self._started_at = time.monotonic()
            if self._elapsed_timer is None:
                self._elapsed_timer = self.set_interval(1.0, self.refresh)
        elif old_value == "streaming" and new_value != "streaming":
            self._started_at = None
            if self._elapsed_timer is not None:
                self._elapsed_timer.stop()
                self._elapsed_timer = None

    @property
    def elapsed(self) -> float | None:
        if self._started_at is None:
            return None
        return time.monotonic() - self._started_at

    def render(self) -> Text:
        status_colors = {
            "idle": "green",
            "streaming": "yellow",
            "installing": "yellow",
            "stopped": "magenta",
            "error": "red bold",
        }
        color = status_colors.get(self.status, "white")

        bar = Text()
        bar.append(f" {self.tool_name} ", style="bold")
        bar.append(" │ ", style="dim")
        bar.append(self.version, style="cyan")
        if self.platform:
            bar.append(" │ ", style="dim")
            bar.append(self.platform, style="dim")
        bar.append(" │ ", style="dim")

        status_display = f"● {self.status}"
        elapsed = self.elapsed
        if elapsed is not None:
            status_display += f" ({_format_elapsed(elapsed)})"
        bar.append(status_display, style=color)
        return bar
