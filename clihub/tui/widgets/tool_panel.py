"""Tool panel — sidebar listing each assistant with setup actions."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Static

from clihub.engine.models import PrerequisiteReport, ProbeResult, ToolIdentity
from clihub.engine.tools import TOOL_SPECS


class ToolPanel(Widget):
    """Prerequisite summary plus one row per tool (select, install, log in)."""

    class Selected(Message):
        def __init__(self, tool: str) -> None:
            self.tool = tool
            super().__init__()

    class InstallRequested(Message):
        def __init__(self, tool: str) -> None:
            self.tool = tool
            super().__init__()

    class LoginRequested(Message):
        def __init__(self, tool: str) -> None:
            self.tool = tool
            super().__init__()

    class DocsRequested(Message):
        def __init__(self, tool: str) -> None:
            self.tool = tool
            super().__init__()

    class PrerequisiteRequested(Message):
        """``target`` is ``node`` or ``homebrew``."""

        def __init__(self, target: str) -> None:
            self.target = target
            super().__init__()

    DEFAULT_CSS = """
    ToolPanel .tool-row {
        height: auto;
        margin: 1 0 0 0;
    }
    ToolPanel .tool-actions {
        height: auto;
    }
    ToolPanel .tool-actions Button {
        min-width: 9;
        margin: 0 1 0 0;
    }
    ToolPanel .hidden {
        display: none;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._probes: dict[str, ProbeResult] = {}
        self._selected: str | None = None

    def compose(self) -> ComposeResult:
        yield Static("Checking prerequisites…", id="prereq-status")
        with Horizontal(classes="tool-actions"):
            yield Button("Install Node.js", id="install-node", classes="hidden")
            yield Button("Get Homebrew", id="install-homebrew", classes="hidden")
        for identity in ToolIdentity:
            tool = identity.value
            with Vertical(classes="tool-row", id=f"row-{tool}"):
                yield Button(
                    TOOL_SPECS[identity].display_name,
                    id=f"select-{tool}",
                    classes="tool-select",
                )
                yield Static("checking…", id=f"state-{tool}")
                with Horizontal(classes="tool-actions"):
                    yield Button("Install", id=f"install-{tool}", disabled=True)
                    yield Button("Login", id=f"login-{tool}", disabled=True)
                    yield Button("Docs", id=f"docs-{tool}")

    @property
    def selected(self) -> str | None:
        return self._selected

    def probe_for(self, tool: str) -> ProbeResult | None:
        return self._probes.get(tool)

    def select(self, tool: str) -> None:
        self._selected = tool
        for identity in ToolIdentity:
            button = self.query_one(f"#select-{identity.value}", Button)
            button.variant = "primary" if identity.value == tool else "default"

    def set_prerequisites(self, report: PrerequisiteReport) -> None:
        text = Text()
        if report.node:
            text.append("node ", style="bold")
            text.append(report.node_version or "found", style="green")
        else:
            text.append("node missing", style="red")
        text.append("  ")
        text.append("npm ", style="bold")
        text.append("found" if report.npm else "missing",
                    style="green" if report.npm else "red")
        self.query_one("#prereq-status", Static).update(text)

        node_btn = self.query_one("#install-node", Button)
        brew_btn = self.query_one("#install-homebrew", Button)
        node_btn.set_class(report.node, "hidden")
        brew_btn.set_class(report.node or report.homebrew is not False, "hidden")
        # npm is needed for every tool install
        for identity in ToolIdentity:
            probe = self._probes.get(identity.value)
            installed = probe is not None and probe.installed
            self.query_one(f"#install-{identity.value}", Button).disabled = (
                installed or not report.npm
            )

    def set_probe(self, tool: str, probe: ProbeResult) -> None:
        self._probes[tool] = probe
        state = self.query_one(f"#state-{tool}", Static)
        if probe.installed:
            state.update(Text(probe.version or "installed", style="green"))
        else:
            state.update(Text("not installed", style="dim"))
        self.query_one(f"#install-{tool}", Button).disabled = probe.installed
        self.query_one(f"#login-{tool}", Button).disabled = not probe.installed

    def set_installing(self, tool: str) -> None:
        self.query_one(f"#state-{tool}", Static).update(
            Text("installing…", style="yellow"),
        )
        self.query_one(f"#install-{tool}", Button).disabled = True

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        action, _, target = button_id.partition("-")
        if not target:
            return
        event.stop()
        if action == "select":
            self.post_message(self.Selected(target))
        elif action == "install" and target in ("node", "homebrew"):
            self.post_message(self.PrerequisiteRequested(target))
        elif action == "install":
            self.post_message(self.InstallRequested(target))
        elif action == "login":
            self.post_message(self.LoginRequested(target))
        elif action == "docs":
            self.post_message(self.DocsRequested(target))
