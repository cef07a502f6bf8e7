"""Main screen — tool sidebar, chat pane and prompt input."""

from __future__ import annotations

import asyncio
import logging

from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Header

from clihub.adapters.bridge import ToolBridge
from clihub.adapters.event_bus import EventBus
from clihub.adapters.events import (
    SessionStarted,
    SessionStopped,
    StreamChunk,
    StreamEnd,
)
from clihub.engine.models import ToolIdentity
from clihub.engine.tools import TOOL_SPECS
from clihub.shared.services.preferences import UserPreferences
from clihub.tui.widgets.conversation import ChatEntry, ChatView
from clihub.tui.widgets.input_bar import InputBar
from clihub.tui.widgets.status_bar import StatusBar
from clihub.tui.widgets.tool_log import ActivityLog
from clihub.tui.widgets.tool_panel import ToolPanel

logger = logging.getLogger(__name__)

# Opaque token; only its presence matters to the argument builder.
CONTINUATION_TOKEN = "continue"


class MainScreen(Screen):
    """Primary workspace: tool list, per-tool chat, input and status."""

    def __init__(
        self,
        bridge: ToolBridge,
        event_bus: EventBus,
        prefs: UserPreferences | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.bridge = bridge
        self.event_bus = event_bus
        self.prefs = prefs or UserPreferences.load()
        self._event_consumer_task: asyncio.Task | None = None
        # tool -> assistant entry currently receiving chunks
        self._pending: dict[str, ChatEntry] = {}
        # tool -> session key of the pending entry, once known
        self._proc_ids: dict[str, str] = {}
        # tool -> number of successful replies in this window
        self._turns: dict[str, int] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="workspace"):
            yield ToolPanel(id="tool-panel")
            with Vertical(id="main-pane"):
                yield ChatView(id="conversation")
                yield ActivityLog(id="tool-log")
        yield InputBar(id="input-bar")
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        tool = self.prefs.last_tool
        cli_args = getattr(self.app, "cli_args", None)
        if cli_args is not None and getattr(cli_args, "tool", None):
            tool = ToolIdentity.parse(cli_args.tool).value
        self.select_tool(tool)

        self._event_consumer_task = asyncio.create_task(
            self._consume_events(), name="event-consumer",
        )
        self.refresh_setup()
        self.query_one(InputBar).focus_input()

    async def on_unmount(self) -> None:
        if self._event_consumer_task:
            self._event_consumer_task.cancel()
            try:
                await self._event_consumer_task
            except asyncio.CancelledError:
                pass
            self._event_consumer_task = None

    # ── Tool selection ──

    @property
    def current_tool(self) -> str:
        return self.query_one(ToolPanel).selected or self.prefs.last_tool

    def is_busy(self, tool: str) -> bool:
        return tool in self._pending

    def select_tool(self, tool: str) -> None:
        self.query_one(ToolPanel).select(tool)
        self.query_one(ChatView).show_tool(tool)
        self.query_one(InputBar).set_busy(self.is_busy(tool))
        self._refresh_status_bar()
        if self.prefs.last_tool != tool:
            self.prefs.last_tool = tool
            self.prefs.save()

    def _refresh_status_bar(self) -> None:
        tool = self.current_tool
        sb = self.query_one(StatusBar)
        sb.tool_name = TOOL_SPECS[ToolIdentity(tool)].display_name
        probe = self.query_one(ToolPanel).probe_for(tool)
        if probe is None:
            sb.version = "—"
        else:
            sb.version = probe.version or ("installed" if probe.installed else "not installed")
        if self.is_busy(tool):
            sb.status = "streaming"
        elif sb.status == "streaming":
            sb.status = "idle"
        self.app.sub_title = sb.tool_name

    def on_tool_panel_selected(self, event: ToolPanel.Selected) -> None:
        self.select_tool(event.tool)

    # ── Setup: probes and installs ──

    @work(exclusive=True, name="refresh-setup")
    async def refresh_setup(self) -> None:
        """Probe prerequisites and every tool, updating the sidebar."""
        panel = self.query_one(ToolPanel)
        tl = self.query_one(ActivityLog)
        sb = self.query_one(StatusBar)

        sb.platform = await self.bridge.get_platform()
        probes = await asyncio.gather(
            *(self.bridge.check_tool(identity) for identity in ToolIdentity)
        )
        for identity, probe in zip(ToolIdentity, probes):
            panel.set_probe(identity.value, probe)
            tl.log_probe(identity.value, probe)

        report = await self.bridge.check_prerequisites()
        panel.set_prerequisites(report)
        tl.log_prerequisites(report)
        self._refresh_status_bar()

    def on_tool_panel_install_requested(self, event: ToolPanel.InstallRequested) -> None:
        self._install_tool(event.tool)

    @work(name="install-tool")
    async def _install_tool(self, tool: str) -> None:
        panel = self.query_one(ToolPanel)
        tl = self.query_one(ActivityLog)
        panel.set_installing(tool)
        tl.log_event(f"Installing {tool}…")

        result = await self.bridge.install_tool(tool)
        tl.log_install(tool, result)
        if not result.success:
            self.notify(result.message, title=f"{tool} install failed", severity="error")
        panel.set_probe(tool, await self.bridge.check_tool(tool))
        self._refresh_status_bar()

    def on_tool_panel_prerequisite_requested(
        self, event: ToolPanel.PrerequisiteRequested,
    ) -> None:
        self._install_prerequisite(event.target)

    @work(exclusive=True, name="install-prerequisite")
    async def _install_prerequisite(self, target: str) -> None:
        tl = self.query_one(ActivityLog)
        tl.log_event(f"Installing {target}…")
        if target == "homebrew":
            result = await self.bridge.install_homebrew()
        else:
            result = await self.bridge.install_node()
        tl.log_install(target, result)
        severity = "information" if result.success else "error"
        self.notify(result.message, title=target, severity=severity)
        if result.success and not result.manual:
            self.refresh_setup()

    def on_tool_panel_login_requested(self, event: ToolPanel.LoginRequested) -> None:
        self._open_login(event.tool)

    @work(name="open-login")
    async def _open_login(self, tool: str) -> None:
        result = await self.bridge.open_external_tool(tool)
        self.query_one(ActivityLog).log_event(
            f"{tool}: {result.message}", error=not result.success,
        )
        if not result.success:
            self.notify(result.message, title="Login", severity="error")

    def on_tool_panel_docs_requested(self, event: ToolPanel.DocsRequested) -> None:
        url = TOOL_SPECS[ToolIdentity(event.tool)].homepage
        self.run_worker(self.bridge.open_url(url), name="open-url")

    # ── Chat ──

    def on_input_bar_submitted(self, event: InputBar.Submitted) -> None:
        tool = self.current_tool
        if self.is_busy(tool):
            self.notify(f"{tool} is still answering", severity="warning")
            return
        chat = self.query_one(ChatView)
        chat.add_user_message(tool, event.text)
        self._pending[tool] = chat.begin_response(tool)
        self._proc_ids.pop(tool, None)
        self.query_one(InputBar).set_busy(True)
        self._refresh_status_bar()
        self._send_message(tool, event.text)

    @work(name="send-message")
    async def _send_message(self, tool: str, text: str) -> None:
        continuation = None
        if self.prefs.continue_conversation and self._turns.get(tool):
            continuation = CONTINUATION_TOKEN

        result = await self.bridge.send_message(tool, text, continuation)

        entry = self._pending.pop(tool, None)
        self._proc_ids.pop(tool, None)
        if entry is not None:
            self.query_one(ChatView).finish_response(entry, result)
        if result.success:
            self._turns[tool] = self._turns.get(tool, 0) + 1
        elif not result.cancelled:
            logger.info("%s turn failed: %s", tool, result.error)

        if tool == self.current_tool:
            self.query_one(InputBar).set_busy(False)
            sb = self.query_one(StatusBar)
            sb.status = "idle" if result.success else (
                "stopped" if result.cancelled else "error"
            )

    def on_input_bar_stop_requested(self) -> None:
        self.request_stop()

    def request_stop(self) -> None:
        """Stop the reply streaming for the selected tool, if any."""
        tool = self.current_tool
        if not self.is_busy(tool):
            return
        self._stop_tool(tool)

    @work(name="stop-tool")
    async def _stop_tool(self, tool: str) -> None:
        await self.bridge.stop_process(tool)

    def clear_transcript(self) -> None:
        tool = self.current_tool
        if self.is_busy(tool):
            self.notify("Stop the running reply first", severity="warning")
            return
        self.query_one(ChatView).clear(tool)
        self._turns.pop(tool, None)

    # ── Push events ──

    async def _consume_events(self) -> None:
        """Apply bridge push events to the chat pane."""
        chat = self.query_one(ChatView)
        tl = self.query_one(ActivityLog)

        async for event in self.event_bus.consume():
            try:
                if isinstance(event, SessionStarted):
                    if event.tool in self._pending:
                        self._proc_ids[event.tool] = event.proc_id
                    tl.log_event(f"{event.proc_id} started")
                elif isinstance(event, StreamChunk):
                    entry = self._pending.get(event.tool)
                    if entry is not None and self._proc_ids.get(event.tool) == event.proc_id:
                        chat.append_chunk(entry, event.text)
                elif isinstance(event, StreamEnd):
                    tl.log_event(f"{event.proc_id} finished")
                elif isinstance(event, SessionStopped):
                    tl.log_event(f"{event.tool}: stopped {event.count} session(s)")
            except Exception:
                logger.exception("Failed to apply %s", event.event_type)
