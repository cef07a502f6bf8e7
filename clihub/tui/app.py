"""clihub TUI — Textual application class."""

from __future__ import annotations

import logging
from pathlib import Path

from textual.app import App
from textual.css.query import NoMatches

from clihub.adapters.bridge import ToolBridge
from clihub.adapters.event_bus import EventBus
from clihub.engine.config import ShellConfig
from clihub.shared.services.preferences import UserPreferences
from clihub.tui.screens.main import MainScreen

logger = logging.getLogger(__name__)


class ClihubApp(App):
    """Terminal chat window for command-line AI assistants."""

    TITLE = "clihub"
    SUB_TITLE = "CLI assistant hub"
    CSS_PATH = Path("styles/app.tcss")
    cli_args = None  # Set by main() before run()

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+c", "stop_reply", "Stop"),
        ("ctrl+h", "open_help", "Help"),
        ("ctrl+l", "clear_transcript", "Clear"),
        ("ctrl+r", "refresh_tools", "Re-check"),
        ("ctrl+e", "focus_editor", "Input"),
        ("f1", "toggle_tool_log", "Log"),
        ("escape", "blur", "Blur"),
    ]

    def __init__(
        self,
        config: ShellConfig | None = None,
        *,
        bridge: ToolBridge | None = None,
        prefs: UserPreferences | None = None,
    ) -> None:
        super().__init__()
        self.event_bus = EventBus()
        self.bridge = bridge or ToolBridge(
            config, event_callback=self.event_bus.make_callback(),
        )
        if bridge is not None and bridge.event_callback is None:
            bridge.event_callback = self.event_bus.make_callback()
        self.prefs = prefs
        self._shut_down = False

    def on_mount(self) -> None:
        self.push_screen(MainScreen(self.bridge, self.event_bus, self.prefs))

    def _main_screen(self) -> MainScreen | None:
        screen = self.screen
        return screen if isinstance(screen, MainScreen) else None

    def action_focus_editor(self) -> None:
        from clihub.tui.widgets.input_bar import InputBar
        try:
            self.screen.query_one(InputBar).focus_input()
        except NoMatches:
            pass

    def action_toggle_tool_log(self) -> None:
        from clihub.tui.widgets.tool_log import ActivityLog
        try:
            self.screen.query_one(ActivityLog).toggle()
        except NoMatches:
            pass

    def action_stop_reply(self) -> None:
        screen = self._main_screen()
        if screen is not None:
            screen.request_stop()

    def action_clear_transcript(self) -> None:
        screen = self._main_screen()
        if screen is not None:
            screen.clear_transcript()

    def action_refresh_tools(self) -> None:
        screen = self._main_screen()
        if screen is not None:
            screen.refresh_setup()

    def action_open_help(self) -> None:
        from clihub.tui.screens.help import HelpScreen

        self.push_screen(HelpScreen())

    def action_blur(self) -> None:
        self.screen.set_focus(None)

    async def shutdown(self) -> None:
        """Kill live sessions and stop the event consumer. Idempotent."""
        if self._shut_down:
            return
        self._shut_down = True
        await self.bridge.shutdown()
        self.event_bus.close()
        logger.info("clihub shut down")

    async def action_quit(self) -> None:
        await self.shutdown()
        await super().action_quit()

    async def on_unmount(self) -> None:
        await self.shutdown()
