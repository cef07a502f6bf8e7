"""Tool bridge — the boundary between the engine and the UI.

Every operation is async and converts engine failures into plain
result values, so nothing raised by the engine reaches the
presentation layer. Streaming output is pushed through the
event callback as ``stream_chunk`` / ``stream_end`` dicts.
"""
from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Mapping
from urllib.parse import urlparse

from clihub.engine.config import EventCallback, ShellConfig, fire_event
from clihub.engine.environment import PlatformEnvironment, detect_platform
from clihub.engine.errors import ClihubError, UnknownToolError
from clihub.engine.installer import Installer
from clihub.engine.models import (
    ActionResult,
    InstallResult,
    InvocationResult,
    PrerequisiteReport,
    ProbeResult,
    StreamComplete,
    ToolIdentity,
)
from clihub.engine.probe import ToolProbe
from clihub.engine.runner import CommandRunner
from clihub.engine.sessions import SessionManager
from clihub.engine.tools import ToolCatalog

logger = logging.getLogger(__name__)


class ToolBridge:
    """Request/response operations exposed to the presentation layer."""

    def __init__(
        self,
        config: ShellConfig | None = None,
        *,
        platform: PlatformEnvironment | None = None,
        event_callback: EventCallback | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config or ShellConfig()
        self.platform = platform or detect_platform(extra_path=self.config.extra_path)
        self.event_callback = event_callback
        self.catalog = ToolCatalog(self.config.tools)
        self.runner = CommandRunner(
            self.platform,
            timeout_seconds=self.config.helper_timeout_seconds,
            base_env=base_env,
        )
        self.probe = ToolProbe(self.runner)
        self.installer = Installer(
            self.runner, self.probe, self.catalog,
            npm_command=self.config.npm_command,
        )
        self.sessions = SessionManager(
            self.platform,
            self.catalog,
            working_dir=self.config.working_dir and self.config.resolve_working_dir(),
            base_env=base_env,
        )

    async def _emit(self, event: str, tool: ToolIdentity, **fields) -> None:
        await fire_event(
            self.event_callback, {"event": event, "tool": tool.value, **fields},
        )

    # ── Setup ────────────────────────────────────────────────

    async def get_platform(self) -> str:
        return self.platform.name

    async def check_prerequisites(self) -> PrerequisiteReport:
        """Report node/npm (and Homebrew on macOS) availability."""
        checks = [self.probe.exists("node"), self.probe.exists("npm")]
        if self.platform.has_homebrew:
            checks.append(self.probe.exists("brew"))
        results = await asyncio.gather(*checks)
        report = PrerequisiteReport(node=results[0], npm=results[1])
        if self.platform.has_homebrew:
            report.homebrew = results[2]
        if report.node:
            report.node_version = await self.probe.version("node")
        logger.info("Prerequisites: %s", report)
        return report

    async def check_tool(self, tool: str | ToolIdentity) -> ProbeResult:
        try:
            command = self.catalog.command(tool)
        except UnknownToolError as exc:
            logger.warning("check_tool: %s", exc)
            return ProbeResult(installed=False, version=None)
        return await self.probe.check(command)

    async def install_tool(self, tool: str | ToolIdentity) -> InstallResult:
        try:
            return await self.installer.install(tool)
        except UnknownToolError as exc:
            logger.warning("install_tool: %s", exc)
            return InstallResult(success=False, message=str(exc))

    async def install_node(self) -> InstallResult:
        return await self.installer.install_node()

    async def install_homebrew(self) -> InstallResult:
        return await self.installer.install_homebrew()

    # ── Chat ─────────────────────────────────────────────────

    async def send_message(
        self,
        tool: str | ToolIdentity,
        message: str,
        continuation: str | None = None,
    ) -> InvocationResult:
        """Run one chat turn, pushing output chunks as they arrive.

        Emits ``stream_chunk`` for every fragment and ``stream_end``
        once after the last one. A turn stopped via stop_process()
        emits nothing further and resolves with ``cancelled=True``.
        """
        try:
            identity = ToolIdentity.parse(tool)
            stream = await self.sessions.start(identity, message, continuation)
        except ClihubError as exc:
            logger.warning("send_message rejected: %s", exc)
            return InvocationResult(success=False, error=str(exc))

        proc_id = stream.proc_id
        if stream.opened:
            await self._emit("session_started", identity, proc_id=proc_id)
        try:
            async for item in stream:
                if isinstance(item, StreamComplete):
                    if stream.opened:
                        await self._emit("stream_end", identity, proc_id=proc_id)
                else:
                    await self._emit(
                        "stream_chunk", identity, proc_id=proc_id, text=item.text,
                    )
        except OSError as exc:
            logger.exception("Reading output of %s failed", stream.proc_id)
            return InvocationResult(
                success=False, error=str(exc), proc_id=stream.proc_id,
            )

        result = stream.result
        assert result is not None
        return result

    async def stop_process(self, tool: str | ToolIdentity) -> None:
        try:
            identity = ToolIdentity.parse(tool)
        except UnknownToolError as exc:
            logger.warning("stop_process: %s", exc)
            return
        count = self.sessions.cancel(identity)
        if count:
            await self._emit("session_stopped", identity, count=count)

    # ── Utilities ────────────────────────────────────────────

    async def open_external_tool(self, tool: str | ToolIdentity) -> ActionResult:
        """Open an interactive terminal running *tool* (login flows)."""
        try:
            command = self.catalog.command(tool)
            argv = self.platform.terminal_command(
                command, self.platform.build_environment(),
            )
            self.runner.launch_detached(argv)
        except ClihubError as exc:
            logger.warning("open_external_tool failed: %s", exc)
            return ActionResult(success=False, message=str(exc))
        return ActionResult(success=True, message="Authentication started in Terminal")

    async def open_url(self, url: str) -> None:
        """Open *url* in the default browser (http/https only)."""
        if urlparse(url).scheme not in ("http", "https"):
            logger.warning("Refusing to open non-web URL: %s", url)
            return
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            logger.warning("No browser available to open %s", url)

    async def shutdown(self) -> None:
        """Kill every live session. Called once at application teardown."""
        self.sessions.shutdown_all()
