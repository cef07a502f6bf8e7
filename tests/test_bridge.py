"""Tests for ToolBridge: result conversion and push-event ordering."""
from __future__ import annotations

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from clihub.adapters.bridge import ToolBridge
from clihub.engine.environment import LinuxPlatform
from clihub.engine.errors import SpawnError
from clihub.engine.models import ProbeResult

from conftest import CHUNKED_SCRIPT, ECHO, SLOW_TICK


class Recorder:
    """Async event callback that keeps every event dict."""

    def __init__(self) -> None:
        self.events: list[dict] = []
        self.first_chunk = asyncio.Event()

    async def __call__(self, event: dict) -> None:
        self.events.append(event)
        if event["event"] == "stream_chunk":
            self.first_chunk.set()

    def types(self) -> list[str]:
        return [e["event"] for e in self.events]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def bridge(recorder):
    return ToolBridge(platform=LinuxPlatform(), event_callback=recorder)


def _use_scripts(bridge, make_manager, scripts, command=None):
    bridge.sessions = make_manager(scripts, command=command)
    return bridge.sessions


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX children")


@posix_only
@pytest.mark.asyncio
async def test_send_message_streams_then_ends(bridge, recorder, make_manager):
    _use_scripts(bridge, make_manager, {"claude": CHUNKED_SCRIPT})

    result = await bridge.send_message("claude", "hi")

    assert result.success is True
    assert result.response == "alpha beta gamma"
    types = recorder.types()
    assert types[0] == "session_started"
    assert types[-1] == "stream_end"
    assert types.count("stream_end") == 1
    assert set(types[1:-1]) == {"stream_chunk"}
    text = "".join(e["text"] for e in recorder.events if e["event"] == "stream_chunk")
    assert text == "alpha beta gamma"
    assert all(e["tool"] == "claude" for e in recorder.events)
    assert all(e["proc_id"] == result.proc_id for e in recorder.events)


@posix_only
@pytest.mark.asyncio
async def test_send_message_passes_continuation(bridge, make_manager):
    manager = _use_scripts(bridge, make_manager, {"claude": ECHO})

    await bridge.send_message("claude", "again", continuation="continue")

    assert manager._catalog.calls == [("claude", "again", "continue")]


@posix_only
@pytest.mark.asyncio
async def test_stop_process_halts_delivery(bridge, recorder, make_manager):
    manager = _use_scripts(bridge, make_manager, {"claude": SLOW_TICK})

    task = asyncio.create_task(bridge.send_message("claude", "hi"))
    await asyncio.wait_for(recorder.first_chunk.wait(), timeout=10)

    await bridge.stop_process("claude")
    result = await asyncio.wait_for(task, timeout=10)

    assert result.cancelled is True
    assert result.success is False
    assert manager.active_keys() == []
    types = recorder.types()
    assert "stream_end" not in types
    stopped_at = types.index("session_stopped")
    assert "stream_chunk" not in types[stopped_at:]
    assert recorder.events[stopped_at]["count"] == 1


@pytest.mark.asyncio
async def test_stop_process_without_session_emits_nothing(bridge, recorder):
    await bridge.stop_process("gemini")
    await bridge.stop_process("not-a-tool")
    assert recorder.events == []


@posix_only
@pytest.mark.asyncio
async def test_spawn_failure_resolves_without_stream_events(
    bridge, recorder, make_manager, tmp_path,
):
    _use_scripts(bridge, make_manager, {"codex": ECHO}, command=str(tmp_path / "missing"))

    result = await bridge.send_message("codex", "hi")

    assert result.success is False
    assert result.error
    assert recorder.events == []


@posix_only
@pytest.mark.asyncio
async def test_unspawnable_message_resolves_and_frees_tool(bridge, recorder, make_manager):
    _use_scripts(bridge, make_manager, {"claude": ECHO})

    result = await bridge.send_message("claude", "hello\x00world")

    assert result.success is False
    assert "null byte" in result.error
    assert recorder.events == []

    follow_up = await bridge.send_message("claude", "next")
    assert follow_up.success is True
    assert follow_up.response == "echo: next"


@posix_only
@pytest.mark.asyncio
async def test_busy_tool_resolves_with_error(bridge, make_manager):
    _use_scripts(bridge, make_manager, {"gemini": SLOW_TICK})
    task = asyncio.create_task(bridge.send_message("gemini", "one"))
    await asyncio.sleep(0)
    while not bridge.sessions.is_active("gemini"):
        await asyncio.sleep(0.01)

    second = await bridge.send_message("gemini", "two")

    assert second.success is False
    assert "already running" in second.error
    await bridge.shutdown()
    assert (await asyncio.wait_for(task, timeout=10)).cancelled is True


@pytest.mark.asyncio
async def test_unknown_tool_operations_return_failures(bridge, recorder):
    result = await bridge.send_message("cobol", "hi")
    assert result.success is False
    assert result.error == "Unknown tool: cobol"

    assert await bridge.check_tool("cobol") == ProbeResult(installed=False, version=None)

    install = await bridge.install_tool("cobol")
    assert install.success is False
    assert recorder.events == []


@pytest.mark.asyncio
async def test_failing_event_callback_does_not_break_turn(make_manager):
    if sys.platform == "win32":
        pytest.skip("POSIX children")

    async def broken(event):
        raise RuntimeError("listener crashed")

    bridge = ToolBridge(platform=LinuxPlatform(), event_callback=broken)
    _use_scripts(bridge, make_manager, {"claude": ECHO})

    result = await bridge.send_message("claude", "still works")
    assert result.response == "echo: still works"


@pytest.mark.asyncio
async def test_get_platform(bridge):
    assert await bridge.get_platform() == "linux"


@pytest.mark.asyncio
async def test_check_prerequisites_linux_skips_homebrew(bridge):
    bridge.probe = MagicMock()
    bridge.probe.exists = AsyncMock(side_effect=lambda name: name == "node")
    bridge.probe.version = AsyncMock(return_value="v20.11.0")

    report = await bridge.check_prerequisites()

    assert report.node is True
    assert report.npm is False
    assert report.node_version == "v20.11.0"
    assert report.homebrew is None
    checked = [call.args[0] for call in bridge.probe.exists.call_args_list]
    assert "brew" not in checked


@pytest.mark.asyncio
async def test_check_prerequisites_without_node_skips_version(bridge):
    bridge.probe = MagicMock()
    bridge.probe.exists = AsyncMock(return_value=False)
    bridge.probe.version = AsyncMock()

    report = await bridge.check_prerequisites()

    assert report.node is False and report.npm is False
    bridge.probe.version.assert_not_awaited()


@pytest.mark.asyncio
async def test_open_external_tool_launches_terminal(bridge):
    bridge.runner.launch_detached = MagicMock(return_value=4242)

    result = await bridge.open_external_tool("gemini")

    assert result.success is True
    argv = bridge.runner.launch_detached.call_args.args[0]
    assert argv[0] == "x-terminal-emulator"
    assert "gemini" in argv[-1]


@pytest.mark.asyncio
async def test_open_external_tool_reports_launch_failure(bridge):
    bridge.runner.launch_detached = MagicMock(
        side_effect=SpawnError("x-terminal-emulator", "No such file or directory"),
    )

    result = await bridge.open_external_tool("claude")

    assert result.success is False
    assert "No such file" in result.message


@pytest.mark.asyncio
async def test_open_url_only_opens_web_links(bridge):
    with patch("webbrowser.open", return_value=True) as mock_open:
        await bridge.open_url("https://github.com/openai/codex")
        await bridge.open_url("file:///etc/passwd")
        await bridge.open_url("javascript:alert(1)")

    mock_open.assert_called_once_with("https://github.com/openai/codex")
