"""Shared fixtures: stand-in tools backed by the running Python interpreter."""
from __future__ import annotations

import os
import sys

import pytest

from clihub.engine.environment import LinuxPlatform, detect_platform
from clihub.engine.models import Invocation, ToolIdentity
from clihub.engine.sessions import SessionManager
from clihub.engine.tools import ToolCatalog


class ScriptCatalog(ToolCatalog):
    """Runs ``python -c <script> <message>`` instead of the real tool.

    *scripts* maps a tool name to its script; the message is the last
    argv element, as with the real argument conventions.
    """

    def __init__(self, scripts: dict[str, str], command: str | None = None) -> None:
        super().__init__()
        self.scripts = scripts
        self.executable = command or sys.executable
        self.calls: list[tuple[str, str, str | None]] = []

    def invocation(self, tool, message, continuation=None):
        identity = ToolIdentity.parse(tool)
        self.calls.append((identity.value, message, continuation))
        script = self.scripts.get(identity.value, "")
        return Invocation(command=self.executable, args=["-c", script, message])


ECHO = "import sys; print('echo: ' + sys.argv[-1])"

CHUNKED_SCRIPT = (
    "import sys, time\n"
    "for part in ('alpha ', 'beta ', 'gamma'):\n"
    "    sys.stdout.write(part); sys.stdout.flush(); time.sleep(0.05)\n"
)

SLOW_TICK = (
    "import sys, time\n"
    "sys.stdout.write('tick\\n'); sys.stdout.flush()\n"
    "time.sleep(30)\n"
)


@pytest.fixture
def platform():
    return detect_platform() if sys.platform == "win32" else LinuxPlatform()


@pytest.fixture
def make_manager(platform, tmp_path):
    """Factory for a SessionManager whose tools run Python scripts."""
    managers: list[SessionManager] = []

    def _make(scripts: dict[str, str], command: str | None = None) -> SessionManager:
        manager = SessionManager(
            platform,
            ScriptCatalog(scripts, command=command),
            working_dir=str(tmp_path),
            base_env=dict(os.environ),
        )
        managers.append(manager)
        return manager

    yield _make
    for manager in managers:
        manager.shutdown_all()
