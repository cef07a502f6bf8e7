"""Tests for CommandRunner using the real platform shell."""
from __future__ import annotations

import os
import sys

import pytest

from clihub.engine.environment import LinuxPlatform
from clihub.engine.errors import CommandFailedError, CommandTimeoutError, SpawnError
from clihub.engine.runner import CommandRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell")


@pytest.fixture
def runner():
    env = {"PATH": os.environ.get("PATH", "/usr/bin:/bin"), "HOME": os.path.expanduser("~")}
    return CommandRunner(LinuxPlatform(), timeout_seconds=10, base_env=env)


@pytest.mark.asyncio
async def test_run_returns_stdout(runner):
    output = await runner.run("echo hello")
    assert output.stdout == "hello\n"
    assert output.stderr == ""


@pytest.mark.asyncio
async def test_run_sees_augmented_path(runner):
    output = await runner.run('echo "$PATH"')
    assert output.stdout.strip().endswith(os.environ.get("PATH", "/usr/bin:/bin"))
    assert "/usr/local/bin" in output.stdout


@pytest.mark.asyncio
async def test_nonzero_exit_raises_with_diagnostic(runner):
    with pytest.raises(CommandFailedError) as excinfo:
        await runner.run("echo oops >&2; exit 3")
    assert excinfo.value.returncode == 3
    assert excinfo.value.diagnostic == "oops"


@pytest.mark.asyncio
async def test_diagnostic_falls_back_to_message(runner):
    with pytest.raises(CommandFailedError) as excinfo:
        await runner.run("exit 1")
    assert "rc=1" in excinfo.value.diagnostic


@pytest.mark.asyncio
async def test_timeout_kills_command(runner):
    with pytest.raises(CommandTimeoutError) as excinfo:
        await runner.run("sleep 5", timeout=0.2)
    assert excinfo.value.timeout_seconds == 0.2


@pytest.mark.asyncio
async def test_missing_shell_raises_spawn_error(tmp_path):
    env = {"PATH": "/usr/bin:/bin", "SHELL": str(tmp_path / "no-shell")}
    runner = CommandRunner(LinuxPlatform(), base_env=env)
    with pytest.raises(SpawnError):
        await runner.run("echo hi")


def test_launch_detached_missing_program_raises(runner, tmp_path):
    with pytest.raises(SpawnError):
        runner.launch_detached([str(tmp_path / "no-such-terminal")])


def test_launch_detached_returns_pid(runner):
    pid = runner.launch_detached([sys.executable, "-c", "pass"])
    assert pid > 0
