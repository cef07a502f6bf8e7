"""Tests for the headless CLI and application logging setup."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from clihub import app as clihub_app
from clihub.engine import cli
from clihub.engine.config import ShellConfig

from conftest import CHUNKED_SCRIPT, ECHO


@pytest.fixture
def engine():
    return cli.Engine(ShellConfig())


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX children")
@pytest.mark.asyncio
async def test_ask_streams_reply_to_stdout(engine, make_manager, capsys):
    engine.sessions = make_manager({"gemini": CHUNKED_SCRIPT})

    code = await cli._ask(engine, "gemini", "hi", resume=False)

    assert code == 0
    assert capsys.readouterr().out == "alpha beta gamma\n"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX children")
@pytest.mark.asyncio
async def test_ask_passes_continue_flag(engine, make_manager):
    engine.sessions = make_manager({"claude": ECHO})

    await cli._ask(engine, "claude", "more", resume=True)

    assert engine.sessions._catalog.calls == [("claude", "more", "continue")]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX children")
@pytest.mark.asyncio
async def test_ask_failure_exit_code(engine, make_manager, capsys):
    script = "import sys; sys.stderr.write('auth required'); sys.exit(1)"
    engine.sessions = make_manager({"codex": script})

    code = await cli._ask(engine, "codex", "hi", resume=False)

    assert code == 1
    assert "auth required" in capsys.readouterr().err


def test_main_rejects_missing_config(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "missing.yaml"), "check"])
    assert excinfo.value.code == 2
    assert "cannot load config" in capsys.readouterr().err


def test_main_rejects_unknown_tool():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["ask", "cobol", "hi"])
    assert excinfo.value.code == 2


def test_configure_logging_writes_rotating_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        log_file = clihub_app.configure_logging("debug", tmp_path / "logs" / "clihub.log")
        logging.getLogger("clihub.test").debug("hello from test")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 2_000_000
        assert handler.backupCount == 5
        content = log_file.read_text()
        assert "DEBUG clihub.test [pid=" in content
        assert "hello from test" in content
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
