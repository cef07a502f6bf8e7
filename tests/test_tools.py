"""Tests for tool argument conventions and the tool catalogue."""
from __future__ import annotations

import pytest

from clihub.engine.config import ToolOverride
from clihub.engine.errors import UnknownToolError
from clihub.engine.models import ToolIdentity
from clihub.engine.tools import TOOL_SPECS, ToolCatalog, build_args


MESSAGES = [
    "hello",
    "",
    "quotes \" and ' and `backticks`",
    "$(rm -rf ~); echo $HOME && exit | cat",
    "multi\nline\tmessage",
    "ünïcödé ✓ 漢字",
    "--continue",
]


@pytest.mark.parametrize("tool", list(ToolIdentity))
@pytest.mark.parametrize("message", MESSAGES)
def test_message_is_single_verbatim_argument(tool, message):
    invocation = build_args(tool, message)
    assert invocation is not None
    assert invocation.args.count(message) >= 1
    assert message in invocation.args


def test_claude_arguments():
    invocation = build_args("claude", "hi")
    assert invocation.command == "claude"
    assert invocation.args == ["-p", "hi", "--output-format", "text"]


def test_claude_continuation_adds_exactly_one_flag():
    invocation = build_args("claude", "hi", continuation="session-token")
    assert invocation.args.count("--continue") == 1
    assert invocation.args[:4] == ["-p", "hi", "--output-format", "text"]


def test_empty_continuation_is_ignored():
    assert "--continue" not in build_args("claude", "hi", continuation="").args


def test_gemini_ignores_continuation():
    invocation = build_args("gemini", "hi", continuation="x")
    assert invocation.command == "gemini"
    assert invocation.args == ["-p", "hi", "--output-format", "text"]


def test_codex_uses_exec_subcommand():
    invocation = build_args("codex", "hi", continuation="x")
    assert invocation.command == "codex"
    assert invocation.args == ["exec", "--skip-git-repo-check", "hi"]


@pytest.mark.parametrize("tool", ["cobol", "", "claude-code", None])
def test_unknown_tool_yields_none(tool):
    assert build_args(tool, "hi") is None


def test_tool_names_are_case_insensitive():
    assert build_args(" Gemini ", "hi").command == "gemini"


def test_every_tool_has_a_spec():
    assert set(TOOL_SPECS) == set(ToolIdentity)
    assert TOOL_SPECS[ToolIdentity.CLAUDE].package == "@anthropic-ai/claude-code"
    assert TOOL_SPECS[ToolIdentity.GEMINI].package == "@google/gemini-cli"
    assert TOOL_SPECS[ToolIdentity.CODEX].package == "@openai/codex"


def test_catalog_overrides():
    catalog = ToolCatalog({
        "claude": ToolOverride(command="/opt/claude/bin/claude"),
        "codex": ToolOverride(package="@openai/codex@next"),
    })
    assert catalog.command("claude") == "/opt/claude/bin/claude"
    assert catalog.package("claude") == "@anthropic-ai/claude-code"
    assert catalog.command("codex") == "codex"
    assert catalog.package("codex") == "@openai/codex@next"

    invocation = catalog.invocation("claude", "hi", "token")
    assert invocation.command == "/opt/claude/bin/claude"
    assert invocation.args[-1] == "--continue"


def test_catalog_rejects_unknown_tool():
    catalog = ToolCatalog()
    with pytest.raises(UnknownToolError):
        catalog.invocation("cobol", "hi")
    with pytest.raises(UnknownToolError):
        catalog.command("cobol")
