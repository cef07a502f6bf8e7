"""Supported tool catalogue and argument conventions.

Each tool has a fixed flag convention: a prompt flag plus a
plain-text output flag. The message is always passed as a single
argv element, so no shell quoting ever touches it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import ToolOverride
from .errors import UnknownToolError
from .models import Invocation, ToolIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    """Static description of a supported tool."""
    identity: ToolIdentity
    command: str
    package: str
    display_name: str
    homepage: str


TOOL_SPECS: dict[ToolIdentity, ToolSpec] = {
    ToolIdentity.CLAUDE: ToolSpec(
        identity=ToolIdentity.CLAUDE,
        command="claude",
        package="@anthropic-ai/claude-code",
        display_name="Claude Code",
        homepage="https://docs.anthropic.com/en/docs/claude-code",
    ),
    ToolIdentity.GEMINI: ToolSpec(
        identity=ToolIdentity.GEMINI,
        command="gemini",
        package="@google/gemini-cli",
        display_name="Gemini CLI",
        homepage="https://github.com/google-gemini/gemini-cli",
    ),
    ToolIdentity.CODEX: ToolSpec(
        identity=ToolIdentity.CODEX,
        command="codex",
        package="@openai/codex",
        display_name="Codex CLI",
        homepage="https://github.com/openai/codex",
    ),
}


def _tool_args(
    tool: ToolIdentity, message: str, continuation: str | None,
) -> list[str]:
    if tool is ToolIdentity.CLAUDE:
        args = ["-p", message, "--output-format", "text"]
        if continuation:
            args.append("--continue")
        return args
    if tool is ToolIdentity.GEMINI:
        return ["-p", message, "--output-format", "text"]
    # codex
    return ["exec", "--skip-git-repo-check", message]


def build_args(
    tool: str | ToolIdentity,
    message: str,
    continuation: str | None = None,
    command: str | None = None,
) -> Invocation | None:
    """Build the invocation for *tool* answering *message*.

    Returns None when there is no mapping for *tool*; never raises.
    The continuation token is opaque: only its presence matters.
    """
    try:
        identity = ToolIdentity.parse(tool)
    except UnknownToolError:
        return None
    spec = TOOL_SPECS[identity]
    return Invocation(
        command=command or spec.command,
        args=_tool_args(identity, message, continuation),
    )


class ToolCatalog:
    """TOOL_SPECS with per-user command/package overrides applied."""

    def __init__(self, overrides: dict[str, ToolOverride] | None = None) -> None:
        self._overrides = dict(overrides or {})

    def spec(self, tool: str | ToolIdentity) -> ToolSpec:
        """Return the base spec. Raises UnknownToolError."""
        return TOOL_SPECS[ToolIdentity.parse(tool)]

    def command(self, tool: str | ToolIdentity) -> str:
        spec = self.spec(tool)
        override = self._overrides.get(spec.identity.value)
        if override and override.command:
            return override.command
        return spec.command

    def package(self, tool: str | ToolIdentity) -> str:
        spec = self.spec(tool)
        override = self._overrides.get(spec.identity.value)
        if override and override.package:
            return override.package
        return spec.package

    def invocation(
        self,
        tool: str | ToolIdentity,
        message: str,
        continuation: str | None = None,
    ) -> Invocation:
        """Like build_args() but raises UnknownToolError instead of None."""
        identity = ToolIdentity.parse(tool)
        invocation = build_args(
            identity, message, continuation, command=self.command(identity),
        )
        assert invocation is not None
        return invocation

    def identities(self) -> list[ToolIdentity]:
        return list(TOOL_SPECS)
