"""Core data models for the tool shell.

All dataclasses and enums. Single source of truth
to avoid circular imports.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnknownToolError


class ToolIdentity(str, Enum):
    """Supported command-line assistants."""
    CLAUDE = "claude"
    GEMINI = "gemini"
    CODEX = "codex"

    @classmethod
    def parse(cls, value: str | ToolIdentity) -> ToolIdentity:
        """Coerce a raw name into a ToolIdentity.

        Raises UnknownToolError for names outside the supported set.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownToolError(str(value)) from None


class SessionState(str, Enum):
    """Session lifecycle states. See lifecycle.py for transition rules."""
    SPAWNING = "spawning"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SessionState.COMPLETED,
            SessionState.FAILED,
            SessionState.CANCELLED,
        )


@dataclass(frozen=True)
class Invocation:
    """Executable name plus argv tail for one tool run."""
    command: str
    args: list[str]


@dataclass
class InvocationResult:
    """Terminal outcome of a session. Produced exactly once."""
    success: bool
    response: str | None = None
    error: str | None = None
    proc_id: str | None = None
    exit_code: int | None = None
    cancelled: bool = False


@dataclass
class ProbeResult:
    """Presence/version of an external executable."""
    installed: bool
    version: str | None = None


@dataclass
class InstallResult:
    """Outcome of an install request."""
    success: bool
    message: str
    already_installed: bool = False
    version: str | None = None
    # True when the installer was handed off to an interactive terminal
    manual: bool = False


@dataclass
class ActionResult:
    """Outcome of a fire-and-forget UI action (e.g. opening a terminal)."""
    success: bool
    message: str = ""


@dataclass
class PrerequisiteReport:
    """Node/npm availability. ``homebrew`` is only populated on macOS."""
    node: bool
    npm: bool
    node_version: str | None = None
    homebrew: bool | None = None


@dataclass
class StreamChunk:
    """A fragment of tool stdout, in arrival order."""
    text: str


@dataclass
class StreamComplete:
    """Completion marker closing a SessionStream."""
    result: InvocationResult
