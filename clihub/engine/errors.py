"""Exception hierarchy for the tool shell engine.

Specific exceptions for each failure mode. The adapters layer
converts all of them into plain result values.
"""
from __future__ import annotations


class ClihubError(Exception):
    """Base exception for all engine errors."""


class UnknownToolError(ClihubError):
    """Requested tool identity is outside the supported set."""
    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Unknown tool: {tool}")


class SpawnError(ClihubError):
    """The OS could not create the child process."""
    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(reason)


class CommandFailedError(ClihubError):
    """A shell helper command exited non-zero."""
    def __init__(
        self,
        command: str,
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command failed (rc={returncode}): {command}"
        )

    @property
    def diagnostic(self) -> str:
        """Captured stderr, falling back to the error text."""
        return self.stderr.strip() or str(self)


class CommandTimeoutError(ClihubError):
    """A shell helper command exceeded its time budget."""
    def __init__(self, command: str, timeout_seconds: float):
        self.command = command
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Command timed out after {timeout_seconds}s: {command}"
        )


class SessionBusyError(ClihubError):
    """A live session already exists for the tool."""
    def __init__(self, tool: str, proc_id: str):
        self.tool = tool
        self.proc_id = proc_id
        super().__init__(
            f"{tool} is already running (session {proc_id}). "
            f"Stop it before sending another message."
        )


class InvalidTransitionError(ClihubError, ValueError):
    """Session state transition not allowed by the lifecycle table."""
