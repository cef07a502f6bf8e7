"""Tool detection, installation and process streaming engine."""
from .config import ShellConfig
from .environment import PlatformEnvironment, detect_platform
from .errors import (
    ClihubError,
    CommandFailedError,
    CommandTimeoutError,
    SessionBusyError,
    SpawnError,
    UnknownToolError,
)
from .installer import Installer
from .models import (
    InstallResult,
    InvocationResult,
    PrerequisiteReport,
    ProbeResult,
    SessionState,
    StreamChunk,
    StreamComplete,
    ToolIdentity,
)
from .probe import ToolProbe
from .runner import CommandRunner
from .sessions import SessionManager, SessionStream
from .tools import ToolCatalog, build_args

__all__ = [
    "ShellConfig",
    "PlatformEnvironment",
    "detect_platform",
    "ClihubError",
    "CommandFailedError",
    "CommandTimeoutError",
    "SessionBusyError",
    "SpawnError",
    "UnknownToolError",
    "Installer",
    "InstallResult",
    "InvocationResult",
    "PrerequisiteReport",
    "ProbeResult",
    "SessionState",
    "StreamChunk",
    "StreamComplete",
    "ToolIdentity",
    "ToolProbe",
    "CommandRunner",
    "SessionManager",
    "SessionStream",
    "ToolCatalog",
    "build_args",
]
