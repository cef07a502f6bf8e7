"""Platform environment providers.

One PlatformEnvironment variant per host OS, selected once at
startup by detect_platform(). Each variant knows where package
managers drop executables, which shell to run helper commands in,
how to locate an executable and how to open an interactive terminal.

All methods are pure functions of the environment snapshot passed
in; nothing here mutates os.environ.
"""
from __future__ import annotations

import abc
import logging
import os
import shlex
import sys
from collections.abc import Mapping

logger = logging.getLogger(__name__)


class PlatformEnvironment(abc.ABC):
    """Abstract host platform capability."""

    #: Value reported to the presentation layer (matches sys.platform).
    name: str = ""
    path_separator: str = ":"
    path_variable: str = "PATH"
    has_homebrew: bool = False
    posix_shell: bool = True

    def __init__(self, extra_path: list[str] | None = None) -> None:
        self._configured_path = list(extra_path or [])

    @abc.abstractmethod
    def default_path_entries(self, env: Mapping[str, str]) -> list[str]:
        """Conventional install locations for this platform."""

    @abc.abstractmethod
    def default_shell(self) -> str:
        """Native shell used when no override variable is set."""

    @abc.abstractmethod
    def locate_command(self, name: str) -> str:
        """Shell command that succeeds iff *name* is on the search path."""

    @abc.abstractmethod
    def terminal_command(self, command: str, env: Mapping[str, str]) -> list[str]:
        """argv that opens an interactive terminal running *command*."""

    @property
    def shell_variable(self) -> str:
        return "SHELL"

    def home_dir(self, env: Mapping[str, str]) -> str:
        return env.get("HOME") or os.path.expanduser("~")

    def quote(self, value: str) -> str:
        """Quote a single word for this platform's shell."""
        return shlex.quote(value)

    def extra_path_entries(self, env: Mapping[str, str]) -> list[str]:
        """Configured entries followed by the platform defaults."""
        entries = [os.path.expanduser(p) for p in self._configured_path]
        for entry in self.default_path_entries(env):
            if entry not in entries:
                entries.append(entry)
        return entries

    def _find_path_key(self, env: Mapping[str, str]) -> str:
        return self.path_variable

    def build_environment(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return a fresh copy of *base* with the search path augmented.

        The inherited search path is kept in full at the end; every
        other variable is copied unchanged.
        """
        source = dict(os.environ if base is None else base)
        key = self._find_path_key(source)
        original = source.get(key, "")
        parts = self.extra_path_entries(source)
        if original:
            parts.append(original)
        source[key] = self.path_separator.join(parts)
        return source

    def shell(self, base: Mapping[str, str] | None = None) -> str:
        """Shell for helper commands: override variable, else native shell."""
        source = os.environ if base is None else base
        return source.get(self.shell_variable) or self.default_shell()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class MacPlatform(PlatformEnvironment):
    name = "darwin"
    has_homebrew = True

    def default_path_entries(self, env: Mapping[str, str]) -> list[str]:
        return [
            "/opt/homebrew/bin",
            "/usr/local/bin",
            os.path.join(self.home_dir(env), ".npm-global", "bin"),
        ]

    def default_shell(self) -> str:
        return "/bin/zsh"

    def locate_command(self, name: str) -> str:
        return f"which {self.quote(name)}"

    def terminal_command(self, command: str, env: Mapping[str, str]) -> list[str]:
        # AppleScript string literal: escape backslashes and quotes
        inner = f"cd ~ && {command}".replace("\\", "\\\\").replace('"', '\\"')
        script = (
            'tell application "Terminal"\n'
            "  activate\n"
            f'  do script "{inner}"\n'
            "end tell"
        )
        return ["osascript", "-e", script]


class LinuxPlatform(PlatformEnvironment):
    name = "linux"

    def default_path_entries(self, env: Mapping[str, str]) -> list[str]:
        home = self.home_dir(env)
        return [
            "/usr/local/bin",
            os.path.join(home, ".npm-global", "bin"),
            os.path.join(home, ".local", "bin"),
        ]

    def default_shell(self) -> str:
        return "/bin/sh"

    def locate_command(self, name: str) -> str:
        return f"which {self.quote(name)}"

    def terminal_command(self, command: str, env: Mapping[str, str]) -> list[str]:
        shell = self.shell(env)
        # Keep the terminal open after the tool exits
        script = f"cd ~ && {command}; exec {self.quote(shell)}"
        return ["x-terminal-emulator", "-e", shell, "-c", script]


class WindowsPlatform(PlatformEnvironment):
    name = "win32"
    path_separator = ";"
    path_variable = "Path"
    posix_shell = False

    @property
    def shell_variable(self) -> str:
        return "COMSPEC"

    def home_dir(self, env: Mapping[str, str]) -> str:
        return env.get("USERPROFILE") or os.path.expanduser("~")

    def quote(self, value: str) -> str:
        return f'"{value}"' if " " in value else value

    def _find_path_key(self, env: Mapping[str, str]) -> str:
        # Environment keys are case-insensitive on Windows
        for key in env:
            if key.upper() == "PATH":
                return key
        return self.path_variable

    def default_path_entries(self, env: Mapping[str, str]) -> list[str]:
        appdata = env.get("APPDATA") or "\\".join(
            [self.home_dir(env), "AppData", "Roaming"]
        )
        return [
            appdata + "\\npm",
            "C:\\Program Files\\nodejs",
        ]

    def default_shell(self) -> str:
        return "cmd.exe"

    def locate_command(self, name: str) -> str:
        return f"where {self.quote(name)}"

    def terminal_command(self, command: str, env: Mapping[str, str]) -> list[str]:
        return [
            "cmd.exe", "/c", "start", "", "cmd.exe", "/k",
            f"cd /d %USERPROFILE% && {command}",
        ]


_PLATFORMS: dict[str, type[PlatformEnvironment]] = {
    "darwin": MacPlatform,
    "linux": LinuxPlatform,
    "win32": WindowsPlatform,
}


def detect_platform(
    platform: str | None = None,
    extra_path: list[str] | None = None,
) -> PlatformEnvironment:
    """Select the provider for *platform* (default: this host).

    Unrecognised POSIX hosts (BSDs etc.) fall back to the Linux variant.
    """
    key = platform or sys.platform
    cls = _PLATFORMS.get(key)
    if cls is None:
        cls = WindowsPlatform if key.startswith(("win", "cygwin")) else LinuxPlatform
        logger.debug("No dedicated platform provider for %s; using %s", key, cls.__name__)
    provider = cls(extra_path=extra_path)
    logger.info("Platform environment: %r", provider)
    return provider
