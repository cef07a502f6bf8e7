"""Installer — idempotent global installs via the package manager.

install() never reinstalls a tool whose command already resolves,
so calling it twice is safe. There is no rollback and no retry.
"""
from __future__ import annotations

import logging

from .errors import ClihubError, CommandFailedError
from .models import InstallResult, ToolIdentity
from .probe import ToolProbe
from .runner import CommandRunner
from .tools import ToolCatalog

logger = logging.getLogger(__name__)

INSTALLED_FALLBACK = "Installed"

HOMEBREW_INSTALL_SCRIPT = (
    '/bin/bash -c "$(curl -fsSL '
    'https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
)


def _diagnostic(exc: ClihubError) -> str:
    if isinstance(exc, CommandFailedError):
        return exc.diagnostic
    return str(exc)


class Installer:
    """Installs supported tools and their prerequisites."""

    def __init__(
        self,
        runner: CommandRunner,
        probe: ToolProbe,
        catalog: ToolCatalog,
        npm_command: str = "npm",
    ) -> None:
        self._runner = runner
        self._probe = probe
        self._catalog = catalog
        self._npm = npm_command

    async def install(self, tool: str | ToolIdentity) -> InstallResult:
        """Install *tool* globally unless its command already exists.

        Raises UnknownToolError for unsupported names; every other
        failure is reported in the returned InstallResult.
        """
        command = self._catalog.command(tool)
        package = self._catalog.package(tool)

        if await self._probe.exists(command):
            version = await self._probe.version(command)
            logger.info("%s already installed (%s)", command, version or "unknown version")
            return InstallResult(
                success=True,
                message=version or INSTALLED_FALLBACK,
                already_installed=True,
                version=version,
            )

        platform = self._runner.platform
        install_cmd = (
            f"{platform.quote(self._npm)} install -g {platform.quote(package)}"
        )
        logger.info("Installing %s: %s", command, install_cmd)
        try:
            await self._runner.run(install_cmd)
        except ClihubError as exc:
            logger.warning("Install of %s failed: %s", package, exc)
            return InstallResult(success=False, message=_diagnostic(exc))

        # Version lookup failing after a good install is not a failure
        version = await self._probe.version(command)
        logger.info("Installed %s (%s)", package, version or "version unknown")
        return InstallResult(
            success=True,
            message=version or INSTALLED_FALLBACK,
            version=version,
        )

    async def install_node(self) -> InstallResult:
        """Install Node.js through Homebrew unless already present."""
        if await self._probe.exists("node"):
            version = await self._probe.version("node")
            return InstallResult(
                success=True,
                message=f"Node.js already installed: {version or 'unknown version'}",
                already_installed=True,
                version=version,
            )
        if not self._runner.platform.has_homebrew:
            return InstallResult(
                success=False,
                message="Automatic Node.js install is only available with Homebrew. "
                        "Install Node.js from https://nodejs.org",
            )
        try:
            await self._runner.run("brew install node")
        except ClihubError as exc:
            logger.warning("brew install node failed: %s", exc)
            return InstallResult(success=False, message=_diagnostic(exc))
        version = await self._probe.version("node")
        return InstallResult(
            success=True,
            message=f"Node.js installed: {version or 'successfully'}",
            version=version,
        )

    async def install_homebrew(self) -> InstallResult:
        """Open the interactive Homebrew installer in a terminal.

        The installer needs a password prompt, so it is handed off to
        the user and reported with ``manual=True``.
        """
        if await self._probe.exists("brew"):
            return InstallResult(
                success=True,
                message="Homebrew already installed",
                already_installed=True,
            )
        platform = self._runner.platform
        if not platform.has_homebrew:
            return InstallResult(
                success=False,
                message=f"Homebrew is not supported on {platform.name}",
            )
        argv = platform.terminal_command(
            HOMEBREW_INSTALL_SCRIPT, platform.build_environment(),
        )
        try:
            self._runner.launch_detached(argv)
        except ClihubError as exc:
            return InstallResult(success=False, message=str(exc))
        return InstallResult(
            success=True,
            message="Homebrew installer opened in Terminal. "
                    "Please complete installation there.",
            manual=True,
        )
