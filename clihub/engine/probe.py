"""Tool probe — read-only presence/version checks.

Absence is a normal result, never an exception. A single failed
attempt means "not available"; the probe does not distinguish
"not installed" from "installed but erroring".
"""
from __future__ import annotations

import logging

from .errors import ClihubError
from .models import ProbeResult
from .runner import CommandRunner

logger = logging.getLogger(__name__)


class ToolProbe:
    """Checks whether executables exist and what version they report."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    async def exists(self, command: str) -> bool:
        """True iff the platform locate command succeeds for *command*."""
        try:
            await self._runner.run(self._runner.platform.locate_command(command))
        except ClihubError as exc:
            logger.debug("exists(%s) -> False (%s)", command, exc)
            return False
        return True

    async def version(self, command: str) -> str | None:
        """First line of ``<command> --version``, or None on failure."""
        quoted = self._runner.platform.quote(command)
        try:
            output = await self._runner.run(f"{quoted} --version")
        except ClihubError as exc:
            logger.debug("version(%s) -> None (%s)", command, exc)
            return None
        lines = output.stdout.strip().splitlines()
        if not lines:
            return None
        return lines[0].strip() or None

    async def check(self, command: str) -> ProbeResult:
        """exists() then version() when present."""
        if not await self.exists(command):
            return ProbeResult(installed=False, version=None)
        return ProbeResult(installed=True, version=await self.version(command))
