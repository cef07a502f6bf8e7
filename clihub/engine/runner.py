"""Timeout-bounded shell helper.

Used by the probe and installer. Chat invocations do NOT go through
here; they are spawned directly by the session manager and run until
exit or cancellation.
"""
from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass

from .environment import PlatformEnvironment
from .errors import CommandFailedError, CommandTimeoutError, SpawnError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


@dataclass
class CommandOutput:
    stdout: str
    stderr: str


class CommandRunner:
    """Runs shell command lines in the platform shell with a timeout."""

    def __init__(
        self,
        platform: PlatformEnvironment,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self.platform = platform
        self.timeout_seconds = timeout_seconds
        self._base_env = base_env

    async def run(self, command: str, timeout: float | None = None) -> CommandOutput:
        """Run *command* and return its decoded output.

        Raises:
            SpawnError: the shell itself could not be started.
            CommandFailedError: non-zero exit status.
            CommandTimeoutError: exceeded the time budget (process killed).
        """
        budget = self.timeout_seconds if timeout is None else timeout
        env = self.platform.build_environment(self._base_env)
        shell_kwargs = {}
        if self.platform.posix_shell:
            shell_kwargs["executable"] = self.platform.shell(self._base_env)

        logger.debug("Running helper command: %s (timeout=%ss)", command, budget)
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                **shell_kwargs,
            )
        except OSError as exc:
            logger.warning("Could not start shell for %s: %s", command, exc)
            raise SpawnError(command, str(exc)) from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=budget,
            )
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
            logger.warning("Helper command timed out after %ss: %s", budget, command)
            raise CommandTimeoutError(command, budget) from None

        stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
        stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")
        if proc.returncode != 0:
            logger.debug(
                "Helper command failed (rc=%s): %s stderr=%s",
                proc.returncode, command, stderr.strip()[:200],
            )
            raise CommandFailedError(command, proc.returncode or -1, stdout, stderr)
        return CommandOutput(stdout=stdout, stderr=stderr)

    def launch_detached(self, argv: list[str]) -> int:
        """Start *argv* in its own session without waiting for it.

        Used for terminal windows and installers that outlive the
        request. Returns the child pid. Raises SpawnError.
        """
        env = self.platform.build_environment(self._base_env)
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=env,
                start_new_session=True,
            )
        except OSError as exc:
            logger.warning("Could not launch %s: %s", argv[0], exc)
            raise SpawnError(argv[0], str(exc)) from exc
        logger.info("Launched detached %s (pid=%s)", argv[0], proc.pid)
        return proc.pid
