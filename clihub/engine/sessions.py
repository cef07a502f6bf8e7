"""Process session manager — spawn, stream, cancel.

Each chat turn runs one tool invocation as a child process. The
manager owns the live-session registry (session key -> session) and
hands callers a SessionStream: a lazy, single-consumer async iterator
of StreamChunk items closed by one StreamComplete marker.

Registry invariant: a session is removed exactly once, on the first
of normal exit, spawn error or cancellation. A removed session is
never read or killed again.

All registry mutation happens on the event loop thread, so there is
no locking.
"""
from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
import signal
import time
from collections.abc import AsyncIterator, Mapping

from .environment import PlatformEnvironment
from .errors import SessionBusyError
from .lifecycle import validate_transition
from .models import (
    InvocationResult,
    SessionState,
    StreamChunk,
    StreamComplete,
    ToolIdentity,
)
from .tools import ToolCatalog

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


class ProcessSession:
    """One in-flight tool invocation."""

    def __init__(self, tool: ToolIdentity, key: str) -> None:
        self.tool = tool
        self.key = key
        self.state = SessionState.SPAWNING
        self.process: asyncio.subprocess.Process | None = None
        self.stdout_parts: list[str] = []
        self.stderr_parts: list[str] = []
        self.started_at = time.monotonic()
        self.result: InvocationResult | None = None

    def transition(self, target: SessionState) -> None:
        validate_transition(self.state, target)
        logger.debug("Session %s: %s -> %s", self.key, self.state.value, target.value)
        self.state = target

    @property
    def stdout_text(self) -> str:
        return "".join(self.stdout_parts)

    @property
    def stderr_text(self) -> str:
        return "".join(self.stderr_parts)

    def kill(self) -> None:
        """Forcibly terminate the child (and its process group on POSIX)."""
        proc = self.process
        if proc is None or proc.returncode is not None:
            return
        try:
            if hasattr(os, "killpg"):
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            pass  # Already exited
        except PermissionError:
            proc.kill()


class SessionStream:
    """Single-consumer stream of a session's output.

    Iterating yields StreamChunk items in the order the child wrote
    them, then exactly one StreamComplete. A cancelled session stops
    yielding immediately and emits no completion marker. A stream
    cannot be iterated twice; start a new session instead.
    """

    def __init__(
        self,
        manager: SessionManager,
        session: ProcessSession,
    ) -> None:
        self._manager = manager
        self._session = session
        self._consumed = False

    @property
    def proc_id(self) -> str:
        return self._session.key

    @property
    def tool(self) -> ToolIdentity:
        return self._session.tool

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def opened(self) -> bool:
        """True once the child process was spawned."""
        return self._session.process is not None

    @property
    def result(self) -> InvocationResult | None:
        """Terminal result, or None while the session is still live."""
        return self._session.result

    def __aiter__(self) -> AsyncIterator[StreamChunk | StreamComplete]:
        if self._consumed:
            raise RuntimeError(
                f"Stream for session {self.proc_id} was already consumed"
            )
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StreamChunk | StreamComplete]:
        session = self._session
        if session.state is SessionState.CANCELLED:
            if session.process is not None:
                await session.process.wait()
            return
        if session.process is None:
            # Spawn failed: nothing was streamed
            assert session.result is not None
            yield StreamComplete(session.result)
            return

        proc = session.process
        assert proc.stdout is not None
        stderr_task = asyncio.create_task(self._drain_stderr(session))
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            cancelled = False
            while True:
                data = await proc.stdout.read(_READ_SIZE)
                if session.state is SessionState.CANCELLED:
                    cancelled = True
                    break
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    session.stdout_parts.append(text)
                    yield StreamChunk(text)
                    if session.state is SessionState.CANCELLED:
                        cancelled = True
                        break
            if cancelled:
                # Reap the killed child; nothing more is delivered
                await proc.wait()
                return

            tail = decoder.decode(b"", final=True)
            if tail:
                session.stdout_parts.append(tail)
                yield StreamChunk(tail)

            returncode = await proc.wait()
            await stderr_task
            if session.state is SessionState.CANCELLED:
                return
            result = self._manager._complete(session, returncode)
            if result is not None:
                yield StreamComplete(result)
        finally:
            if not stderr_task.done():
                stderr_task.cancel()
            if not session.state.is_terminal:
                # Consumer abandoned the stream mid-flight
                logger.info("Stream for %s closed early; cancelling", session.key)
                self._manager._cancel_session(session)

    @staticmethod
    async def _drain_stderr(session: ProcessSession) -> None:
        proc = session.process
        assert proc is not None and proc.stderr is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await proc.stderr.read(_READ_SIZE)
            if not data:
                break
            session.stderr_parts.append(decoder.decode(data))
        session.stderr_parts.append(decoder.decode(b"", final=True))

    async def collect(self) -> InvocationResult:
        """Drain the stream and return its terminal result."""
        async for _ in self:
            pass
        assert self._session.result is not None
        return self._session.result


class SessionManager:
    """Owns the live-session registry for the whole application.

    At most one live session per tool: a second start() for the same
    tool raises SessionBusyError until the first finishes or is
    cancelled.
    """

    def __init__(
        self,
        platform: PlatformEnvironment,
        catalog: ToolCatalog | None = None,
        *,
        working_dir: str | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._platform = platform
        self._catalog = catalog or ToolCatalog()
        self._working_dir = working_dir
        self._base_env = base_env
        self._sessions: dict[str, ProcessSession] = {}

    # ── Registry ──────────────────────────────────────────────

    @staticmethod
    def _prefix(tool: ToolIdentity) -> str:
        return f"{tool.value}:"

    def _new_key(self, tool: ToolIdentity) -> str:
        return f"{self._prefix(tool)}{time.time_ns()}"

    def _deregister(self, session: ProcessSession) -> bool:
        """Remove *session*; False when it was already removed."""
        return self._sessions.pop(session.key, None) is not None

    def active_keys(self, tool: str | ToolIdentity | None = None) -> list[str]:
        """Keys of live sessions, optionally only for *tool*."""
        if tool is None:
            return list(self._sessions)
        prefix = self._prefix(ToolIdentity.parse(tool))
        return [k for k in self._sessions if k.startswith(prefix)]

    def is_active(self, tool: str | ToolIdentity) -> bool:
        return bool(self.active_keys(tool))

    def get(self, key: str) -> ProcessSession | None:
        return self._sessions.get(key)

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(
        self,
        tool: str | ToolIdentity,
        message: str,
        continuation: str | None = None,
    ) -> SessionStream:
        """Spawn *tool* for *message* and return its output stream.

        Raises UnknownToolError before anything is spawned, and
        SessionBusyError when the tool already has a live session.
        Spawn failures are reported through the stream's result.
        """
        identity = ToolIdentity.parse(tool)
        invocation = self._catalog.invocation(identity, message, continuation)
        busy = self.active_keys(identity)
        if busy:
            raise SessionBusyError(identity.value, busy[0])

        session = ProcessSession(identity, self._new_key(identity))
        stream = SessionStream(self, session)

        env = self._platform.build_environment(self._base_env)
        path_key = next((k for k in env if k.upper() == "PATH"), "PATH")
        executable = shutil.which(invocation.command, path=env.get(path_key)) or invocation.command
        cwd = self._working_dir or self._platform.home_dir(env)
        self._sessions[session.key] = session

        logger.info(
            "Starting %s session %s (continuation=%s, cwd=%s)",
            identity.value, session.key, bool(continuation), cwd,
        )
        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *invocation.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=cwd,
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError) as exc:
            # ValueError: argv or env holds a NUL byte
            logger.warning("Failed to spawn %s: %s", invocation.command, exc)
            if self._deregister(session):
                session.transition(SessionState.FAILED)
                session.result = InvocationResult(
                    success=False,
                    error=str(exc),
                    proc_id=session.key,
                )
            return stream

        session.process = proc
        if session.state is SessionState.CANCELLED:
            # cancel() ran while we were spawning
            session.kill()
            return stream
        session.transition(SessionState.RUNNING)
        logger.debug("Session %s running (pid=%s)", session.key, proc.pid)
        return stream

    def _complete(
        self, session: ProcessSession, returncode: int,
    ) -> InvocationResult | None:
        """Deregister after a normal exit and build the terminal result."""
        if not self._deregister(session):
            return None
        stdout = session.stdout_text.strip()
        # Any output counts as success, even with a non-zero exit code
        if returncode == 0 or stdout:
            session.transition(SessionState.COMPLETED)
            result = InvocationResult(
                success=True,
                response=stdout,
                proc_id=session.key,
                exit_code=returncode,
            )
        else:
            session.transition(SessionState.FAILED)
            result = InvocationResult(
                success=False,
                error=session.stderr_text.strip()
                or f"Process exited with code {returncode}",
                proc_id=session.key,
                exit_code=returncode,
            )
        session.result = result
        logger.info(
            "Session %s finished: %s rc=%s in %.1fs",
            session.key, session.state.value, returncode,
            time.monotonic() - session.started_at,
        )
        return result

    def _cancel_session(self, session: ProcessSession) -> bool:
        if not self._deregister(session):
            return False
        session.transition(SessionState.CANCELLED)
        session.kill()
        session.result = InvocationResult(
            success=False,
            error="Cancelled",
            proc_id=session.key,
            cancelled=True,
        )
        logger.info("Cancelled session %s", session.key)
        return True

    def cancel(self, tool: str | ToolIdentity) -> int:
        """Kill and deregister every live session of *tool*.

        Best effort: does not wait for the process to exit. Returns
        the number of sessions cancelled.
        """
        identity = ToolIdentity.parse(tool)
        cancelled = 0
        for key in self.active_keys(identity):
            session = self._sessions.get(key)
            if session is not None and self._cancel_session(session):
                cancelled += 1
        return cancelled

    def shutdown_all(self) -> int:
        """Kill and deregister every live session (application teardown)."""
        cancelled = 0
        for session in list(self._sessions.values()):
            if self._cancel_session(session):
                cancelled += 1
        if cancelled:
            logger.info("Shut down %d live session(s)", cancelled)
        return cancelled
