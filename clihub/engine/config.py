"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via CLIHUB_* env vars
or a YAML file (see yaml_config.py).
"""
from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# Optional async callback for push events (stream_chunk, stream_end, ...).
# Signature: async def callback(event: dict[str, Any]) -> None
EventCallback = Callable[[dict[str, Any]], Awaitable[None]]


async def fire_event(
    callback: EventCallback | None,
    event: dict[str, Any],
) -> None:
    """Fire an event callback if set, logging and swallowing errors."""
    if callback is None:
        return
    try:
        await callback(event)
    except Exception:
        # Never let a listener break a running session
        logger.exception("Event callback failed for %s", event.get("event"))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive, using %s", name, raw, default)
        return default
    return value


@dataclass
class ToolOverride:
    """Per-tool override of the executable name or npm package."""
    command: str | None = None
    package: str | None = None


@dataclass
class ShellConfig:
    """Tool shell configuration."""

    # Wall-clock bound for probe/version/install helper commands.
    helper_timeout_seconds: float = 120.0
    # Package manager used for global installs.
    npm_command: str = "npm"
    # Extra search-path entries prepended before the platform defaults.
    extra_path: list[str] = field(default_factory=list)
    # Working directory for chat invocations (None = user's home).
    working_dir: str | None = None

    tools: dict[str, ToolOverride] = field(default_factory=dict)

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ShellConfig:
        """Load configuration from CLIHUB_* environment variables."""
        env_vars = {
            k: v for k, v in os.environ.items() if k.startswith("CLIHUB_")
        }
        if env_vars:
            logger.info(
                "ShellConfig.from_env: CLIHUB_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(env_vars.items())),
            )
        else:
            logger.debug("ShellConfig.from_env: no CLIHUB_* env vars set, using defaults")

        extra_path = [
            entry for entry in os.getenv("CLIHUB_EXTRA_PATH", "").split(os.pathsep)
            if entry.strip()
        ]
        config = cls(
            helper_timeout_seconds=_env_float(
                "CLIHUB_HELPER_TIMEOUT", cls.helper_timeout_seconds,
            ),
            npm_command=os.getenv("CLIHUB_NPM", cls.npm_command),
            extra_path=extra_path,
            working_dir=os.getenv("CLIHUB_WORKDIR") or None,
            log_level=os.getenv("CLIHUB_LOG_LEVEL", cls.log_level),
        )
        logger.info(
            "ShellConfig.from_env: helper_timeout=%ss npm=%s workdir=%s log_level=%s",
            config.helper_timeout_seconds, config.npm_command,
            config.working_dir or "~", config.log_level,
        )
        return config

    def resolve_working_dir(self) -> str:
        """Return the chat working directory, defaulting to home."""
        if self.working_dir:
            return os.path.expanduser(self.working_dir)
        return os.path.expanduser("~")
