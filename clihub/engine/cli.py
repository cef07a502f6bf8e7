"""Headless command line for the tool engine.

Usage:
    python -m clihub.engine.cli check
    python -m clihub.engine.cli install gemini
    python -m clihub.engine.cli ask claude "Explain this stack trace"
    python -m clihub.engine.cli ask claude --continue "And the fix?"
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import yaml

from .config import ShellConfig
from .environment import detect_platform
from .errors import ClihubError
from .installer import Installer
from .models import StreamComplete, ToolIdentity
from .probe import ToolProbe
from .runner import CommandRunner
from .sessions import SessionManager
from .tools import ToolCatalog
from .yaml_config import load_config


class Engine:
    """The engine components wired together for one-shot commands."""

    def __init__(self, config: ShellConfig) -> None:
        self.config = config
        self.platform = detect_platform(extra_path=config.extra_path)
        self.catalog = ToolCatalog(config.tools)
        self.runner = CommandRunner(
            self.platform, timeout_seconds=config.helper_timeout_seconds,
        )
        self.probe = ToolProbe(self.runner)
        self.installer = Installer(
            self.runner, self.probe, self.catalog, npm_command=config.npm_command,
        )
        self.sessions = SessionManager(
            self.platform,
            self.catalog,
            working_dir=config.working_dir and config.resolve_working_dir(),
        )


async def _check(engine: Engine) -> int:
    print(f"platform: {engine.platform.name}")
    for name in ("node", "npm"):
        probe = await engine.probe.check(name)
        print(f"{name}: {(probe.version or 'found') if probe.installed else 'missing'}")
    for identity in ToolIdentity:
        probe = await engine.probe.check(engine.catalog.command(identity))
        state = (probe.version or "installed") if probe.installed else "not installed"
        print(f"{identity.value}: {state}")
    return 0


async def _install(engine: Engine, target: str) -> int:
    if target == "node":
        result = await engine.installer.install_node()
    elif target == "homebrew":
        result = await engine.installer.install_homebrew()
    else:
        result = await engine.installer.install(target)
    print(result.message)
    return 0 if result.success else 1


async def _ask(engine: Engine, tool: str, message: str, resume: bool) -> int:
    stream = await engine.sessions.start(
        tool, message, "continue" if resume else None,
    )
    try:
        async for item in stream:
            if not isinstance(item, StreamComplete):
                sys.stdout.write(item.text)
                sys.stdout.flush()
    finally:
        engine.sessions.shutdown_all()

    result = stream.result
    if result is None or result.cancelled:
        return 130
    if not result.response or not result.response.endswith("\n"):
        sys.stdout.write("\n")
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


async def _login(engine: Engine, tool: str) -> int:
    command = engine.catalog.command(tool)
    argv = engine.platform.terminal_command(
        command, engine.platform.build_environment(),
    )
    pid = engine.runner.launch_detached(argv)
    print(f"Opened terminal (pid {pid})")
    return 0


def main(argv: list[str] | None = None) -> None:
    tools = [t.value for t in ToolIdentity]
    parser = argparse.ArgumentParser(
        prog="clihub-engine",
        description="Detect, install and run command-line AI assistants",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (default: ~/.clihub/config.yaml if present)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("check", help="Report prerequisites and installed tools")
    install = sub.add_parser("install", help="Install a tool (or node/homebrew)")
    install.add_argument("target", choices=tools + ["node", "homebrew"])
    ask = sub.add_parser("ask", help="Send one message and stream the reply")
    ask.add_argument("tool", choices=tools)
    ask.add_argument("message")
    ask.add_argument(
        "--continue", dest="resume", action="store_true",
        help="Continue the tool's previous conversation (claude only)",
    )
    login = sub.add_parser("login", help="Open a terminal running the tool")
    login.add_argument("tool", choices=tools)

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        engine = Engine(load_config(args.config))
    except (FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Error: cannot load config: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.command == "check":
        coro = _check(engine)
    elif args.command == "install":
        coro = _install(engine, args.target)
    elif args.command == "ask":
        coro = _ask(engine, args.tool, args.message, args.resume)
    else:
        coro = _login(engine, args.tool)

    try:
        code = asyncio.run(coro)
    except ClihubError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
