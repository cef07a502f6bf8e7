"""clihub — main application entry point."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import yaml

from clihub.engine.models import ToolIdentity

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"


def default_log_file() -> Path:
    return Path.home() / ".clihub" / "logs" / "clihub.log"


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> Path:
    """Route all logging to a rotating file. Returns the log path.

    The terminal belongs to the TUI, so nothing is written to stderr.
    """
    log_file = log_file or default_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    return log_file


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="clihub",
        description="clihub — chat window for command-line AI assistants",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (default: ~/.clihub/config.yaml if present)",
    )
    parser.add_argument(
        "--tool", choices=[t.value for t in ToolIdentity],
        help="Tool selected at startup (default: last used)",
    )
    parser.add_argument(
        "--log-file", metavar="PATH",
        help="Log file path (default: ~/.clihub/logs/clihub.log)",
    )
    args = parser.parse_args()

    from clihub.engine.yaml_config import load_config

    try:
        config = load_config(args.config)
    except (FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Error: cannot load config: {exc}", file=sys.stderr)
        sys.exit(2)

    log_file = configure_logging(
        config.log_level,
        Path(args.log_file) if args.log_file else None,
    )
    logging.getLogger(__name__).info(
        "Starting clihub cwd=%s config=%s log=%s",
        Path.cwd(), args.config or "<auto>", log_file,
    )

    from clihub.tui.app import ClihubApp

    app = ClihubApp(config)
    app.cli_args = args
    app.run()


if __name__ == "__main__":
    main()
