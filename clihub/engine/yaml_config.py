"""YAML configuration loader.

Loads an optional YAML file layered on top of CLIHUB_* env vars.
When no file is present, ShellConfig.from_env() is used unchanged.

Example YAML:
    shell:
      helper_timeout_seconds: 180
      npm_command: /usr/local/bin/npm
      working_dir: ~/projects
      extra_path:
        - ~/.volta/bin
      log_level: DEBUG

    tools:
      claude:
        command: /opt/claude/bin/claude
      codex:
        package: "@openai/codex@latest"
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .config import ShellConfig, ToolOverride
from .errors import UnknownToolError
from .models import ToolIdentity

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Return the per-user config path (~/.clihub/config.yaml)."""
    return Path.home() / ".clihub" / "config.yaml"


def load_yaml_config(
    path: str | Path,
    base: ShellConfig | None = None,
) -> ShellConfig:
    """Load a YAML config file and overlay it on *base*.

    Unknown tool names in the ``tools`` section are logged and skipped.
    Raises FileNotFoundError / yaml.YAMLError for unreadable files.
    """
    path = Path(path)
    config = base or ShellConfig.from_env()
    logger.info(
        "load_yaml_config: attempting to load config from %s (exists=%s)",
        path, path.exists(),
    )
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(
            "load_yaml_config: config file not found at %s (absolute path: %s)",
            path, path.absolute(),
        )
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise

    if not isinstance(raw, dict):
        logger.warning("load_yaml_config: %s is not a mapping; ignoring", path)
        return config

    shell_raw = raw.get("shell") or {}
    if "helper_timeout_seconds" in shell_raw:
        config.helper_timeout_seconds = float(shell_raw["helper_timeout_seconds"])
    if "npm_command" in shell_raw:
        config.npm_command = str(shell_raw["npm_command"])
    if "working_dir" in shell_raw:
        config.working_dir = shell_raw["working_dir"] or None
    if "log_level" in shell_raw:
        config.log_level = str(shell_raw["log_level"]).upper()
    if shell_raw.get("extra_path"):
        # YAML entries come first; env entries keep their relative order
        config.extra_path = [
            str(entry) for entry in shell_raw["extra_path"]
        ] + config.extra_path

    for name, tool_raw in (raw.get("tools") or {}).items():
        try:
            tool = ToolIdentity.parse(name)
        except UnknownToolError:
            logger.warning(
                "Unknown tool '%s' in %s — skipping", name, path,
            )
            continue
        tool_raw = tool_raw or {}
        config.tools[tool.value] = ToolOverride(
            command=tool_raw.get("command"),
            package=tool_raw.get("package"),
        )

    logger.info(
        "Parsed YAML config %s — sections: %s",
        path.name, ", ".join(sorted(raw.keys())) or "(empty)",
    )
    return config


def load_config(path: str | Path | None = None) -> ShellConfig:
    """Build the effective config: env vars, then YAML if present.

    An explicit *path* must exist. Without one, the per-user file is
    used when it exists.
    """
    config = ShellConfig.from_env()
    if path is not None:
        return load_yaml_config(path, base=config)
    auto = default_config_path()
    if auto.is_file():
        logger.info("Auto-discovered config: %s", auto)
        return load_yaml_config(auto, base=config)
    logger.info("No config file found (tried %s); using defaults", auto)
    return config
