"""Tests for env-var and YAML configuration."""
from __future__ import annotations

import os

import pytest
import yaml

from clihub.engine import yaml_config
from clihub.engine.config import ShellConfig
from clihub.engine.yaml_config import load_config, load_yaml_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CLIHUB_"):
            monkeypatch.delenv(key)


def test_defaults():
    config = ShellConfig.from_env()
    assert config.helper_timeout_seconds == 120.0
    assert config.npm_command == "npm"
    assert config.extra_path == []
    assert config.working_dir is None
    assert config.tools == {}
    assert config.log_level == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CLIHUB_HELPER_TIMEOUT", "30")
    monkeypatch.setenv("CLIHUB_NPM", "pnpm")
    monkeypatch.setenv("CLIHUB_EXTRA_PATH", os.pathsep.join(["/opt/a", "", "/opt/b"]))
    monkeypatch.setenv("CLIHUB_WORKDIR", "~/work")
    monkeypatch.setenv("CLIHUB_LOG_LEVEL", "DEBUG")

    config = ShellConfig.from_env()

    assert config.helper_timeout_seconds == 30.0
    assert config.npm_command == "pnpm"
    assert config.extra_path == ["/opt/a", "/opt/b"]
    assert config.resolve_working_dir() == os.path.expanduser("~/work")
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["2m", "", "-5", "0"])
def test_bad_helper_timeout_falls_back_to_default(monkeypatch, caplog, raw):
    monkeypatch.setenv("CLIHUB_HELPER_TIMEOUT", raw)

    with caplog.at_level("WARNING", logger="clihub.engine.config"):
        config = ShellConfig.from_env()

    assert config.helper_timeout_seconds == 120.0
    if raw:
        assert "CLIHUB_HELPER_TIMEOUT" in caplog.text


def test_working_dir_defaults_to_home():
    assert ShellConfig().resolve_working_dir() == os.path.expanduser("~")


def test_yaml_overlay(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIHUB_EXTRA_PATH", "/from/env")
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "shell": {
            "helper_timeout_seconds": 45,
            "npm_command": "/usr/local/bin/npm",
            "extra_path": ["~/.volta/bin"],
            "log_level": "debug",
        },
        "tools": {
            "claude": {"command": "/opt/claude"},
            "Codex": {"package": "@openai/codex@latest"},
            "cobol": {"command": "cobc"},
        },
    }))

    config = load_yaml_config(path)

    assert config.helper_timeout_seconds == 45.0
    assert config.npm_command == "/usr/local/bin/npm"
    assert config.extra_path == ["~/.volta/bin", "/from/env"]
    assert config.log_level == "DEBUG"
    assert config.tools["claude"].command == "/opt/claude"
    assert config.tools["codex"].package == "@openai/codex@latest"
    assert "cobol" not in config.tools


def test_yaml_empty_or_non_mapping_keeps_base(tmp_path):
    base = ShellConfig(npm_command="yarn")
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")

    assert load_yaml_config(empty, base=base).npm_command == "yarn"
    assert load_yaml_config(listing, base=base).npm_command == "yarn"


def test_yaml_errors_propagate(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("shell: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        load_yaml_config(broken)
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "missing.yaml")


def test_load_config_auto_discovery(tmp_path, monkeypatch):
    auto = tmp_path / "config.yaml"
    monkeypatch.setattr(yaml_config, "default_config_path", lambda: auto)

    assert load_config().npm_command == "npm"

    auto.write_text("shell:\n  npm_command: bun\n")
    assert load_config().npm_command == "bun"


def test_load_config_explicit_path_must_exist(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
