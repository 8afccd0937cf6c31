"""Configuration loader: YAML file with environment variable fallbacks."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class AIConfig:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    system_prompt: str = ""
    verify_ssl: bool = True
    connect_timeout: float = 10.0

    @property
    def demo_mode(self) -> bool:
        """Without a key the client runs a scripted offline conversation."""
        return not self.api_key


@dataclass
class CliConfig:
    builtin_tools: bool = True
    max_tool_iterations: int = 10
    command_timeout: int = 120
    debug_log: bool = False


@dataclass
class AppConfig:
    ai: AIConfig = field(default_factory=AIConfig)
    cli: CliConfig = field(default_factory=CliConfig)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".sparkchat")


def _get_config_path(data_dir: Path | None = None) -> Path:
    if data_dir:
        return data_dir / "config.yaml"
    return Path.home() / ".sparkchat" / "config.yaml"


def _as_bool(value: Any) -> bool:
    return str(value).lower() not in ("false", "0", "no", "off")


def _as_int(value: Any, key: str, path: Path) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be an integer in {path}, got {value!r}") from None


def load_config(config_path: Path | None = None) -> AppConfig:
    raw: dict[str, Any] = {}
    path = config_path or _get_config_path()

    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}")

    ai_raw = raw.get("ai", {}) or {}
    verify_ssl_raw = ai_raw.get("verify_ssl", os.environ.get("SPARKCHAT_VERIFY_SSL", "true"))
    try:
        connect_timeout = float(ai_raw.get("connect_timeout", 10.0))
    except (TypeError, ValueError):
        raise ValueError(f"'ai.connect_timeout' must be a number in {path}") from None

    ai = AIConfig(
        api_key=ai_raw.get("api_key") or os.environ.get("GEMINI_API_KEY", ""),
        model=ai_raw.get("model") or os.environ.get("SPARKCHAT_MODEL", DEFAULT_MODEL),
        base_url=(ai_raw.get("base_url") or os.environ.get("SPARKCHAT_BASE_URL", DEFAULT_BASE_URL)).rstrip("/"),
        system_prompt=ai_raw.get("system_prompt", ""),
        verify_ssl=_as_bool(verify_ssl_raw),
        connect_timeout=connect_timeout,
    )

    cli_raw = raw.get("cli", {}) or {}
    cli_config = CliConfig(
        builtin_tools=_as_bool(cli_raw.get("builtin_tools", True)),
        max_tool_iterations=_as_int(cli_raw.get("max_tool_iterations", 10), "cli.max_tool_iterations", path),
        command_timeout=_as_int(cli_raw.get("command_timeout", 120), "cli.command_timeout", path),
        debug_log=_as_bool(cli_raw.get("debug_log", False)),
    )

    data_dir = Path(os.path.expanduser(raw.get("data_dir", "~/.sparkchat")))
    data_dir.mkdir(parents=True, exist_ok=True)
    try:
        data_dir.chmod(stat.S_IRWXU)  # 0700
        if path.exists():
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0600
    except OSError:
        pass  # May fail on Windows or non-owned files

    return AppConfig(ai=ai, cli=cli_config, data_dir=data_dir)
