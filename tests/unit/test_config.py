"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from sparkchat.config import DEFAULT_BASE_URL, DEFAULT_MODEL, AppConfig, load_config


def _write_config(path: Path, data: dict) -> Path:
    config_file = path / "config.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("GEMINI_API_KEY", "SPARKCHAT_MODEL", "SPARKCHAT_BASE_URL", "SPARKCHAT_VERIFY_SSL"):
        monkeypatch.delenv(var, raising=False)


class TestLoadConfig:
    def test_load_valid_config(self, tmp_path: Path) -> None:
        cfg_file = _write_config(
            tmp_path,
            {
                "ai": {
                    "api_key": "g-test-key",
                    "model": "gemini-2.5-pro",
                    "system_prompt": "Be concise.",
                    "verify_ssl": False,
                },
                "cli": {"max_tool_iterations": 3, "command_timeout": 30, "builtin_tools": False},
                "data_dir": str(tmp_path / "data"),
            },
        )
        config = load_config(cfg_file)
        assert isinstance(config, AppConfig)
        assert config.ai.api_key == "g-test-key"
        assert config.ai.model == "gemini-2.5-pro"
        assert config.ai.system_prompt == "Be concise."
        assert config.ai.verify_ssl is False
        assert config.ai.demo_mode is False
        assert config.cli.max_tool_iterations == 3
        assert config.cli.command_timeout == 30
        assert config.cli.builtin_tools is False
        assert config.data_dir == tmp_path / "data"
        assert config.data_dir.is_dir()

    def test_missing_file_uses_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        config = load_config(tmp_path / "absent.yaml")
        assert config.ai.model == DEFAULT_MODEL
        assert config.ai.base_url == DEFAULT_BASE_URL
        assert config.cli.max_tool_iterations == 10

    def test_no_api_key_is_demo_mode(self, tmp_path: Path) -> None:
        cfg_file = _write_config(tmp_path, {"data_dir": str(tmp_path / "d")})
        config = load_config(cfg_file)
        assert config.ai.api_key == ""
        assert config.ai.demo_mode is True

    def test_env_fallbacks(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("SPARKCHAT_MODEL", "gemini-env")
        monkeypatch.setenv("SPARKCHAT_BASE_URL", "http://localhost:9000/v1beta/")
        cfg_file = _write_config(tmp_path, {"data_dir": str(tmp_path / "d")})
        config = load_config(cfg_file)
        assert config.ai.api_key == "env-key"
        assert config.ai.model == "gemini-env"
        assert config.ai.base_url == "http://localhost:9000/v1beta"

    def test_file_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "file-key"}, "data_dir": str(tmp_path / "d")})
        assert load_config(cfg_file).ai.api_key == "file-key"

    def test_verify_ssl_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPARKCHAT_VERIFY_SSL", "false")
        cfg_file = _write_config(tmp_path, {"data_dir": str(tmp_path / "d")})
        assert load_config(cfg_file).ai.verify_ssl is False

    def test_invalid_integer(self, tmp_path: Path) -> None:
        cfg_file = _write_config(
            tmp_path, {"cli": {"max_tool_iterations": "lots"}, "data_dir": str(tmp_path / "d")}
        )
        with pytest.raises(ValueError, match="max_tool_iterations"):
            load_config(cfg_file)

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(cfg_file)
