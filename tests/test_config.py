"""Tests for configuration loading."""

import pytest
from pathlib import Path

from seedbox.config import load_config

ENV_KEYS = ["SEEDBOX_HOME", "SEEDBOX_LOG_LEVEL", "SEEDBOX_SESSION_ID"]


class TestConfig:
    def test_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for key in ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

        monkeypatch.setattr("seedbox.config._DEFAULT_BASE_DIR", tmp_path / "default-home")

        config = load_config(tmp_path / "missing.toml")
        assert config.base_dir == tmp_path / "default-home"
        assert config.log_level == "WARNING"
        assert config.session_override is None

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SEEDBOX_HOME", str(tmp_path / "store"))
        monkeypatch.setenv("SEEDBOX_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("SEEDBOX_SESSION_ID", "pinned")

        config = load_config()
        assert config.base_dir == tmp_path / "store"
        assert config.log_level == "DEBUG"
        assert config.session_override == "pinned"

    def test_toml_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for key in ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

        toml_path = tmp_path / "seedbox.toml"
        toml_path.write_text(f"""
base_dir = "{tmp_path / 'from-toml'}"
log_level = "INFO"
session_id = "toml-session"
""")
        config = load_config(toml_path)
        assert config.base_dir == tmp_path / "from-toml"
        assert config.log_level == "INFO"
        assert config.session_override == "toml-session"

    def test_toml_in_cwd_is_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for key in ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

        (tmp_path / "seedbox.toml").write_text('log_level = "ERROR"\n')
        assert load_config().log_level == "ERROR"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SEEDBOX_HOME", str(tmp_path / "env-store"))

        toml_path = tmp_path / "seedbox.toml"
        toml_path.write_text(f'base_dir = "{tmp_path / "toml-store"}"\n')
        config = load_config(toml_path)
        assert config.base_dir == tmp_path / "env-store"  # env wins

    def test_home_expanded(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SEEDBOX_HOME", "~/seeds-here")
        assert load_config().base_dir == Path.home() / "seeds-here"
