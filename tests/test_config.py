"""Tests for engine configuration loading.

This module verifies:
- Built-in defaults
- Lookup order: explicit path, CANONFORGE_CONFIG, ./canonforge.toml
- Unknown keys are rejected
- Per-type discovery limits fall back to the default limit
"""

import pytest
from pydantic import ValidationError

from canonforge.config import DEFAULT_DISCOVERY_LIMITS, EngineConfig, load_config


def write_config(path, body: str):
    path.write_text(body, encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults(self):
        config = EngineConfig()

        assert config.context_radius == 50
        assert config.max_discoveries == 15
        assert config.discovery_limits == DEFAULT_DISCOVERY_LIMITS

    def test_limit_for(self):
        config = EngineConfig(discovery_limits={"npc": 2}, default_discovery_limit=1)

        assert config.limit_for("npc") == 2
        assert config.limit_for("quest") == 1

    def test_log_level_normalized(self):
        assert EngineConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(log_level="chatty")

    def test_frozen(self):
        with pytest.raises(ValidationError):
            EngineConfig().context_radius = 10


class TestLoadConfig:
    def test_explicit_path(self, tmp_path):
        path = write_config(tmp_path / "engine.toml", "[canonforge]\ncontext_radius = 30\nmax_discoveries = 5\n")

        config = load_config(path)

        assert (config.context_radius, config.max_discoveries) == (30, 5)

    def test_env_var(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "env.toml", "[canonforge.discovery_limits]\nnpc = 1\n")
        monkeypatch.setenv("CANONFORGE_CONFIG", str(path))

        assert load_config().limit_for("npc") == 1

    def test_cwd_file(self, tmp_path, monkeypatch):
        write_config(tmp_path / "canonforge.toml", "[canonforge]\nverb_window = 10\n")
        monkeypatch.delenv("CANONFORGE_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_config().verb_window == 10

    def test_no_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CANONFORGE_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_config() == EngineConfig()

    def test_missing_table_gives_defaults(self, tmp_path):
        path = write_config(tmp_path / "other.toml", "[tool]\nname = 'x'\n")
        assert load_config(path) == EngineConfig()

    def test_unknown_key_rejected(self, tmp_path):
        path = write_config(tmp_path / "bad.toml", "[canonforge]\ncanon_threshold = 3\n")

        with pytest.raises(ValidationError):
            load_config(path)
