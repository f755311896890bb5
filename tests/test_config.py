"""Tests for config.py: loading, env var expansion, validation."""

import logging

import pytest

from config import Config, expand_env_vars, load_config, WebConfig


class TestExpandEnvVars:
    def test_dollar_brace_syntax(self, monkeypatch):
        monkeypatch.setenv("TEST_VAR", "hello")
        assert expand_env_vars("${TEST_VAR}") == "hello"

    def test_dollar_prefix_syntax(self, monkeypatch):
        monkeypatch.setenv("MY_VAR", "world")
        assert expand_env_vars("$MY_VAR") == "world"

    def test_missing_var_becomes_empty(self, monkeypatch):
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        assert expand_env_vars("${NONEXISTENT_VAR}") == ""

    def test_nested_dict_and_list(self, monkeypatch):
        monkeypatch.setenv("KEY", "abc123")
        assert expand_env_vars({"youtube": {"api_key": "${KEY}"}}) == {"youtube": {"api_key": "abc123"}}
        assert expand_env_vars(["${KEY}", "literal"]) == ["abc123", "literal"]

    def test_non_string_passthrough(self):
        assert expand_env_vars(42) == 42
        assert expand_env_vars(True) is True
        assert expand_env_vars(None) is None


class TestConfigFromYaml:
    def test_load_basic_yaml(self, config_yaml):
        cfg = Config.from_yaml(config_yaml)
        assert cfg.web.port == 8080
        assert cfg.web.poll_interval == 2000
        assert cfg.youtube.api_key == "yt-key-123"
        assert cfg.youtube.page_size == 25
        assert cfg.guardian.id == "mum"
        assert cfg.guardian.pin == "4321"
        assert cfg.playback.pause_debounce_seconds == 2.0
        assert cfg.playback.resume_rewind_seconds == 3.0

    def test_missing_sections_use_defaults(self, tmp_path):
        cfg_file = tmp_path / "sparse.yaml"
        cfg_file.write_text("web:\n  port: 8181\nplayback:\n")
        cfg = Config.from_yaml(cfg_file)
        assert cfg.web.port == 8181
        assert cfg.database.path == "db/safetube.db"
        assert cfg.guardian.id == "default"
        assert cfg.playback.pause_debounce_seconds == 1.5

    def test_env_var_expansion_in_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("YT_KEY", "env_key_val")
        cfg_file = tmp_path / "env_config.yaml"
        cfg_file.write_text('youtube:\n  api_key: "${YT_KEY}"\n')
        cfg = Config.from_yaml(cfg_file)
        assert cfg.youtube.api_key == "env_key_val"


class TestConfigFromEnv:
    def test_defaults(self, monkeypatch):
        for var in ["SAFETUBE_WEB_HOST", "SAFETUBE_WEB_PORT", "SAFETUBE_YOUTUBE_API_KEY",
                    "SAFETUBE_GUARDIAN_PIN", "SAFETUBE_BASE_URL"]:
            monkeypatch.delenv(var, raising=False)
        cfg = Config.from_env()
        assert cfg.web.host == "0.0.0.0"
        assert cfg.web.port == 8080
        assert cfg.youtube.api_key == ""
        assert cfg.youtube.page_size == 20
        assert cfg.guardian.pin == ""

    def test_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("SAFETUBE_WEB_PORT", "9090")
        monkeypatch.setenv("SAFETUBE_YOUTUBE_API_KEY", "k")
        monkeypatch.setenv("SAFETUBE_GUARDIAN_PIN", "0000")
        monkeypatch.setenv("SAFETUBE_PAUSE_DEBOUNCE", "2.5")
        cfg = Config.from_env()
        assert cfg.web.port == 9090
        assert cfg.youtube.api_key == "k"
        assert cfg.guardian.pin == "0000"
        assert cfg.playback.pause_debounce_seconds == 2.5


class TestLoadConfig:
    def test_load_from_path(self, config_yaml):
        cfg = load_config(str(config_yaml))
        assert cfg.guardian.display_name == "Mum"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/path/config.yaml")

    def test_fallback_to_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)  # No config.yaml present
        cfg = load_config(None)
        assert isinstance(cfg, Config)

    def test_page_size_out_of_range_reset(self, tmp_path, caplog):
        cfg_file = tmp_path / "bad_page.yaml"
        cfg_file.write_text('youtube:\n  api_key: "k"\n  page_size: 500\n')
        with caplog.at_level(logging.WARNING):
            cfg = load_config(str(cfg_file))
        assert cfg.youtube.page_size == 20
        assert "out of range" in caplog.text

    def test_preview_cap_raised_to_page_size(self, tmp_path):
        cfg_file = tmp_path / "cap.yaml"
        cfg_file.write_text('youtube:\n  api_key: "k"\n  page_size: 30\n  preview_cap: 10\n')
        cfg = load_config(str(cfg_file))
        assert cfg.youtube.preview_cap == 30

    def test_empty_api_key_warns(self, tmp_path, caplog):
        cfg_file = tmp_path / "nokey.yaml"
        cfg_file.write_text("web:\n  port: 8080\n")
        with caplog.at_level(logging.WARNING):
            load_config(str(cfg_file))
        assert "api_key is empty" in caplog.text
        assert "guardian.pin is empty" in caplog.text


class TestWebConfig:
    def test_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("SAFETUBE_BASE_URL", "http://10.0.0.1:8080")
        cfg = WebConfig()
        assert cfg.base_url == "http://10.0.0.1:8080"

    def test_base_url_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("SAFETUBE_BASE_URL", "http://10.0.0.1:8080")
        cfg = WebConfig(base_url="http://custom:9090")
        assert cfg.base_url == "http://custom:9090"
