"""Shared pytest fixtures for SafeTube tests."""

import pytest

from config import Config, WebConfig, YouTubeConfig, DatabaseConfig, GuardianConfig, PlaybackConfig
from data.video_store import VideoStore
from data.guardian_store import GuardianStore


@pytest.fixture
def video_store(tmp_path):
    """VideoStore backed by a temp-dir SQLite file (not :memory: due to Path.mkdir in __init__)."""
    db = tmp_path / "test.db"
    store = VideoStore(db_path=str(db))
    yield store
    store.close()


@pytest.fixture
def guardian_store(video_store):
    """GuardianStore wrapping the test VideoStore for the 'default' guardian."""
    return GuardianStore(video_store, "default")


@pytest.fixture
def sample_config(tmp_path):
    """Minimal Config with safe defaults for testing."""
    return Config(
        web=WebConfig(host="127.0.0.1", port=9999, poll_interval=500),
        youtube=YouTubeConfig(api_key="test-key", page_size=20, preview_cap=100),
        database=DatabaseConfig(path=str(tmp_path / "test.db")),
        guardian=GuardianConfig(id="default", display_name="Parent", pin="1234"),
        playback=PlaybackConfig(pause_debounce_seconds=0.05, resume_rewind_seconds=3.0),
    )


@pytest.fixture
def config_yaml(tmp_path):
    """Write a minimal config.yaml and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text("""\
web:
  host: 0.0.0.0
  port: 8080
  poll_interval: 2000
youtube:
  api_key: "yt-key-123"
  page_size: 25
  preview_cap: 150
database:
  path: "{db_path}"
guardian:
  id: mum
  display_name: Mum
  pin: "4321"
playback:
  pause_debounce_seconds: 2.0
""".format(db_path=str(tmp_path / "cfg_test.db")))
    return cfg
