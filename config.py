"""Configuration management for SafeTube."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in strings, dicts, and lists.

    Supports both ${VAR} and $VAR patterns.
    """
    if isinstance(value, str):
        # Expand ${VAR} pattern
        pattern = re.compile(r'\$\{([^}]+)\}')
        result = pattern.sub(lambda m: os.environ.get(m.group(1), ''), value)
        # Expand $VAR pattern
        pattern = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')
        result = pattern.sub(lambda m: os.environ.get(m.group(1), ''), result)
        return result
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    poll_interval: int = 1000  # ms between gate state polls on the watch page
    session_secret: str = ""  # auto-generated if not set
    base_url: str = ""  # e.g. http://10.0.0.1:8080

    def __post_init__(self):
        if not self.base_url:
            self.base_url = os.environ.get("SAFETUBE_BASE_URL", "")


@dataclass
class YouTubeConfig:
    """YouTube Data API configuration."""
    api_key: str = ""
    api_base_url: str = "https://www.googleapis.com/youtube/v3"
    page_size: int = 20  # playlist items per page
    preview_cap: int = 100  # max previews accumulated by one batch import
    request_timeout: int = 10  # seconds


@dataclass
class DatabaseConfig:
    """Database configuration."""
    path: str = "db/safetube.db"


@dataclass
class GuardianConfig:
    """Guardian account bootstrapped on first run."""
    id: str = "default"
    display_name: str = "Parent"
    pin: str = ""


@dataclass
class PlaybackConfig:
    """Playback gate timing."""
    pause_debounce_seconds: float = 1.5
    resume_rewind_seconds: float = 3.0


@dataclass
class Config:
    """Main configuration container."""
    web: WebConfig = field(default_factory=WebConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    guardian: GuardianConfig = field(default_factory=GuardianConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from YAML file with environment variable expansion."""
        path = Path(path)
        with open(path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        expanded_config = expand_env_vars(raw_config)

        return cls(
            web=WebConfig(**(expanded_config.get("web") or {})),
            youtube=YouTubeConfig(**(expanded_config.get("youtube") or {})),
            database=DatabaseConfig(**(expanded_config.get("database") or {})),
            guardian=GuardianConfig(**(expanded_config.get("guardian") or {})),
            playback=PlaybackConfig(**(expanded_config.get("playback") or {})),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration directly from environment variables."""
        return cls(
            web=WebConfig(
                host=os.environ.get("SAFETUBE_WEB_HOST", "0.0.0.0"),
                port=int(os.environ.get("SAFETUBE_WEB_PORT", "8080")),
                poll_interval=int(os.environ.get("SAFETUBE_POLL_INTERVAL", "1000")),
                session_secret=os.environ.get("SAFETUBE_SESSION_SECRET", ""),
                base_url=os.environ.get("SAFETUBE_BASE_URL", ""),
            ),
            youtube=YouTubeConfig(
                api_key=os.environ.get("SAFETUBE_YOUTUBE_API_KEY", ""),
                api_base_url=os.environ.get(
                    "SAFETUBE_YOUTUBE_API_URL", "https://www.googleapis.com/youtube/v3"),
                page_size=int(os.environ.get("SAFETUBE_PAGE_SIZE", "20")),
                preview_cap=int(os.environ.get("SAFETUBE_PREVIEW_CAP", "100")),
                request_timeout=int(os.environ.get("SAFETUBE_REQUEST_TIMEOUT", "10")),
            ),
            database=DatabaseConfig(
                path=os.environ.get("SAFETUBE_DB_PATH", "db/safetube.db"),
            ),
            guardian=GuardianConfig(
                id=os.environ.get("SAFETUBE_GUARDIAN_ID", "default"),
                display_name=os.environ.get("SAFETUBE_GUARDIAN_NAME", "Parent"),
                pin=os.environ.get("SAFETUBE_GUARDIAN_PIN", ""),
            ),
            playback=PlaybackConfig(
                pause_debounce_seconds=float(os.environ.get("SAFETUBE_PAUSE_DEBOUNCE", "1.5")),
                resume_rewind_seconds=float(os.environ.get("SAFETUBE_RESUME_REWIND", "3")),
            ),
        )


def load_config(config_path: str | None = None) -> Config:
    """Load configuration from file or environment.

    Tries in order:
    1. Provided config_path
    2. Default paths: config.yaml, config.yml
    3. Environment variables (fallback)
    """
    config: Config | None = None

    if config_path:
        path = Path(config_path)
        if path.exists():
            config = Config.from_yaml(path)
        else:
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in ["config.yaml", "config.yml"]:
            path = Path(default_path)
            if path.exists():
                config = Config.from_yaml(path)
                break

    if config is None:
        config = Config.from_env()

    yt = config.youtube
    if not yt.api_key:
        logger.warning("youtube.api_key is empty: video lookups will fail")
    if not 1 <= yt.page_size <= 50:
        logger.warning("youtube.page_size %d out of range 1..50, using 20", yt.page_size)
        yt.page_size = 20
    if yt.preview_cap < yt.page_size:
        logger.warning("youtube.preview_cap %d below page size, raising to %d",
                       yt.preview_cap, yt.page_size)
        yt.preview_cap = yt.page_size

    if not config.guardian.pin:
        logger.warning("guardian.pin is empty: the admin dashboard and device linking are unprotected")

    return config
