"""App-state caches: YT script proxy, gate sessions, batch previews."""

import hashlib
import logging
import re
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

from config import PlaybackConfig
from gate.remote import GateRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# YouTube script proxy
# ---------------------------------------------------------------------------

YT_SCRIPT_TTL = 24 * 3600
YT_IFRAME_API_URL = "https://www.youtube.com/iframe_api"
WIDGET_PROXY_PATH = r"\\/api\\/yt-widget-api.js"

_SCRIPT_URL_RE = re.compile(r"(var\s+scriptUrl\s*=\s*)'([^']+)'")
_WIDGET_HOSTS = frozenset({"www.youtube.com", "youtube.com", "s.ytimg.com", "www.google.com"})


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


def _widget_url(loader: str) -> Optional[str]:
    """The widget script URL embedded in the loader, if it points at a known YouTube host."""
    match = _SCRIPT_URL_RE.search(loader)
    if not match:
        logger.warning("No scriptUrl in the IFrame API loader; serving it unmodified")
        return None
    url = match.group(2).replace("\\/", "/")
    host = urlparse(url).hostname
    if host not in _WIDGET_HOSTS:
        logger.error("Widget script host %s is not a YouTube host, not proxying it", host)
        return None
    return url


async def fetch_yt_scripts(state, transport: httpx.AsyncBaseTransport = None):
    """Refresh the cached IFrame API loader and widget script.

    The loader is rewritten so the browser pulls the widget script through
    /api/yt-widget-api.js instead of straight from YouTube. A failed refresh
    keeps whatever was cached before.
    """
    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            loader_resp = await client.get(YT_IFRAME_API_URL)
            loader_resp.raise_for_status()
            loader = loader_resp.text

            widget_url = _widget_url(loader)
            widget = None
            if widget_url:
                loader = _SCRIPT_URL_RE.sub(r"\1'" + WIDGET_PROXY_PATH + "'", loader)
                widget_resp = await client.get(widget_url)
                widget_resp.raise_for_status()
                widget = widget_resp.text
    except httpx.HTTPError as e:
        if getattr(state, "yt_iframe_api_cache", None) is None:
            logger.error("Could not fetch the YouTube IFrame API and nothing is cached: %s", e)
        else:
            logger.warning("YouTube IFrame API refresh failed, keeping cached copy: %s", e)
        return

    state.yt_widget_api_url = widget_url
    state.yt_iframe_api_cache = loader
    logger.info("Cached IFrame API loader (sha256 %s)", _digest(loader))
    if widget is not None:
        state.yt_widget_api_cache = widget
        logger.info("Cached widget API script (sha256 %s)", _digest(widget))
    state.yt_cache_time = time.monotonic()


def yt_cache_stale(state) -> bool:
    fetched = getattr(state, "yt_cache_time", 0.0)
    return not fetched or time.monotonic() - fetched > YT_SCRIPT_TTL


# ---------------------------------------------------------------------------
# App state initialization
# ---------------------------------------------------------------------------

def init_app_state(state, playback_config: PlaybackConfig = None):
    """Initialize per-process state on app.state. Called by main.py after setting deps."""
    # YouTube script cache
    state.yt_iframe_api_cache = None
    state.yt_widget_api_cache = None
    state.yt_widget_api_url = None
    state.yt_cache_time = 0.0
    # Playback gate sessions (per device)
    pb = playback_config or PlaybackConfig()
    state.gate_registry = GateRegistry(
        pause_debounce=pb.pause_debounce_seconds,
        resume_rewind=pb.resume_rewind_seconds,
    )
    # Batch import previews (per guardian + device)
    state.curations = {}
