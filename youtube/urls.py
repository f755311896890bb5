"""YouTube URL classification: video, channel or playlist."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import parse_qs, urlparse

from errors import InvalidInputError

Kind = Literal["video", "channel", "playlist"]
ChannelForm = Literal["id", "handle", "username"]

SHORT_LINK_HOSTS = frozenset({"youtu.be", "www.youtu.be"})

_CHANNEL_PREFIXES = ("/channel/", "/@", "/c/")

# Canonical channel IDs are "UC" + 22 url-safe base64 chars
CHANNEL_ID_RE = re.compile(r'^UC[a-zA-Z0-9_-]{22}$')


@dataclass(frozen=True)
class ResolvedUrl:
    kind: Kind
    external_id: str
    channel_form: Optional[ChannelForm] = None


def _first_param(query: dict, name: str) -> Optional[str]:
    values = query.get(name)
    if values and values[0].strip():
        return values[0].strip()
    return None


def resolve_url(url: str) -> ResolvedUrl:
    """Classify a YouTube URL. Raises InvalidInputError when it matches no known shape."""
    if not url or not url.strip():
        raise InvalidInputError("URL is required")
    raw = url.strip()
    if "://" not in raw:
        raw = "https://" + raw
    try:
        parsed = urlparse(raw)
    except ValueError:
        raise InvalidInputError("Invalid YouTube URL")
    if not parsed.hostname:
        raise InvalidInputError("Invalid YouTube URL")

    query = parse_qs(parsed.query)
    path = parsed.path or "/"

    playlist_id = _first_param(query, "list")
    if playlist_id:
        return ResolvedUrl("playlist", playlist_id)

    if path.startswith(_CHANNEL_PREFIXES):
        parts = [p for p in path.split("/") if p]
        if path.startswith("/@"):
            form = "handle"
        elif len(parts) >= 2:
            form = "id" if parts[0] == "channel" else "username"
        else:
            raise InvalidInputError("Invalid YouTube URL")
        channel = parts[-1].lstrip("@")
        if not channel:
            raise InvalidInputError("Invalid YouTube URL")
        return ResolvedUrl("channel", channel, form)

    video_id = _first_param(query, "v")
    if video_id:
        return ResolvedUrl("video", video_id)
    if parsed.hostname.lower() in SHORT_LINK_HOSTS:
        remainder = path.lstrip("/")
        if remainder:
            return ResolvedUrl("video", remainder)

    raise InvalidInputError("Invalid YouTube URL")
