"""Shared utilities for SafeTube."""

import logging
import re

logger = logging.getLogger(__name__)

# Matches: PT5M30S, PT1H2M3S, PT45S, P1DT2H (days folded into hours)
_ISO_DURATION_RE = re.compile(
    r'^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$',
    re.IGNORECASE,
)

# Touch handsets whose embedded player never reports a full-screen exit
_HANDSET_UA_RE = re.compile(r'iPad|iPhone|iPod')


def parse_iso8601_duration(raw: str | None) -> int | None:
    """Parse an ISO-8601 duration ("PT5M30S") into seconds.

    Returns None for empty or unparsable input.
    """
    if not raw:
        return None
    m = _ISO_DURATION_RE.match(raw.strip())
    if not m or raw.strip().upper() in ("P", "PT"):
        return None
    days, hours, minutes, seconds = (int(g) if g else 0 for g in m.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_duration(seconds) -> str:
    """Format seconds into human readable duration like '5:23' or '1:02:15'."""
    if not seconds:
        return "0:00"
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_iso8601_duration(raw: str | None) -> str:
    """Format an ISO-8601 duration for display: "PT1H2M3S" -> "1:02:03"."""
    return format_duration(parse_iso8601_duration(raw))


def is_touch_handset(user_agent: str | None) -> bool:
    """True for iOS handsets, where pausing is the only full-screen exit signal."""
    return bool(user_agent and _HANDSET_UA_RE.search(user_agent))


def plural(count: int, word: str) -> str:
    """'1 video', '3 videos'."""
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
