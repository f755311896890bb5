"""YouTube Data API v3 access: video, playlist and channel metadata.

Quota notes (10,000 units/day free): videos.list, playlistItems.list and
channels.list each cost 1 unit, so a preview page costs 2 units (3-4 for a
channel, which first needs its uploads playlist).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

import httpx

from errors import InvalidInputError, NotFoundError, UpstreamError
from youtube.urls import CHANNEL_ID_RE, Kind, resolve_url

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.googleapis.com/youtube/v3"
PAGE_SIZE = 20
MAX_IDS_PER_CALL = 50  # videos.list limit

# Allowlisted YouTube thumbnail CDN hostnames (single source of truth)
THUMB_ALLOWED_HOSTS = frozenset({
    "i.ytimg.com", "i1.ytimg.com", "i2.ytimg.com", "i3.ytimg.com",
    "i4.ytimg.com", "i9.ytimg.com", "img.youtube.com",
})


def safe_thumbnail(url: Optional[str]) -> Optional[str]:
    """Return the thumbnail URL if it's from an allowlisted host, else None."""
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme == "https" and parsed.hostname in THUMB_ALLOWED_HOSTS:
        return url
    return None


def _pick_thumbnail(snippet: dict) -> Optional[str]:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("medium", "default", "high"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return safe_thumbnail(url)
    return None


@dataclass
class VideoPreview:
    """Display metadata for one video, as shown in a batch preview."""
    video_id: str
    title: str
    thumbnail_url: Optional[str] = None
    duration: str = ""  # ISO 8601, e.g. "PT5M30S"
    made_for_kids: bool = False

    @classmethod
    def from_api_item(cls, item: dict) -> "VideoPreview":
        snippet = item.get("snippet") or {}
        return cls(
            video_id=item.get("id", ""),
            title=snippet.get("title") or "Untitled",
            thumbnail_url=_pick_thumbnail(snippet),
            duration=(item.get("contentDetails") or {}).get("duration") or "",
            made_for_kids=bool((item.get("status") or {}).get("madeForKids", False)),
        )

    def to_json(self) -> dict:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "thumbnailUrl": self.thumbnail_url,
            "duration": self.duration,
            "madeForKids": self.made_for_kids,
        }


@dataclass
class BatchPage:
    kind: Kind
    items: list[VideoPreview] = field(default_factory=list)
    next_page_token: Optional[str] = None
    total_results: Optional[int] = None

    def to_json(self) -> dict:
        body = {
            "type": self.kind,
            "videos": [v.to_json() for v in self.items],
        }
        if self.next_page_token:
            body["nextPageToken"] = self.next_page_token
        if self.total_results is not None:
            body["totalResults"] = self.total_results
        return body


class YouTubeDataClient:
    """Thin async wrapper over the three Data API list endpoints we use."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_API_URL,
                 timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get(self, resource: str, params: dict) -> dict:
        query = {k: v for k, v in params.items() if v is not None}
        query["key"] = self.api_key
        url = f"{self.base_url}/{resource}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=query)
        except httpx.HTTPError as e:
            logger.error("YouTube API %s request failed: %s", resource, e)
            raise UpstreamError(str(e) or "YouTube API request failed") from e

        if resp.status_code >= 400:
            message = _error_message(resp)
            if resp.status_code == 404:
                raise NotFoundError(message)
            logger.error("YouTube API %s returned %d: %s", resource, resp.status_code, message)
            raise UpstreamError(message)
        return resp.json()

    async def list_videos(self, video_ids: list[str]) -> list[dict]:
        """videos.list for up to 50 ids, with snippet, contentDetails and status."""
        if not video_ids:
            return []
        data = await self._get("videos", {
            "part": "snippet,contentDetails,status",
            "id": ",".join(video_ids[:MAX_IDS_PER_CALL]),
        })
        return data.get("items") or []

    async def list_playlist_items(self, playlist_id: str, page_token: Optional[str] = None,
                                  max_results: int = PAGE_SIZE) -> dict:
        return await self._get("playlistItems", {
            "part": "snippet,contentDetails",
            "playlistId": playlist_id,
            "maxResults": max_results,
            "pageToken": page_token or None,
        })

    async def find_channel(self, channel_id: Optional[str] = None, handle: Optional[str] = None,
                           username: Optional[str] = None) -> Optional[dict]:
        """channels.list by id, handle or legacy username. Returns the first item or None."""
        data = await self._get("channels", {
            "part": "id,contentDetails",
            "id": channel_id,
            "forHandle": handle,
            "forUsername": username,
        })
        items = data.get("items") or []
        return items[0] if items else None


def _error_message(resp: httpx.Response) -> str:
    """Pull `error.message` out of a Data API error body, falling back to the status line."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return err["message"]
        if isinstance(err, str) and err:
            return err
    return f"YouTube API error {resp.status_code}"


# ---------------------------------------------------------------------------
# Resolver: URL -> previews
# ---------------------------------------------------------------------------

@runtime_checkable
class MetadataResolverProtocol(Protocol):
    """Protocol for batch metadata lookup, for type hints and test mocks."""

    async def fetch_batch(self, kind: Kind, external_id: str, page_token: Optional[str] = None,
                          channel_form: Optional[str] = None) -> BatchPage: ...
    async def fetch_url(self, url: str, page_token: Optional[str] = None) -> BatchPage: ...
    async def fetch_video(self, video_id: str) -> VideoPreview: ...


class MetadataResolver:
    """Resolves video/playlist/channel ids into pages of VideoPreview."""

    def __init__(self, client: YouTubeDataClient, page_size: int = PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    async def fetch_url(self, url: str, page_token: Optional[str] = None) -> BatchPage:
        resolved = resolve_url(url)
        return await self.fetch_batch(resolved.kind, resolved.external_id, page_token,
                                      channel_form=resolved.channel_form)

    async def fetch_batch(self, kind: Kind, external_id: str, page_token: Optional[str] = None,
                          channel_form: Optional[str] = None) -> BatchPage:
        if kind == "video":
            return BatchPage("video", [await self.fetch_video(external_id)])
        if kind == "playlist":
            return await self._fetch_playlist_page("playlist", external_id, page_token)
        if kind == "channel":
            uploads = await self._uploads_playlist(external_id, channel_form)
            return await self._fetch_playlist_page("channel", uploads, page_token)
        raise InvalidInputError("Unsupported URL type")

    async def fetch_video(self, video_id: str) -> VideoPreview:
        items = await self.client.list_videos([video_id])
        if not items:
            raise NotFoundError("Video not found")
        return VideoPreview.from_api_item(items[0])

    async def _fetch_playlist_page(self, kind: Kind, playlist_id: str,
                                   page_token: Optional[str]) -> BatchPage:
        page = await self.client.list_playlist_items(playlist_id, page_token, self.page_size)
        video_ids = [
            (item.get("contentDetails") or {}).get("videoId")
            for item in page.get("items") or []
        ]
        video_ids = [vid for vid in video_ids if vid]
        items = await self.client.list_videos(video_ids)
        logger.debug("Playlist %s page: %d items, %d with metadata",
                     playlist_id, len(video_ids), len(items))
        return BatchPage(
            kind=kind,
            items=[VideoPreview.from_api_item(item) for item in items],
            next_page_token=page.get("nextPageToken"),
            total_results=(page.get("pageInfo") or {}).get("totalResults"),
        )

    async def _uploads_playlist(self, external_id: str, channel_form: Optional[str]) -> str:
        channel_id = external_id
        if channel_form != "id" and not CHANNEL_ID_RE.match(external_id):
            if channel_form == "handle":
                found = await self.client.find_channel(handle=external_id)
            else:
                found = await self.client.find_channel(username=external_id)
            if found and found.get("id"):
                channel_id = found["id"]
                logger.debug("Resolved channel %r -> %s", external_id, channel_id)

        channel = await self.client.find_channel(channel_id=channel_id)
        uploads = (((channel or {}).get("contentDetails") or {})
                   .get("relatedPlaylists") or {}).get("uploads")
        if not uploads:
            raise NotFoundError("Channel not found or has no videos")
        return uploads
