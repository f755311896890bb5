"""Catalog service: the async read/write contract the curation flow and the
playback gate talk to.

Wraps the SQLite VideoStore (calls run in a worker thread so the event loop
never blocks on disk) and the metadata resolver (for adds by URL).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from data.guardian_store import GuardianStore
from errors import InvalidInputError, NotFoundError
from utils import parse_iso8601_duration
from youtube.data_api import MetadataResolverProtocol, VideoPreview
from youtube.urls import resolve_url

logger = logging.getLogger(__name__)

NOT_FOR_KIDS_MESSAGE = (
    "This video is not marked as \"Made for Kids\" by its creator. "
    "Add it to the collection anyway?"
)


@dataclass
class AddResult:
    """Outcome of an add: either the stored record or a warning awaiting confirmation."""
    record: Optional[dict] = None
    warning: bool = False
    message: str = ""
    metadata: Optional[VideoPreview] = None

    def to_json(self) -> dict:
        if self.warning:
            return {
                "warning": True,
                "message": self.message,
                "metadata": self.metadata.to_json() if self.metadata else None,
            }
        return {"video": self.record}


@runtime_checkable
class CatalogProtocol(Protocol):
    async def list_videos(self, owner: str) -> list[dict]: ...
    async def add_video(self, owner: str, url: str, confirmed: bool = False) -> AddResult: ...
    async def delete_video(self, owner: str, record_id: int) -> None: ...
    async def record_watch(self, owner: str, record_id: int) -> None: ...


class Catalog:
    """Guardian-keyed whitelist backed by VideoStore."""

    def __init__(self, store, resolver: MetadataResolverProtocol):
        self.store = store
        self.resolver = resolver

    def _scoped(self, owner: str) -> GuardianStore:
        if not owner:
            raise InvalidInputError("owner is required")
        return GuardianStore(self.store, owner)

    async def list_videos(self, owner: str) -> list[dict]:
        gs = self._scoped(owner)
        return await asyncio.to_thread(gs.list_videos)

    async def get_video(self, owner: str, record_id: int) -> dict:
        gs = self._scoped(owner)
        video = await asyncio.to_thread(gs.get_video, record_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    async def add_video(self, owner: str, url: str, confirmed: bool = False) -> AddResult:
        """Resolve a single-video URL and whitelist it.

        Videos not flagged made-for-kids are held back with a warning unless
        ``confirmed`` is set.
        """
        gs = self._scoped(owner)
        resolved = resolve_url(url)
        if resolved.kind != "video":
            raise InvalidInputError(
                f"That is a {resolved.kind} link. Use batch import to add its videos."
            )

        metadata = await self.resolver.fetch_video(resolved.external_id)
        if not metadata.made_for_kids and not confirmed:
            logger.info("Holding %s for confirmation (not made for kids)", metadata.video_id)
            return AddResult(warning=True, message=NOT_FOR_KIDS_MESSAGE, metadata=metadata)

        record = await asyncio.to_thread(
            gs.add_video,
            metadata.video_id or resolved.external_id,
            metadata.title,
            thumbnail_url=metadata.thumbnail_url,
            duration=parse_iso8601_duration(metadata.duration),
            made_for_kids=metadata.made_for_kids,
        )
        logger.info("Whitelisted %s for guardian %s (record %s)",
                    record["video_id"], owner, record["id"])
        return AddResult(record=record)

    async def delete_video(self, owner: str, record_id: int) -> None:
        gs = self._scoped(owner)
        if not await asyncio.to_thread(gs.delete_video, record_id):
            raise NotFoundError("Video not found")
        logger.info("Removed record %s for guardian %s", record_id, owner)

    async def record_watch(self, owner: str, record_id: int) -> None:
        gs = self._scoped(owner)
        if not await asyncio.to_thread(gs.record_watch, record_id):
            raise NotFoundError("Video not found")
