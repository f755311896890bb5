"""Guardian curation: single adds, batch import with selection, deletes.

Batch commits and bulk deletes fire every write at once and report how many
succeeded; a failed item stays failed and can simply be retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from data.catalog import AddResult, CatalogProtocol
from errors import InvalidInputError
from utils import plural
from youtube.data_api import BatchPage, MetadataResolverProtocol, VideoPreview

logger = logging.getLogger(__name__)

PREVIEW_CAP = 100


@dataclass
class BulkResult:
    succeeded: int = 0
    failed: int = 0

    @property
    def message(self) -> str:
        return f"succeeded: {self.succeeded}, failed: {self.failed}"

    def to_json(self) -> dict:
        return {"succeeded": self.succeeded, "failed": self.failed, "message": self.message}


def _watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


async def _run_all(coros: list) -> BulkResult:
    results = await asyncio.gather(*coros, return_exceptions=True)
    failed = [r for r in results if isinstance(r, BaseException)]
    for err in failed:
        logger.warning("Bulk operation item failed: %s", err)
    return BulkResult(succeeded=len(results) - len(failed), failed=len(failed))


async def add_single(catalog: CatalogProtocol, owner: str, url: str,
                     confirmed: bool = False) -> AddResult:
    """Add one video by URL. Returns a warning result while confirmation is pending."""
    if not url or not url.strip():
        raise InvalidInputError("URL is required")
    return await catalog.add_video(owner, url.strip(), confirmed=confirmed)


class BatchCuration:
    """Preview accumulation and selection for one guardian's batch import."""

    def __init__(self, resolver: MetadataResolverProtocol, cap: int = PREVIEW_CAP):
        self.resolver = resolver
        self.cap = cap
        self._generation = 0
        self._reset()

    def _reset(self) -> None:
        # Pages requested before a reset belong to the discarded preview
        self._generation += 1
        self.url: Optional[str] = None
        self.kind: Optional[str] = None
        self.previews: list[VideoPreview] = []
        self.selected_ids: set[str] = set()
        self.next_page_token: Optional[str] = None
        self.total_results: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.url is not None

    @property
    def can_load_more(self) -> bool:
        return bool(self.next_page_token) and len(self.previews) < self.cap

    def _absorb(self, page: BatchPage) -> None:
        known = {p.video_id for p in self.previews}
        room = self.cap - len(self.previews)
        fresh = [p for p in page.items if p.video_id not in known][:max(room, 0)]
        self.previews.extend(fresh)
        self.next_page_token = page.next_page_token
        if page.total_results is not None:
            self.total_results = page.total_results

    async def start(self, url: str) -> BatchPage:
        """Fetch the first page for a channel/playlist URL, replacing any previous preview."""
        if not url or not url.strip():
            raise InvalidInputError("URL is required")
        generation = self._generation
        page = await self.resolver.fetch_url(url.strip())
        if generation != self._generation:
            logger.debug("Batch preview for %s superseded while loading, dropped", url.strip())
            return page
        self._reset()
        self.url = url.strip()
        self.kind = page.kind
        self._absorb(page)
        logger.info("Batch preview for %s: %d videos (total %s)",
                    page.kind, len(self.previews), self.total_results)
        return page

    async def load_more(self) -> Optional[BatchPage]:
        """Append the next page. No-op at the cap or when the provider has no more pages.

        A page that arrives after cancel, commit or a new start is dropped.
        """
        if not self.active or not self.can_load_more:
            return None
        generation = self._generation
        page = await self.resolver.fetch_url(self.url, page_token=self.next_page_token)
        if generation != self._generation:
            logger.debug("Preview reset while loading more, dropping stale page")
            return None
        self._absorb(page)
        return page

    def toggle(self, video_id: str) -> bool:
        """Flip one preview's selection. Returns the new selected state."""
        if video_id not in {p.video_id for p in self.previews}:
            return False
        if video_id in self.selected_ids:
            self.selected_ids.discard(video_id)
            return False
        self.selected_ids.add(video_id)
        return True

    def select_all(self) -> None:
        self.selected_ids = {p.video_id for p in self.previews}

    def select_none(self) -> None:
        self.selected_ids = set()

    @property
    def selected(self) -> list[VideoPreview]:
        return [p for p in self.previews if p.video_id in self.selected_ids]

    async def commit(self, catalog: CatalogProtocol, owner: str) -> BulkResult:
        """Write every selected preview, pre-confirmed. State is cleared whatever happens."""
        chosen = self.selected
        try:
            result = await _run_all([
                catalog.add_video(owner, _watch_url(p.video_id), confirmed=True)
                for p in chosen
            ])
        finally:
            self._reset()
        logger.info("Batch commit for %s: %d succeeded, %d failed",
                    owner, result.succeeded, result.failed)
        return result

    def cancel(self) -> None:
        self._reset()

    def snapshot(self) -> dict:
        return {
            "active": self.active,
            "type": self.kind,
            "videos": [
                {**p.to_json(), "selected": p.video_id in self.selected_ids}
                for p in self.previews
            ],
            "selectedCount": len(self.selected_ids),
            "totalLoaded": len(self.previews),
            "totalResults": self.total_results,
            "canLoadMore": self.can_load_more,
            "capReached": len(self.previews) >= self.cap,
        }


def delete_prompt(record: dict) -> str:
    return f"Remove \"{record.get('title', 'this video')}\" from the collection?"


def bulk_delete_prompt(count: int) -> str:
    return f"Remove {plural(count, 'video')} from the collection?"


async def delete_videos(catalog: CatalogProtocol, owner: str,
                        record_ids: Iterable[int]) -> tuple[BulkResult, list[dict]]:
    """Delete each record concurrently, then re-read the collection from the catalog."""
    result = await _run_all([catalog.delete_video(owner, rid) for rid in record_ids])
    logger.info("Deleted %d videos for %s (%d failed)", result.succeeded, owner, result.failed)
    return result, await catalog.list_videos(owner)
