"""Tests for admin/curation.py: single add, batch import, bulk delete."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from admin.curation import (
    BatchCuration, BulkResult, add_single, bulk_delete_prompt, delete_prompt, delete_videos,
)
from data.catalog import AddResult, Catalog
from errors import InvalidInputError, NotFoundError
from youtube.data_api import BatchPage, MetadataResolver, VideoPreview


class PagedResolver:
    """Serves `total` previews in pages of `page_size`; page tokens are offsets."""

    def __init__(self, total: int = 250, page_size: int = 20, kind: str = "channel"):
        self.total = total
        self.page_size = page_size
        self.kind = kind
        self.calls: list = []

    async def fetch_url(self, url, page_token=None):
        self.calls.append((url, page_token))
        start = int(page_token or 0)
        end = min(start + self.page_size, self.total)
        items = [VideoPreview(f"v{i:010d}", f"Video {i}", None, "PT1M", i % 3 != 0)
                 for i in range(start, end)]
        token = str(end) if end < self.total else None
        return BatchPage(self.kind, items, next_page_token=token, total_results=self.total)

    async def fetch_batch(self, kind, external_id, page_token=None, channel_form=None):
        return await self.fetch_url(external_id, page_token)

    async def fetch_video(self, video_id):
        return VideoPreview(video_id, f"Video {video_id}", None, "PT1M", False)


class FlakyCatalog:
    """Catalog stand-in whose writes fail for chosen video ids / record ids."""

    def __init__(self, fail_ids=()):
        self.fail_ids = set(fail_ids)
        self.added: list = []
        self.deleted: list = []

    async def list_videos(self, owner):
        return [{"id": i} for i in range(100) if i not in self.deleted]

    async def add_video(self, owner, url, confirmed=False):
        video_id = url.rsplit("=", 1)[-1]
        if video_id in self.fail_ids:
            raise RuntimeError("write failed")
        self.added.append((owner, video_id, confirmed))
        return AddResult(record={"video_id": video_id})

    async def delete_video(self, owner, record_id):
        if record_id in self.fail_ids:
            raise NotFoundError("Video not found")
        self.deleted.append(record_id)

    async def record_watch(self, owner, record_id):
        pass


def run(coro):
    return asyncio.run(coro)


class TestBulkResult:
    def test_message(self):
        assert BulkResult(3, 1).message == "succeeded: 3, failed: 1"
        assert BulkResult(2, 0).to_json() == {"succeeded": 2, "failed": 0,
                                              "message": "succeeded: 2, failed: 0"}


class TestAddSingle:
    def test_empty_url(self):
        with pytest.raises(InvalidInputError, match="URL is required"):
            run(add_single(FlakyCatalog(), "mum", "   "))

    def test_url_stripped_and_forwarded(self):
        catalog = AsyncMock(spec=Catalog)
        catalog.add_video.return_value = AddResult(record={"id": 1})
        run(add_single(catalog, "mum", "  https://youtu.be/abc  ", confirmed=True))
        catalog.add_video.assert_awaited_once_with("mum", "https://youtu.be/abc", confirmed=True)

    def test_warning_then_confirm_against_real_catalog(self, video_store):
        resolver = AsyncMock(spec=MetadataResolver)
        resolver.fetch_video.return_value = VideoPreview("abc12345678", "Grown-up clip", None, "PT2M", False)
        catalog = Catalog(video_store, resolver)

        first = run(add_single(catalog, "mum", "https://youtu.be/abc12345678"))
        assert first.warning is True
        assert video_store.count_videos("mum") == 0

        second = run(add_single(catalog, "mum", "https://youtu.be/abc12345678", confirmed=True))
        assert second.record["title"] == "Grown-up clip"
        assert video_store.count_videos("mum") == 1


class TestBatchPreview:
    def test_start_loads_first_page(self):
        resolver = PagedResolver()
        curation = BatchCuration(resolver)
        run(curation.start("https://youtube.com/@kids"))
        snap = curation.snapshot()
        assert snap["active"] is True
        assert snap["type"] == "channel"
        assert snap["totalLoaded"] == 20
        assert snap["totalResults"] == 250
        assert snap["canLoadMore"] is True
        assert snap["selectedCount"] == 0
        assert resolver.calls == [("https://youtube.com/@kids", None)]

    def test_load_more_appends_until_cap(self):
        resolver = PagedResolver(total=250)
        curation = BatchCuration(resolver, cap=100)
        run(curation.start("https://youtube.com/@kids"))
        for _ in range(10):
            run(curation.load_more())
        assert len(curation.previews) == 100
        assert curation.can_load_more is False
        assert curation.snapshot()["capReached"] is True
        # 1 start + 4 load-more calls to reach 100; further calls are no-ops
        assert len(resolver.calls) == 5
        assert resolver.calls[1] == ("https://youtube.com/@kids", "20")

    def test_cap_truncates_partial_page(self):
        curation = BatchCuration(PagedResolver(page_size=30), cap=100)
        run(curation.start("u"))
        for _ in range(5):
            run(curation.load_more())
        assert len(curation.previews) == 100

    def test_short_playlist_has_no_more(self):
        curation = BatchCuration(PagedResolver(total=7, kind="playlist"))
        run(curation.start("u"))
        assert curation.can_load_more is False
        assert run(curation.load_more()) is None
        assert curation.snapshot()["capReached"] is False

    def test_duplicate_previews_dropped(self):
        class Repeating(PagedResolver):
            async def fetch_url(self, url, page_token=None):
                page = await super().fetch_url(url, None)
                page.next_page_token = "again"
                return page

        curation = BatchCuration(Repeating())
        run(curation.start("u"))
        run(curation.load_more())
        assert len(curation.previews) == 20

    def test_start_replaces_previous_preview(self):
        curation = BatchCuration(PagedResolver())
        run(curation.start("first"))
        curation.select_all()
        run(curation.start("second"))
        assert curation.url == "second"
        assert curation.selected == []

    def test_start_requires_url(self):
        with pytest.raises(InvalidInputError):
            run(BatchCuration(PagedResolver()).start(""))


class TestSelection:
    def _loaded(self):
        curation = BatchCuration(PagedResolver())
        run(curation.start("u"))
        return curation

    def test_toggle(self):
        curation = self._loaded()
        vid = curation.previews[3].video_id
        assert curation.toggle(vid) is True
        assert [p.video_id for p in curation.selected] == [vid]
        assert curation.toggle(vid) is False
        assert curation.selected == []

    def test_toggle_unknown_ignored(self):
        curation = self._loaded()
        assert curation.toggle("nope") is False
        assert curation.selected == []

    def test_select_all_and_none(self):
        curation = self._loaded()
        curation.select_all()
        assert len(curation.selected) == 20
        assert all(v["selected"] for v in curation.snapshot()["videos"])
        curation.select_none()
        assert curation.snapshot()["selectedCount"] == 0


class TestCommitAndCancel:
    def test_commit_adds_selected_preconfirmed(self):
        curation = BatchCuration(PagedResolver())
        run(curation.start("u"))
        chosen = [p.video_id for p in curation.previews[:5]]
        for vid in chosen:
            curation.toggle(vid)
        catalog = FlakyCatalog()
        result = run(curation.commit(catalog, "mum"))
        assert (result.succeeded, result.failed) == (5, 0)
        assert sorted(v for _, v, _ in catalog.added) == sorted(chosen)
        assert all(confirmed for _, _, confirmed in catalog.added)
        assert curation.active is False
        assert curation.snapshot()["videos"] == []

    def test_partial_failure_reported_and_state_cleared(self):
        curation = BatchCuration(PagedResolver())
        run(curation.start("u"))
        curation.select_all()
        bad = curation.previews[0].video_id
        catalog = FlakyCatalog(fail_ids={bad})
        result = run(curation.commit(catalog, "mum"))
        assert result.succeeded == 19
        assert result.failed == 1
        assert result.message == "succeeded: 19, failed: 1"
        assert curation.active is False

    def test_cancel_writes_nothing(self):
        curation = BatchCuration(PagedResolver())
        run(curation.start("u"))
        curation.select_all()
        curation.cancel()
        assert curation.active is False
        assert curation.selected == []


class HeldResolver(PagedResolver):
    """PagedResolver whose follow-up pages wait until `release` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = None

    async def fetch_url(self, url, page_token=None):
        page = await super().fetch_url(url, page_token)
        if page_token:
            await self.release.wait()
        page.items = [VideoPreview(f"{url}-{p.video_id}", p.title, None, p.duration,
                                   p.made_for_kids) for p in page.items]
        return page


class TestLoadMoreInFlight:
    def _run_with_reset(self, reset):
        async def scenario():
            resolver = HeldResolver()
            resolver.release = asyncio.Event()
            curation = BatchCuration(resolver)
            await curation.start("A")
            pending = asyncio.create_task(curation.load_more())
            await asyncio.sleep(0)
            await reset(curation)
            resolver.release.set()
            stale = await pending
            return curation, stale
        return run(scenario())

    def test_cancel_drops_late_page(self):
        async def cancel(curation):
            curation.cancel()

        curation, stale = self._run_with_reset(cancel)
        assert stale is None
        assert curation.active is False
        assert curation.snapshot()["videos"] == []

    def test_new_start_keeps_only_its_own_videos(self):
        async def restart(curation):
            await curation.start("B")

        curation, stale = self._run_with_reset(restart)
        assert stale is None
        assert curation.url == "B"
        assert len(curation.previews) == 20
        assert all(p.video_id.startswith("B-") for p in curation.previews)

    def test_commit_drops_late_page(self):
        catalog = FlakyCatalog()

        async def commit(curation):
            curation.select_all()
            await curation.commit(catalog, "mum")

        curation, stale = self._run_with_reset(commit)
        assert stale is None
        assert len(catalog.added) == 20
        assert curation.previews == []


class TestDeletes:
    def test_prompts(self):
        assert delete_prompt({"title": "Song"}) == 'Remove "Song" from the collection?'
        assert bulk_delete_prompt(3) == "Remove 3 videos from the collection?"
        assert bulk_delete_prompt(1) == "Remove 1 video from the collection?"

    def test_bulk_delete_one_failure(self):
        catalog = FlakyCatalog(fail_ids={2})
        result, videos = run(delete_videos(catalog, "mum", [1, 2, 3, 4]))
        assert (result.succeeded, result.failed) == (3, 1)
        assert sorted(catalog.deleted) == [1, 3, 4]
        assert {v["id"] for v in videos}.isdisjoint({1, 3, 4})

    def test_bulk_delete_against_real_catalog(self, video_store):
        catalog = Catalog(video_store, AsyncMock(spec=MetadataResolver))
        ids = [video_store.add_video(f"vid{i:08d}", f"V{i}", guardian_id="mum")["id"] for i in range(4)]
        result, videos = run(delete_videos(catalog, "mum", ids[:3] + [999]))
        assert (result.succeeded, result.failed) == (3, 1)
        assert [v["id"] for v in videos] == [ids[3]]
