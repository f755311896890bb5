"""Tests for data/catalog.py: async catalog service over a real VideoStore."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from data.catalog import NOT_FOR_KIDS_MESSAGE, Catalog, CatalogProtocol
from errors import InvalidInputError, NotFoundError
from youtube.data_api import MetadataResolver, VideoPreview


def _mock_resolver(made_for_kids: bool = True):
    """AsyncMock satisfying MetadataResolverProtocol."""
    mock = AsyncMock(spec=MetadataResolver)
    mock.fetch_video.side_effect = lambda vid: VideoPreview(
        video_id=vid,
        title=f"Title {vid}",
        thumbnail_url=f"https://i.ytimg.com/vi/{vid}/mqdefault.jpg",
        duration="PT3M32S",
        made_for_kids=made_for_kids,
    )
    return mock


@pytest.fixture
def catalog(video_store):
    return Catalog(video_store, _mock_resolver())


def test_catalog_satisfies_protocol(catalog):
    assert isinstance(catalog, CatalogProtocol)


class TestAddVideo:
    def test_kids_video_added(self, catalog, video_store):
        result = asyncio.run(catalog.add_video("mum", "https://youtu.be/dQw4w9WgXcQ"))
        assert result.warning is False
        assert result.record["video_id"] == "dQw4w9WgXcQ"
        assert result.record["duration"] == 212
        assert result.record["made_for_kids"] is True
        assert result.to_json() == {"video": result.record}
        assert video_store.count_videos("mum") == 1

    def test_not_for_kids_held_for_confirmation(self, video_store):
        catalog = Catalog(video_store, _mock_resolver(made_for_kids=False))
        result = asyncio.run(catalog.add_video("mum", "https://youtu.be/dQw4w9WgXcQ"))
        assert result.warning is True
        assert result.message == NOT_FOR_KIDS_MESSAGE
        assert result.to_json()["metadata"]["title"] == "Title dQw4w9WgXcQ"
        assert video_store.count_videos("mum") == 0

    def test_not_for_kids_confirmed(self, video_store):
        catalog = Catalog(video_store, _mock_resolver(made_for_kids=False))
        result = asyncio.run(catalog.add_video("mum", "https://youtu.be/dQw4w9WgXcQ", confirmed=True))
        assert result.warning is False
        assert result.record["made_for_kids"] is False
        assert video_store.count_videos("mum") == 1

    def test_re_add_returns_existing(self, catalog, video_store):
        first = asyncio.run(catalog.add_video("mum", "https://youtu.be/dQw4w9WgXcQ"))
        second = asyncio.run(catalog.add_video("mum", "https://www.youtube.com/watch?v=dQw4w9WgXcQ"))
        assert second.record["id"] == first.record["id"]
        assert video_store.count_videos("mum") == 1

    def test_playlist_url_rejected(self, catalog):
        with pytest.raises(InvalidInputError, match="playlist link"):
            asyncio.run(catalog.add_video("mum", "https://youtube.com/playlist?list=PL1"))
        catalog.resolver.fetch_video.assert_not_called()

    def test_invalid_url(self, catalog):
        with pytest.raises(InvalidInputError):
            asyncio.run(catalog.add_video("mum", "https://example.com"))

    def test_owner_required(self, catalog):
        with pytest.raises(InvalidInputError, match="owner"):
            asyncio.run(catalog.add_video("", "https://youtu.be/dQw4w9WgXcQ"))

    def test_resolver_not_found_propagates(self, video_store):
        resolver = _mock_resolver()
        resolver.fetch_video.side_effect = NotFoundError("Video not found")
        catalog = Catalog(video_store, resolver)
        with pytest.raises(NotFoundError):
            asyncio.run(catalog.add_video("mum", "https://youtu.be/gone"))


class TestReadsAndWrites:
    def test_list_scoped_to_owner(self, catalog, video_store):
        video_store.add_video("mine0000001", "Mine", guardian_id="mum")
        video_store.add_video("theirs00001", "Theirs", guardian_id="dad")
        videos = asyncio.run(catalog.list_videos("mum"))
        assert [v["video_id"] for v in videos] == ["mine0000001"]

    def test_get_video(self, catalog, video_store):
        v = video_store.add_video("mine0000001", "Mine", guardian_id="mum")
        assert asyncio.run(catalog.get_video("mum", v["id"]))["title"] == "Mine"
        with pytest.raises(NotFoundError):
            asyncio.run(catalog.get_video("dad", v["id"]))

    def test_delete(self, catalog, video_store):
        v = video_store.add_video("mine0000001", "Mine", guardian_id="mum")
        asyncio.run(catalog.delete_video("mum", v["id"]))
        assert video_store.count_videos("mum") == 0
        with pytest.raises(NotFoundError):
            asyncio.run(catalog.delete_video("mum", v["id"]))

    def test_record_watch(self, catalog, video_store):
        v = video_store.add_video("mine0000001", "Mine", guardian_id="mum")
        asyncio.run(catalog.record_watch("mum", v["id"]))
        assert video_store.get_video(v["id"], "mum")["watch_count"] == 1
        with pytest.raises(NotFoundError):
            asyncio.run(catalog.record_watch("dad", v["id"]))
