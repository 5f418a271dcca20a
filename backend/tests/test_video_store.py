"""
Video Store Test Suite for Tubely

VideoStore is exercised against a mocked Motor collection; MongoDB errors
must surface as StorageError.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest

from pymongo.errors import PyMongoError

from tubely.core.errors import StorageError
from tubely.models.video import Video
from tubely.services.video_store import VideoStore


def document(**overrides) -> dict:
    doc = {
        "_id": "6f1c1d7e-3a52-4d5e-9a4b-8d0f6b2c9e11",
        "user_id": "user-1",
        "title": "Boots",
        "description": "",
        "thumbnail_url": None,
        "video_url": "portrait/" + "0" * 64 + ".mp4",
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
        "updated_at": datetime(2026, 1, 2, tzinfo=UTC),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def collection() -> Mock:
    collection = Mock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.replace_one = AsyncMock(return_value=Mock(matched_count=1))
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def store(collection: Mock) -> VideoStore:
    return VideoStore(collection)


@pytest.mark.unit
class TestVideoStore:
    async def test_get_missing(self, store: VideoStore, collection: Mock) -> None:
        assert await store.get_video("nope") is None
        collection.find_one.assert_awaited_once_with({"_id": "nope"})

    async def test_get_existing(self, store: VideoStore, collection: Mock) -> None:
        collection.find_one.return_value = document()

        video = await store.get_video("6f1c1d7e-3a52-4d5e-9a4b-8d0f6b2c9e11")

        assert video.id == "6f1c1d7e-3a52-4d5e-9a4b-8d0f6b2c9e11"
        assert video.video_url.startswith("portrait/")

    async def test_create_writes_id_alias(self, store: VideoStore, collection: Mock) -> None:
        video = Video(user_id="user-1", title="Boots")

        await store.create_video(video)

        written = collection.insert_one.await_args.args[0]
        assert written["_id"] == video.id
        assert "id" not in written

    async def test_update_replaces_document(self, store: VideoStore, collection: Mock) -> None:
        video = Video.from_document(document())
        video.video_url = "landscape/" + "f" * 64 + ".mp4"

        await store.update_video(video)

        selector, replacement = collection.replace_one.await_args.args
        assert selector == {"_id": video.id}
        assert replacement["video_url"] == video.video_url

    async def test_update_of_vanished_record(self, store: VideoStore, collection: Mock) -> None:
        collection.replace_one.return_value = Mock(matched_count=0)

        with pytest.raises(StorageError):
            await store.update_video(Video.from_document(document()))

    async def test_mongo_errors_become_storage_errors(
        self, store: VideoStore, collection: Mock
    ) -> None:
        collection.replace_one.side_effect = PyMongoError("connection reset")

        with pytest.raises(StorageError, match="Couldn't update video") as exc_info:
            await store.update_video(Video.from_document(document()))
        assert exc_info.value.status_code == 500

    async def test_list_sorted_newest_first(self, store: VideoStore, collection: Mock) -> None:
        cursor = Mock()
        cursor.sort.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[document(), document(_id="other-id")])
        collection.find.return_value = cursor

        videos = await store.list_videos("user-1")

        collection.find.assert_called_once_with({"user_id": "user-1"})
        cursor.sort.assert_called_once_with("created_at", -1)
        assert [v.id for v in videos] == ["6f1c1d7e-3a52-4d5e-9a4b-8d0f6b2c9e11", "other-id"]

    async def test_delete(self, store: VideoStore, collection: Mock) -> None:
        await store.delete_video("abc")
        collection.delete_one.assert_awaited_once_with({"_id": "abc"})
