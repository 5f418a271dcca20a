"""
Video metadata store backed by the MongoDB ``videos`` collection.

The store owns persistence of Video records. Concurrency safety is MongoDB's
document-level atomicity; the store keeps no state of its own.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from tubely.core.errors import StorageError
from tubely.models.video import Video


logger = logging.getLogger(__name__)


class VideoStore:
    """
    CRUD access to video records.

    Args:
        collection: Motor collection holding video documents.

    Example:
        ```python
        store = VideoStore(get_db_client().get_videos_collection())
        video = await store.get_video(video_id)
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def create_video(self, video: Video) -> Video:
        try:
            await self.collection.insert_one(video.to_document())
        except PyMongoError as e:
            logger.exception("Failed to insert video", extra={"video_id": video.id})
            raise StorageError("Couldn't create video") from e

        logger.info("Created video record", extra={"video_id": video.id, "user_id": video.user_id})
        return video

    async def get_video(self, video_id: str) -> Video | None:
        """Return the record or None if it does not exist."""
        try:
            document = await self.collection.find_one({"_id": video_id})
        except PyMongoError as e:
            logger.exception("Failed to load video", extra={"video_id": video_id})
            raise StorageError("Couldn't get video") from e

        if document is None:
            return None
        return Video.from_document(document)

    async def list_videos(self, user_id: str) -> list[Video]:
        """All records owned by ``user_id``, newest first."""
        try:
            cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.exception("Failed to list videos", extra={"user_id": user_id})
            raise StorageError("Couldn't retrieve videos") from e

        return [Video.from_document(document) for document in documents]

    async def update_video(self, video: Video) -> None:
        """
        Replace the stored record with ``video``.

        Raises:
            StorageError: If the write fails or the record no longer exists.
        """
        try:
            result = await self.collection.replace_one({"_id": video.id}, video.to_document())
        except PyMongoError as e:
            logger.exception("Failed to update video", extra={"video_id": video.id})
            raise StorageError("Couldn't update video") from e

        if result.matched_count == 0:
            raise StorageError(f"Video {video.id} disappeared before it could be updated")

        logger.info("Updated video record", extra={"video_id": video.id})

    async def delete_video(self, video_id: str) -> None:
        try:
            await self.collection.delete_one({"_id": video_id})
        except PyMongoError as e:
            logger.exception("Failed to delete video", extra={"video_id": video_id})
            raise StorageError("Couldn't delete video") from e

        logger.info("Deleted video record", extra={"video_id": video_id})
