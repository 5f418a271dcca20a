"""
Tubely Upload Service Module

Orchestrates the video upload pipeline:

1. Check the caller owns the target record (404 / 403 before any body work)
2. Validate the declared size and media type (nothing written on rejection)
3. Stream the upload to a staged file under the assets root with aiofiles
4. Remux the staged file for fast start (ffmpeg)
5. Classify the remuxed file's geometry (ffprobe)
6. Store the remuxed file under ``<geometry>/<64 hex>.mp4``
7. Persist the object key on the record and return it with a signed URL

Every local file the pipeline creates is owned by an ``async with`` scope,
so it is removed on success, on failure and on cancellation alike. The
stored object key and the key written to the record are the same value.

Thumbnails follow the same ownership and validation steps but are kept on
local disk and served from the ``/assets`` mount.
"""

import contextlib
import logging

from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

from fastapi import UploadFile

from tubely.config import Settings
from tubely.core.errors import ForbiddenError, NotFoundError, StorageError
from tubely.core.storage import StorageClient
from tubely.models.video import Video
from tubely.services.media_processing import FastStartRemuxer, GeometryClassifier
from tubely.services.signing_service import SignedURLIssuer
from tubely.services.video_store import VideoStore
from tubely.utils.assets import get_asset_disk_path, get_asset_url
from tubely.utils.file_validator import (
    UploadRule,
    format_file_size,
    thumbnail_rule,
    validate_file_size,
    validate_upload,
    video_rule,
)
from tubely.utils.logger import add_log_context
from tubely.utils.security import generate_random_name, generate_urlsafe_name


# Configure module logger
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def owned_file(path: Path) -> AsyncIterator[Path]:
    """
    Scope that deletes ``path`` when it exits, however it exits.

    A file that was never created (or is already gone) is not an error.
    """
    try:
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            await aiofiles.os.remove(path)
            logger.debug("Removed temporary file", extra={"path": str(path)})


class VideoUploadService:
    """
    Upload pipeline for videos and thumbnails.

    Attributes:
        settings: Application settings (limits, assets root, chunk size)
        storage: Object store the processed video is written to
        store: Video metadata store
        remuxer: Fast-start remuxer (ffmpeg)
        classifier: Geometry classifier (ffprobe)
        signer: Issues the signed URL returned to the caller

    Example:
        ```python
        service = VideoUploadService(settings, storage, store, remuxer, classifier, signer)
        video = await service.upload_video(user_id, video_id, upload, upload.size, upload.content_type)
        ```
    """

    def __init__(
        self,
        settings: Settings,
        storage: StorageClient,
        store: VideoStore,
        remuxer: FastStartRemuxer,
        classifier: GeometryClassifier,
        signer: SignedURLIssuer,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.store = store
        self.remuxer = remuxer
        self.classifier = classifier
        self.signer = signer

    async def get_owned_video(self, owner_id: str, video_id: str) -> Video:
        """
        Load a record and check that ``owner_id`` owns it.

        Raises:
            NotFoundError: If the record does not exist.
            ForbiddenError: If the record belongs to another user.
        """
        video = await self.store.get_video(video_id)
        if video is None:
            raise NotFoundError("Couldn't find video")
        if video.user_id != owner_id:
            logger.warning(
                "Rejected access to another user's video",
                extra={"video_id": video_id, "user_id": owner_id},
            )
            raise ForbiddenError("Not authorized to update this video")
        return video

    async def upload_video(
        self,
        owner_id: str,
        video_id: str,
        stream: UploadFile,
        declared_size: int | None,
        declared_type: str | None,
        *,
        video: Video | None = None,
    ) -> Video:
        """
        Run the full pipeline for one video upload.

        ``video`` is the record already returned by ``get_owned_video`` for
        this owner; without it the record is loaded and checked here.

        Returns:
            Video: The updated record with ``video_url`` replaced by a signed URL.

        Raises:
            NotFoundError / ForbiddenError: Ownership check failed.
            ClientInputError: Size or media type rejected.
            ProcessingError: ffmpeg or ffprobe failed.
            StorageError: The object write or the metadata update failed.
        """
        if video is None:
            video = await self.get_owned_video(owner_id, video_id)

        rule = video_rule(self.settings)
        extension = validate_upload(declared_size, declared_type, rule)
        media_type = declared_type

        ctx_logger = add_log_context(logger, video_id=video_id, user_id=owner_id)
        ctx_logger.info(
            "Uploading video",
            extra={"declared_size": format_file_size(declared_size), "media_type": media_type},
        )

        random_name = generate_random_name()
        staged_path = get_asset_disk_path(self.settings, f"{random_name}{extension}")

        # The remux output is owned before the staged file is removed
        async with contextlib.AsyncExitStack() as scope:
            async with owned_file(staged_path):
                written = await self._stage_upload(stream, staged_path, rule)
                ctx_logger.info("Staged upload", extra={"path": str(staged_path), "bytes": written})
                processed_path = await self.remuxer.remux(staged_path)
                await scope.enter_async_context(owned_file(processed_path))

            geometry = await self.classifier.classify(processed_path)
            key = f"{geometry.value}/{random_name}{extension}"
            await self.storage.upload_file(processed_path, key, media_type)

        ctx_logger.info("Stored video object", extra={"key": key})

        # The object is already stored; a failed update leaves it unreferenced
        video.video_url = key
        video.touch()
        try:
            await self.store.update_video(video)
        except StorageError:
            ctx_logger.error("Record update failed, stored object left in place", extra={"key": key})
            raise

        return self.signer.sign_video(video)

    async def upload_thumbnail(
        self,
        owner_id: str,
        video_id: str,
        upload: UploadFile,
        *,
        video: Video | None = None,
    ) -> Video:
        """
        Save a thumbnail under the assets root and point the record at it.

        Raises:
            NotFoundError / ForbiddenError: Ownership check failed.
            ClientInputError: Size or media type rejected.
        """
        if video is None:
            video = await self.get_owned_video(owner_id, video_id)

        rule = thumbnail_rule(self.settings)
        extension = validate_upload(upload.size, upload.content_type, rule)

        filename = f"{generate_urlsafe_name()}{extension}"
        disk_path = get_asset_disk_path(self.settings, filename)

        # The file is kept only once the record points at it
        try:
            await self._stage_upload(upload, disk_path, rule)
            video.thumbnail_url = get_asset_url(self.settings, filename)
            video.touch()
            await self.store.update_video(video)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                await aiofiles.os.remove(disk_path)
            raise

        logger.info(
            "Stored thumbnail",
            extra={"video_id": video_id, "user_id": owner_id, "path": str(disk_path)},
        )
        return self.signer.sign_video(video)

    async def _stage_upload(self, stream: UploadFile, path: Path, rule: UploadRule) -> int:
        """
        Copy ``stream`` to ``path`` in chunks.

        The declared size was already checked; the byte count is checked again
        while copying so a client that under-declares is still cut off.
        """
        chunk_size = self.settings.upload_chunk_size_bytes
        written = 0
        async with aiofiles.open(path, "wb") as out:
            while True:
                chunk = await stream.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                validate_file_size(written, rule)
                await out.write(chunk)
        return written
