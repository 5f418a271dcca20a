"""
Video Pydantic models for Tubely.

Video is the persisted record (MongoDB ``videos`` collection). VideoResponse
is what clients receive: camelCase keys and a ``videoURL`` that holds a
presigned URL instead of the stored object key.
"""

import uuid

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Video(BaseModel):
    """
    Persisted video record.

    Attributes:
        id: Record ID (stored as ``_id``)
        user_id: Owner of the record
        title: Display title
        description: Free-form description
        thumbnail_url: Public URL of the thumbnail, if one was uploaded
        video_url: Object key of the stored video (``<geometry>/<name>.mp4``),
            never a URL while persisted
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="_id")
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    thumbnail_url: str | None = None
    video_url: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_document(self) -> dict[str, Any]:
        """MongoDB document for this record (``_id`` key)."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Video":
        return cls.model_validate(document)

    def touch(self) -> None:
        self.updated_at = _utcnow()


class VideoCreate(BaseModel):
    """Request body for creating a draft video record."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)


class VideoResponse(BaseModel):
    """Video record as served to clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailURL")
    video_url: str = Field(default="", alias="videoURL")
    title: str
    description: str
    user_id: str = Field(alias="userID")

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.id,
            created_at=video.created_at,
            updated_at=video.updated_at,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url or "",
            title=video.title,
            description=video.description,
            user_id=video.user_id,
        )
