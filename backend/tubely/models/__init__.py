"""
Models Package for Tubely.

    - Video: persisted video record (MongoDB ``videos`` collection, ``_id`` alias)
    - VideoCreate: request body for a new draft record
    - VideoResponse: record as served to clients (camelCase keys)
"""

from tubely.models.video import Video, VideoCreate, VideoResponse


__all__ = ["Video", "VideoCreate", "VideoResponse"]
