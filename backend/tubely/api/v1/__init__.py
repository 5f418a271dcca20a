"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that tubely.main
mounts under the /api/v1 prefix.

Router Structure:
    - /videos: video record endpoints (create, list, get, delete)
    - /video_upload/{video_id}: video file upload
    - /thumbnail_upload/{video_id}: thumbnail upload
"""

import logging

from fastapi import APIRouter

from tubely.api.v1.videos import router as videos_router


# Configure logger
logger = logging.getLogger(__name__)

# Create the main API v1 router
api_router = APIRouter()

api_router.include_router(videos_router, tags=["videos"])


__all__ = ["api_router"]
