"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application for hosting user-uploaded
videos. The platform provides:

- Authenticated video and thumbnail uploads
- Fast-start remuxing of uploaded MP4 files with ffmpeg
- Geometry classification (landscape, portrait, other) with ffprobe
- S3/MinIO object storage under geometry-partitioned keys
- Time-limited presigned URLs for playback

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, storage, auth, errors)
- models/: Pydantic data models
- services/: Business logic layer, including the video upload pipeline
- utils/: Utility functions and helpers
"""

__version__ = "1.0.0"
__app_name__ = "Tubely"
