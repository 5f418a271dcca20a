"""
Business logic for the Tubely backend.

- upload_service: video and thumbnail upload pipeline
- media_processing: ffmpeg fast-start remux and ffprobe geometry classification
- signing_service: presigned download URLs for stored videos
- video_store: video metadata persistence

Services receive their collaborators through their constructors and are
composed per request by the FastAPI dependency providers in tubely.api.v1.
"""
