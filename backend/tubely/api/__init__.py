"""
Tubely API Package.

Endpoint implementations organized by version:

    - v1/: Version 1 API endpoints (current)
        - videos.py: video records, video upload and thumbnail upload

All endpoints are served under the /api/v1 prefix.
"""
