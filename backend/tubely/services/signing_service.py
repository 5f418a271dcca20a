"""
Signed-URL issuance for stored videos.

Records keep the bare object key in ``video_url``. Whenever a record is served
to a client the key is swapped for a presigned GET URL computed on the spot;
signed URLs are never persisted.
"""

import logging

from tubely.core.storage import StorageClient
from tubely.models.video import Video


logger = logging.getLogger(__name__)


class SignedURLIssuer:
    """
    Wraps the storage client's presign primitive with an expiry policy.

    Args:
        storage: Storage client whose credentials sign the URLs.
        default_ttl: Lifetime in seconds used when ``sign`` gets no ttl.
    """

    def __init__(self, storage: StorageClient, default_ttl: int) -> None:
        self.storage = storage
        self.default_ttl = default_ttl

    def sign(self, key: str | None, ttl: int | None = None) -> str:
        """
        Presign ``key`` for ``ttl`` seconds.

        Signing is a local computation. An empty or missing key yields an
        empty string, never a URL for an object that does not exist.
        """
        if not key:
            return ""
        return self.storage.generate_presigned_download_url(key, expires_in=ttl or self.default_ttl)

    def sign_video(self, video: Video) -> Video:
        """Return a copy of ``video`` whose ``video_url`` is a signed URL (or "")."""
        return video.model_copy(update={"video_url": self.sign(video.video_url)})
