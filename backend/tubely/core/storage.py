"""
Tubely S3-Compatible Storage Client

This module provides the object-store layer using boto3. It supports both
MinIO (for development) and AWS S3 (for production) through a configurable
endpoint URL.

Key Features:
- Server-side upload of a local file with an explicit Content-Type
- Presigned GET URL generation (local SigV4 signing, no network round trip)
- Object deletion (records removed through the API take their object with them)
- Blocking boto3 transfers run in a worker thread so the event loop keeps
  serving other requests
"""

import asyncio
import logging

from pathlib import Path

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings
from tubely.core.errors import StorageError


# Configure module-level constants to avoid magic numbers
MIN_PRESIGNED_EXPIRATION_SECONDS = 60
MAX_DOWNLOAD_EXPIRATION_SECONDS = 86400

# Configure module-level logger
logger = logging.getLogger(__name__)

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3-compatible storage client supporting both MinIO and AWS S3.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Target bucket for all operations

    Example usage:
        ```python
        storage = StorageClient(settings)

        await storage.upload_file(Path("/tmp/abc.mp4"), "landscape/abc.mp4", "video/mp4")
        url = storage.generate_presigned_download_url("landscape/abc.mp4", expires_in=1200)
        ```
    """

    def __init__(self, settings: Settings) -> None:
        """
        Build the boto3 client. A None ``s3_endpoint_url`` means AWS S3;
        anything else (MinIO locally) is addressed path-style.
        SigV4 is forced so presigned URLs work against both.

        Raises:
            StorageError: If boto3 rejects the configuration.
        """
        self.settings = settings

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},  # Path-style for MinIO compatibility
            retries={"max_attempts": 3, "mode": "standard"},
        )

        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint_url,
                aws_access_key_id=settings.s3_access_key_id,
                aws_secret_access_key=settings.s3_secret_access_key,
                region_name=settings.s3_region,
                config=client_config,
            )
        except BotoCoreError as e:
            logger.exception(
                "Failed to initialize S3 storage client",
                extra={"endpoint": settings.s3_endpoint_url},
            )
            raise StorageError(f"Failed to initialize S3 client: {e}") from e

        self.bucket_name = settings.s3_bucket_name

        logger.info(
            "S3 storage client initialized successfully",
            extra={
                "bucket": self.bucket_name,
                "region": settings.s3_region,
                "endpoint": settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    def generate_presigned_download_url(self, key: str, expires_in: int) -> str:
        """
        Generate a presigned GET URL for a stored object.

        boto3 signs the request locally with the configured credentials;
        nothing is sent over the network.

        Args:
            key: The S3 object key, e.g. "landscape/3f9c...e1.mp4".
            expires_in: Lifetime of the URL in seconds (60 to 86400).

        Returns:
            str: Presigned GET URL.

        Raises:
            ValueError: If expires_in is outside the valid range.
            StorageError: If boto3 cannot sign the request.
        """
        if not MIN_PRESIGNED_EXPIRATION_SECONDS <= expires_in <= MAX_DOWNLOAD_EXPIRATION_SECONDS:
            raise ValueError(
                f"expires_in must be between {MIN_PRESIGNED_EXPIRATION_SECONDS} and "
                f"{MAX_DOWNLOAD_EXPIRATION_SECONDS} seconds, got {expires_in}"
            )

        try:
            return self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to generate presigned download URL", extra={"key": key})
            raise StorageError(f"Failed to sign URL for {key}: {e}") from e

    async def upload_file(self, file_path: Path, key: str, content_type: str) -> None:
        """
        Upload a local file to the bucket under ``key``.

        boto3's managed transfer switches to multipart for large files on its
        own. The call blocks, so it runs in a worker thread.

        Args:
            file_path: Path to the local file to upload.
            key: Destination object key.
            content_type: Content-Type recorded on the stored object.

        Raises:
            StorageError: If the upload fails.
        """
        try:
            await asyncio.to_thread(
                self.s3_client.upload_file,
                Filename=str(file_path),
                Bucket=self.bucket_name,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception(
                "Failed to upload file to S3",
                extra={"file_path": str(file_path), "key": key},
            )
            raise StorageError(f"Failed to store object {key}") from e

        logger.info(
            "Uploaded file to S3",
            extra={"file_path": str(file_path), "key": key, "content_type": content_type},
        )

    async def delete_file(self, key: str) -> None:
        """
        Delete an object from the bucket. Deleting a missing key is not an error.

        Raises:
            StorageError: If the delete fails due to permissions or network issues.
        """
        try:
            await asyncio.to_thread(self.s3_client.delete_object, Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to delete file from S3", extra={"key": key})
            raise StorageError(f"Failed to delete object {key}") from e

        logger.info("Deleted file from S3", extra={"key": key})


def get_storage_client(settings: Settings) -> StorageClient:
    """
    Get the singleton StorageClient instance.

    The boto3 client is thread-safe, so one instance is shared by every
    request.

    Args:
        settings: Settings used to build the client on first call.

    Returns:
        StorageClient: The shared storage client instance.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(settings)
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]
