"""
Upload Validation Rules for Tubely

Checks applied to an upload before a single byte of it is read or written:
- Declared size against a per-asset ceiling (1 GiB video, 10 MiB thumbnail)
- Declared media type against a per-asset allow-list
- Extension derived from the accepted media type via a fixed table

The declared Content-Type is authoritative. Nothing here sniffs file content,
and the client filename is never consulted. A failed check raises
ClientInputError, which the API layer reports as a 4xx.
"""

from dataclasses import dataclass

from fastapi import status

from tubely.config import Settings
from tubely.core.errors import ClientInputError


# =============================================================================
# CONSTANTS - Media types
# =============================================================================

# Fixed media type -> extension table. Extensions are never guessed from filenames.
MEDIA_TYPE_EXTENSIONS: dict[str, str] = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}

VIDEO_MEDIA_TYPES: frozenset[str] = frozenset({"video/mp4"})
THUMBNAIL_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png"})


@dataclass(frozen=True)
class UploadRule:
    """
    Acceptance rule for one asset class.

    Attributes:
        label: Asset class name used in error messages ("video", "thumbnail")
        max_bytes: Largest declared size accepted
        allowed_media_types: Exact media types accepted
    """

    label: str
    max_bytes: int
    allowed_media_types: frozenset[str]


def video_rule(settings: Settings) -> UploadRule:
    """Rule for video uploads: ``video/mp4`` only, up to ``max_video_upload_bytes``."""
    return UploadRule(
        label="video",
        max_bytes=settings.max_video_upload_bytes,
        allowed_media_types=VIDEO_MEDIA_TYPES,
    )


def thumbnail_rule(settings: Settings) -> UploadRule:
    """Rule for thumbnails: JPEG or PNG, up to ``max_thumbnail_upload_bytes``."""
    return UploadRule(
        label="thumbnail",
        max_bytes=settings.max_thumbnail_upload_bytes,
        allowed_media_types=THUMBNAIL_MEDIA_TYPES,
    )


def format_file_size(size_bytes: int) -> str:
    """
    Render a byte count with binary units.

    Example:
        >>> format_file_size(1 << 30)
        '1 GiB'
    """
    for unit, shift in (("GiB", 30), ("MiB", 20), ("KiB", 10)):
        if size_bytes >= 1 << shift:
            value = size_bytes / (1 << shift)
            return f"{value:.0f} {unit}" if value.is_integer() else f"{value:.2f} {unit}"
    return f"{size_bytes} bytes"


def media_type_to_extension(media_type: str) -> str:
    """
    Look up the file extension for an accepted media type.

    Raises:
        ClientInputError: If the media type has no known extension.
    """
    try:
        return MEDIA_TYPE_EXTENSIONS[media_type]
    except KeyError:
        raise ClientInputError(f"Unsupported media type: {media_type}") from None


def validate_file_size(declared_size: int | None, rule: UploadRule) -> None:
    """
    Reject a declared size that is unknown, negative or above the ceiling.

    Raises:
        ClientInputError: 413 when the ceiling is exceeded, 400 otherwise.
    """
    if declared_size is None or declared_size < 0:
        raise ClientInputError(f"Couldn't determine {rule.label} file size")

    if declared_size > rule.max_bytes:
        raise ClientInputError(
            f"{rule.label.capitalize()} file exceeds the maximum allowed size of "
            f"{format_file_size(rule.max_bytes)}",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )


def validate_media_type(declared_type: str | None, rule: UploadRule) -> str:
    """
    Check the declared media type against the rule allow-list.

    Parameters such as ``; charset=...`` are not stripped: the value must be
    exactly one of the accepted types.

    Returns:
        str: The accepted media type.

    Raises:
        ClientInputError: If the type is missing or not allowed.
    """
    if not declared_type:
        raise ClientInputError(f"Missing media type for {rule.label}")

    if declared_type not in rule.allowed_media_types:
        raise ClientInputError(f"Invalid media type for {rule.label}: {declared_type}")

    return declared_type


def validate_upload(declared_size: int | None, declared_type: str | None, rule: UploadRule) -> str:
    """
    Apply the size and media type checks for ``rule``.

    Performs no I/O.

    Returns:
        str: File extension (with leading dot) for the accepted media type.

    Raises:
        ClientInputError: If either check fails.

    Example:
        >>> validate_upload(50 * 1024 * 1024, "video/mp4", video_rule(settings))
        '.mp4'
    """
    validate_file_size(declared_size, rule)
    media_type = validate_media_type(declared_type, rule)
    return media_type_to_extension(media_type)
