"""
Upload Validation Test Suite for Tubely

Covers declared-size ceilings, media type allow-lists and the media type to
extension table for video and thumbnail uploads.
"""

import pytest

from tubely.config import Settings
from tubely.core.errors import ClientInputError
from tubely.utils.file_validator import (
    format_file_size,
    media_type_to_extension,
    thumbnail_rule,
    validate_file_size,
    validate_media_type,
    validate_upload,
    video_rule,
)


GIB = 1 << 30
MIB = 1 << 20


@pytest.mark.unit
class TestVideoRule:
    def test_accepts_mp4_at_the_ceiling(self, test_settings: Settings) -> None:
        assert validate_upload(GIB, "video/mp4", video_rule(test_settings)) == ".mp4"

    def test_accepts_empty_declared_size(self, test_settings: Settings) -> None:
        assert validate_upload(0, "video/mp4", video_rule(test_settings)) == ".mp4"

    def test_rejects_one_byte_over(self, test_settings: Settings) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            validate_upload(GIB + 1, "video/mp4", video_rule(test_settings))

        assert exc_info.value.status_code == 413
        assert exc_info.value.message == "Video file exceeds the maximum allowed size of 1 GiB"

    @pytest.mark.parametrize("size", [None, -1])
    def test_rejects_unknown_size(self, test_settings: Settings, size: int | None) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            validate_file_size(size, video_rule(test_settings))
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("media_type", ["video/avi", "video/quicktime", "image/png"])
    def test_rejects_other_media_types(self, test_settings: Settings, media_type: str) -> None:
        with pytest.raises(ClientInputError, match=f"Invalid media type for video: {media_type}"):
            validate_upload(10 * MIB, media_type, video_rule(test_settings))

    @pytest.mark.parametrize("media_type", [None, ""])
    def test_rejects_missing_media_type(
        self, test_settings: Settings, media_type: str | None
    ) -> None:
        with pytest.raises(ClientInputError, match="Missing media type for video"):
            validate_media_type(media_type, video_rule(test_settings))

    def test_media_type_parameters_are_not_accepted(self, test_settings: Settings) -> None:
        with pytest.raises(ClientInputError):
            validate_media_type("video/mp4; codecs=avc1", video_rule(test_settings))

    def test_size_is_checked_before_type(self, test_settings: Settings) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            validate_upload(GIB + 1, "video/avi", video_rule(test_settings))
        assert exc_info.value.status_code == 413


@pytest.mark.unit
class TestThumbnailRule:
    @pytest.mark.parametrize(("media_type", "extension"), [("image/jpeg", ".jpg"), ("image/png", ".png")])
    def test_accepts_images(self, test_settings: Settings, media_type: str, extension: str) -> None:
        assert validate_upload(MIB, media_type, thumbnail_rule(test_settings)) == extension

    def test_ceiling_is_ten_mib(self, test_settings: Settings) -> None:
        rule = thumbnail_rule(test_settings)
        validate_file_size(10 * MIB, rule)

        with pytest.raises(ClientInputError, match="Thumbnail file exceeds .* 10 MiB"):
            validate_file_size(10 * MIB + 1, rule)

    def test_rejects_video(self, test_settings: Settings) -> None:
        with pytest.raises(ClientInputError, match="Invalid media type for thumbnail"):
            validate_upload(MIB, "video/mp4", thumbnail_rule(test_settings))


@pytest.mark.unit
class TestHelpers:
    def test_extension_table(self) -> None:
        assert media_type_to_extension("video/mp4") == ".mp4"
        assert media_type_to_extension("image/jpeg") == ".jpg"
        assert media_type_to_extension("image/png") == ".png"

    def test_unknown_extension(self) -> None:
        with pytest.raises(ClientInputError):
            media_type_to_extension("application/zip")

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(GIB, "1 GiB"), (10 * MIB, "10 MiB"), (1536, "1.50 KiB"), (512, "512 bytes")],
    )
    def test_format_file_size(self, size: int, expected: str) -> None:
        assert format_file_size(size) == expected
