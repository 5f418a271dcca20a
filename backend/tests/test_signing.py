"""
Signed-URL Test Suite for Tubely

Uses a real boto3 client with fake credentials: presigning is a local SigV4
computation, so no S3 endpoint is contacted.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from tubely.config import Settings
from tubely.core.storage import StorageClient
from tubely.models.video import Video, VideoResponse
from tubely.services.signing_service import SignedURLIssuer


KEY = "landscape/" + "ab" * 32 + ".mp4"


@pytest.fixture
def storage(test_settings: Settings) -> StorageClient:
    return StorageClient(test_settings)


@pytest.fixture
def issuer(storage: StorageClient, test_settings: Settings) -> SignedURLIssuer:
    return SignedURLIssuer(storage, default_ttl=test_settings.signed_url_expiration_seconds)


@pytest.mark.unit
class TestSignedURLIssuer:
    def test_signs_key_with_default_ttl(self, issuer: SignedURLIssuer) -> None:
        url = urlparse(issuer.sign(KEY))
        query = parse_qs(url.query)

        assert url.path == f"/tubely-test/{KEY}"
        assert query["X-Amz-Expires"] == ["1200"]
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert "X-Amz-Signature" in query

    def test_explicit_ttl(self, issuer: SignedURLIssuer) -> None:
        query = parse_qs(urlparse(issuer.sign(KEY, ttl=300)).query)
        assert query["X-Amz-Expires"] == ["300"]

    @pytest.mark.parametrize("key", ["", None])
    def test_empty_key_signs_to_empty_string(self, issuer: SignedURLIssuer, key: str | None) -> None:
        assert issuer.sign(key) == ""

    def test_ttl_out_of_range(self, issuer: SignedURLIssuer) -> None:
        with pytest.raises(ValueError):
            issuer.sign(KEY, ttl=86401)

    def test_sign_video_does_not_mutate_record(self, issuer: SignedURLIssuer) -> None:
        video = Video(user_id="user-1", title="Boots", video_url=KEY)

        signed = issuer.sign_video(video)

        assert video.video_url == KEY
        assert signed.video_url.startswith("http://localhost:9000/tubely-test/landscape/")
        assert signed.id == video.id

    def test_draft_video_has_empty_url(self, issuer: SignedURLIssuer) -> None:
        signed = issuer.sign_video(Video(user_id="user-1", title="Draft"))
        assert signed.video_url == ""


@pytest.mark.unit
class TestVideoResponse:
    def test_camel_case_keys(self) -> None:
        video = Video(user_id="user-1", title="Boots", video_url="https://signed/url")

        body = VideoResponse.from_video(video).model_dump(by_alias=True)

        assert set(body) == {
            "id",
            "createdAt",
            "updatedAt",
            "thumbnailURL",
            "videoURL",
            "title",
            "description",
            "userID",
        }
        assert body["videoURL"] == "https://signed/url"
        assert body["userID"] == "user-1"
