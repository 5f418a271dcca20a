"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides the shared fixtures:
- Settings pointing the assets root at a per-test tmp_path directory
- FakeVideoStore: in-memory stand-in for the MongoDB-backed VideoStore
- Mocked S3 storage client recording every object write
- Fake remuxer and classifier so pipeline tests run without ffmpeg
- Access tokens for the record owner and for another user
- FastAPI TestClient with the service dependencies overridden

The TestClient is created without entering its context manager, so the
application lifespan (MongoDB connection) never runs during tests.
"""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from fastapi.testclient import TestClient

from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.errors import StorageError
from tubely.models.video import Video
from tubely.services.media_processing import FastStartRemuxer, GeometryClass
from tubely.services.signing_service import SignedURLIssuer
from tubely.services.upload_service import VideoUploadService


OWNER_ID = "user-owner-1"
OTHER_USER_ID = "user-other-2"
TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"
SIGNED_URL_PREFIX = "https://signed.test/tubely-test"


# ==============================================================================
# Pytest Configuration
# ==============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """
    Register custom markers.

    - unit: isolated tests, no external services or executables
    - integration: tests driving the HTTP surface through TestClient
    """
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    path = tmp_path / "assets"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(assets_dir: Path) -> Settings:
    """Settings for an isolated test environment."""
    return Settings(
        app_env="testing",
        app_name="Tubely-Test",
        debug=True,
        json_logs=False,
        platform_url="http://localhost:8091",
        jwt_secret=TEST_JWT_SECRET,
        jwt_algorithm="HS256",
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="tubely_test",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name="tubely-test",
        s3_region="us-east-1",
        assets_root=assets_dir,
        upload_chunk_size_bytes=4096,
    )


# ==============================================================================
# Collaborator Fakes
# ==============================================================================


class FakeVideoStore:
    """In-memory VideoStore with the same async interface."""

    def __init__(self) -> None:
        self.videos: dict[str, Video] = {}
        self.update_calls: list[Video] = []
        self.get_calls: list[str] = []
        self.fail_updates = False

    async def create_video(self, video: Video) -> Video:
        self.videos[video.id] = video.model_copy()
        return video

    async def get_video(self, video_id: str) -> Video | None:
        self.get_calls.append(video_id)
        video = self.videos.get(video_id)
        return video.model_copy() if video is not None else None

    async def list_videos(self, user_id: str) -> list[Video]:
        owned = [v for v in self.videos.values() if v.user_id == user_id]
        return sorted(owned, key=lambda v: v.created_at, reverse=True)

    async def update_video(self, video: Video) -> None:
        if self.fail_updates:
            raise StorageError("Couldn't update video")
        self.update_calls.append(video.model_copy())
        self.videos[video.id] = video.model_copy()

    async def delete_video(self, video_id: str) -> None:
        self.videos.pop(video_id, None)


class FakeRemuxer:
    """Writes the ``.processed`` copy the way FastStartRemuxer names it."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.inputs: list[Path] = []

    async def remux(self, input_path: Path) -> Path:
        self.inputs.append(input_path)
        if self.error is not None:
            raise self.error
        output_path = FastStartRemuxer.output_path_for(input_path)
        output_path.write_bytes(input_path.read_bytes())
        return output_path


class FakeClassifier:
    def __init__(self, geometry: GeometryClass = GeometryClass.LANDSCAPE) -> None:
        self.geometry = geometry
        self.error: BaseException | None = None
        self.paths: list[Path] = []

    async def classify(self, path: Path) -> GeometryClass:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.geometry


def fake_presign(key: str, expires_in: int) -> str:
    return f"{SIGNED_URL_PREFIX}/{key}?X-Amz-Expires={expires_in}&X-Amz-Signature=abc123"


@pytest.fixture
def video_store() -> FakeVideoStore:
    return FakeVideoStore()


@pytest.fixture
def mock_storage() -> Mock:
    """
    Storage client mock.

    ``writes`` records (key, content_type, file existed, file bytes) for every
    upload_file call.
    """
    storage = Mock()
    storage.writes = []

    async def record_upload(file_path: Path, key: str, content_type: str) -> None:
        path = Path(file_path)
        exists = path.exists()
        storage.writes.append(
            {
                "path": path,
                "key": key,
                "content_type": content_type,
                "existed": exists,
                "data": path.read_bytes() if exists else None,
            }
        )

    storage.upload_file = AsyncMock(side_effect=record_upload)
    storage.delete_file = AsyncMock(return_value=None)
    storage.generate_presigned_download_url = Mock(side_effect=fake_presign)
    return storage


@pytest.fixture
def signer(mock_storage: Mock, test_settings: Settings) -> SignedURLIssuer:
    return SignedURLIssuer(mock_storage, default_ttl=test_settings.signed_url_expiration_seconds)


@pytest.fixture
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def upload_service(
    test_settings: Settings,
    mock_storage: Mock,
    video_store: FakeVideoStore,
    remuxer: FakeRemuxer,
    classifier: FakeClassifier,
    signer: SignedURLIssuer,
) -> VideoUploadService:
    return VideoUploadService(
        settings=test_settings,
        storage=mock_storage,
        store=video_store,
        remuxer=remuxer,
        classifier=classifier,
        signer=signer,
    )


# ==============================================================================
# Sample Data
# ==============================================================================


@pytest.fixture
def owner_id() -> str:
    return OWNER_ID


@pytest.fixture
def other_user_id() -> str:
    return OTHER_USER_ID


@pytest.fixture
def draft_video(video_store: FakeVideoStore) -> Video:
    """A draft record owned by OWNER_ID."""
    video = Video(user_id=OWNER_ID, title="Boots demo", description="A pair of boots")
    video_store.videos[video.id] = video.model_copy()
    return video


@pytest.fixture
def foreign_video(video_store: FakeVideoStore) -> Video:
    """A draft record owned by OTHER_USER_ID."""
    video = Video(user_id=OTHER_USER_ID, title="Not yours")
    video_store.videos[video.id] = video.model_copy()
    return video


@pytest.fixture
def owner_token(test_settings: Settings) -> str:
    return create_access_token(OWNER_ID, test_settings)


@pytest.fixture
def auth_headers(owner_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def video_bytes() -> bytes:
    # Content is irrelevant to the pipeline under the fake tools
    return b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 10_000


# ==============================================================================
# FastAPI Client
# ==============================================================================


@pytest.fixture
def client(
    test_settings: Settings,
    video_store: FakeVideoStore,
    upload_service: VideoUploadService,
    signer: SignedURLIssuer,
) -> Iterator[TestClient]:
    """TestClient with settings, store, signer and upload service overridden."""
    from tubely.api.v1.videos import (  # noqa: PLC0415
        get_signer,
        get_upload_service,
        get_video_store,
    )
    from tubely.main import app  # noqa: PLC0415

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_signer] = lambda: signer
    app.dependency_overrides[get_upload_service] = lambda: upload_service

    yield TestClient(app)

    app.dependency_overrides.clear()
