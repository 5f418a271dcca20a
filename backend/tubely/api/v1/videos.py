"""
FastAPI Video Router for Tubely

Endpoints:
- POST /videos - Create a draft video record
- GET /videos - List the caller's videos
- GET /videos/{video_id} - Get one video
- DELETE /videos/{video_id} - Delete a video and its stored object
- POST /video_upload/{video_id} - Upload the video file (multipart field ``video``)
- POST /thumbnail_upload/{video_id} - Upload a thumbnail (multipart field ``thumbnail``)

Every endpoint requires a bearer token. The upload endpoints resolve the caller
and check record ownership before the multipart body is parsed, so a rejected
request never spools its upload to disk.

Videos are always returned with ``videoURL`` holding a freshly signed URL.
"""

import logging
import uuid

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.datastructures import UploadFile as StarletteUploadFile
from starlette.formparsers import MultiPartException

from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.core.database import get_db_client
from tubely.core.errors import ClientInputError
from tubely.core.storage import StorageClient, get_storage_client
from tubely.models.video import Video, VideoCreate, VideoResponse
from tubely.services.media_processing import FastStartRemuxer, GeometryClassifier
from tubely.services.signing_service import SignedURLIssuer
from tubely.services.upload_service import VideoUploadService
from tubely.services.video_store import VideoStore


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Dependency providers
# ============================================================================


def get_video_store() -> VideoStore:
    return VideoStore(get_db_client().get_videos_collection())


def get_storage(settings: Annotated[Settings, Depends(get_settings)]) -> StorageClient:
    return get_storage_client(settings)


def get_signer(
    storage: Annotated[StorageClient, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SignedURLIssuer:
    return SignedURLIssuer(storage, default_ttl=settings.signed_url_expiration_seconds)


def get_upload_service(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage)],
    store: Annotated[VideoStore, Depends(get_video_store)],
    signer: Annotated[SignedURLIssuer, Depends(get_signer)],
) -> VideoUploadService:
    """Compose the upload pipeline from settings and the shared clients."""
    return VideoUploadService(
        settings=settings,
        storage=storage,
        store=store,
        remuxer=FastStartRemuxer(settings.ffmpeg_path),
        classifier=GeometryClassifier(settings.ffprobe_path),
        signer=signer,
    )


CurrentUser = Annotated[str, Depends(get_current_user_id)]
UploadServiceDep = Annotated[VideoUploadService, Depends(get_upload_service)]
SignerDep = Annotated[SignedURLIssuer, Depends(get_signer)]


# ============================================================================
# Helpers
# ============================================================================


def parse_video_id(video_id: str) -> str:
    """
    Normalize a path video ID.

    Raises:
        ClientInputError: If the value is not a UUID.
    """
    try:
        return str(uuid.UUID(video_id))
    except ValueError:
        raise ClientInputError("Invalid ID") from None


async def read_form_file(request: Request, field: str) -> StarletteUploadFile:
    """
    Parse the multipart body and return the file in ``field``.

    Raises:
        ClientInputError: If the body cannot be parsed or the field is missing.
    """
    try:
        form = await request.form()
    except MultiPartException as e:
        raise ClientInputError(f"Unable to parse form file: {e.message}") from e

    upload = form.get(field)
    if not isinstance(upload, StarletteUploadFile):
        raise ClientInputError(f"Unable to parse form file: missing {field!r} field")
    return upload


def to_response(signer: SignedURLIssuer, video: Video) -> VideoResponse:
    return VideoResponse.from_video(signer.sign_video(video))


# ============================================================================
# Record endpoints
# ============================================================================


@router.post(
    "/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft video",
)
async def create_video(
    body: VideoCreate,
    user_id: CurrentUser,
    store: Annotated[VideoStore, Depends(get_video_store)],
    signer: SignerDep,
) -> VideoResponse:
    video = Video(user_id=user_id, title=body.title, description=body.description)
    await store.create_video(video)
    return to_response(signer, video)


@router.get("/videos", response_model=list[VideoResponse], summary="List your videos")
async def list_videos(
    user_id: CurrentUser,
    store: Annotated[VideoStore, Depends(get_video_store)],
    signer: SignerDep,
) -> list[VideoResponse]:
    videos = await store.list_videos(user_id)
    return [to_response(signer, video) for video in videos]


@router.get("/videos/{video_id}", response_model=VideoResponse, summary="Get a video")
async def get_video(
    video_id: str,
    user_id: CurrentUser,
    service: UploadServiceDep,
) -> VideoResponse:
    video = await service.get_owned_video(user_id, parse_video_id(video_id))
    return to_response(service.signer, video)


@router.delete(
    "/videos/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a video",
)
async def delete_video(
    video_id: str,
    user_id: CurrentUser,
    service: UploadServiceDep,
) -> Response:
    """Delete the record, removing its stored object first when there is one."""
    video = await service.get_owned_video(user_id, parse_video_id(video_id))
    if video.video_url:
        await service.storage.delete_file(video.video_url)
    await service.store.delete_video(video.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Upload endpoints
# ============================================================================


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload the video file",
    description=(
        "Multipart upload of an MP4 (field ``video``, at most 1 GiB). The file is "
        "remuxed for fast start, classified by aspect ratio and stored under "
        "``<landscape|portrait|other>/<name>.mp4``."
    ),
)
async def upload_video(
    video_id: str,
    request: Request,
    user_id: CurrentUser,
    service: UploadServiceDep,
) -> VideoResponse:
    video_id = parse_video_id(video_id)
    video = await service.get_owned_video(user_id, video_id)

    upload = await read_form_file(request, "video")
    try:
        video = await service.upload_video(
            user_id,
            video_id,
            upload,
            declared_size=upload.size,
            declared_type=upload.content_type,
            video=video,
        )
    finally:
        await upload.close()

    return VideoResponse.from_video(video)


@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload a thumbnail",
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    user_id: CurrentUser,
    service: UploadServiceDep,
) -> VideoResponse:
    video_id = parse_video_id(video_id)
    video = await service.get_owned_video(user_id, video_id)

    upload = await read_form_file(request, "thumbnail")
    try:
        video = await service.upload_thumbnail(user_id, video_id, upload, video=video)
    finally:
        await upload.close()

    return VideoResponse.from_video(video)
