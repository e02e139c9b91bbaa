"""Upload API route — multipart upload streamed into the archive."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.requests import ClientDisconnect

from archiver.config import settings
from archiver.exceptions import StorageIOError, UploadTooLarge
from archiver.services.archive_service import upload_files
from archiver.utils.multipart import MultipartStream
from archiver.utils.storage import ArchiveStorage, get_storage

router = APIRouter(tags=["uploads"])


def check_upload_size(request: Request) -> None:
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > settings.max_upload_size_bytes:
        raise UploadTooLarge(f"Upload exceeds {settings.MAX_UPLOAD_SIZE_GB:g} GB")


async def receive_body(request: Request):
    try:
        async for chunk in request.stream():
            yield chunk
    except ClientDisconnect as e:
        raise StorageIOError("Upload interrupted") from e


@router.post("/upload", response_class=PlainTextResponse)
async def upload_video(
    request: Request,
    storage: ArchiveStorage = Depends(get_storage),
):
    check_upload_size(request)
    body = MultipartStream(
        receive_body(request),
        request.headers.get("content-type"),
        max_size=settings.max_upload_size_bytes,
    )
    await upload_files(storage, body.parts())
    return PlainTextResponse("Video uploaded successfully")
