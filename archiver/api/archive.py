"""Archive API routes — list, stream, delete."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, StreamingResponse

from archiver.schemas.common import ArchiveResponse
from archiver.services.archive_service import delete_file, list_archive, open_stream
from archiver.utils.storage import ArchiveStorage, get_storage

router = APIRouter(tags=["archive"])


@router.get("/archive", response_model=ArchiveResponse)
async def archive(storage: ArchiveStorage = Depends(get_storage)):
    return ArchiveResponse(files=await list_archive(storage))


@router.get("/stream/{file_name}")
async def stream_video(file_name: str, storage: ArchiveStorage = Depends(get_storage)):
    chunks = await open_stream(storage, file_name)
    return StreamingResponse(
        chunks,
        media_type="video/mp4",
        headers={"Accept-Ranges": "bytes"},
    )


@router.delete("/delete/{file_name}", response_class=PlainTextResponse)
async def delete_video(file_name: str, storage: ArchiveStorage = Depends(get_storage)):
    await delete_file(storage, file_name)
    return PlainTextResponse("File deleted successfully")
