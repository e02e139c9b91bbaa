"""Archive operations — upload, list, stream and delete over ArchiveStorage.

These functions know nothing about HTTP. They return plain values or raise
an ArchiveError subclass; the API layer turns both into responses.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Protocol

from archiver.exceptions import MissingFileName
from archiver.utils.storage import ArchiveStorage

logger = logging.getLogger(__name__)


class UploadField(Protocol):
    """One multipart part: a client-declared filename plus its data as chunks."""

    filename: str | None

    def chunks(self) -> AsyncIterator[bytes]: ...


async def upload_files(storage: ArchiveStorage, fields: AsyncIterable[UploadField]) -> list[str]:
    """Write every field to the archive as it arrives, failing fast.

    Each field's chunks go straight to the writer, so a field is on disk
    before the next one is read. A field without a filename, or a failed
    write, aborts the request. Files written by earlier fields stay on disk.
    """
    await storage.ensure_root()

    stored = []
    async for field in fields:
        if not field.filename:
            logger.warning("Upload aborted: field without a file name")
            raise MissingFileName("Missing file name")

        logger.info("Uploading file: %s", field.filename)
        size = await storage.write_chunks(field.filename, field.chunks())
        logger.info("File %s uploaded successfully (%d bytes)", field.filename, size)
        stored.append(field.filename)
    return stored


async def list_archive(storage: ArchiveStorage) -> list[str]:
    return await storage.list_names()


async def open_stream(storage: ArchiveStorage, file_name: str) -> AsyncIterator[bytes]:
    return await storage.open_chunks(file_name)


async def delete_file(storage: ArchiveStorage, file_name: str) -> None:
    await storage.delete(file_name)
    logger.info("File %s deleted successfully", file_name)
