"""Archive storage — one flat local directory, written and read in chunks."""

import logging
from collections.abc import AsyncIterable, AsyncIterator
from pathlib import Path

import anyio

from archiver.config import settings
from archiver.exceptions import FileNotFound, InvalidFileName, StorageIOError

logger = logging.getLogger(__name__)


def validate_file_name(file_name: str) -> str:
    """Reject names that would escape the archive directory."""
    if (
        not file_name
        or file_name in (".", "..")
        or "/" in file_name
        or "\\" in file_name
        or "\x00" in file_name
    ):
        raise InvalidFileName(f"Invalid file name: {file_name!r}")
    return file_name


class ArchiveStorage:
    """Stores files on local filesystem directly under ARCHIVE_PATH.

    There is no index: every existence check, listing and removal goes to the
    filesystem, so concurrent requests on the same name race there
    (last writer / last remover wins).
    """

    def __init__(self, base: Path | None = None, chunk_size: int | None = None):
        self.base = anyio.Path(base if base is not None else settings.ARCHIVE_PATH)
        self.chunk_size = chunk_size or settings.CHUNK_SIZE

    def _resolve(self, file_name: str) -> anyio.Path:
        return self.base / validate_file_name(file_name)

    async def ensure_root(self) -> None:
        try:
            await self.base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Failed to create archive directory %s: %s", self.base, e)
            raise StorageIOError("Failed to create archive directory") from e

    async def exists(self, file_name: str) -> bool:
        return await self._exists(self._resolve(file_name), file_name)

    async def _exists(self, path: anyio.Path, file_name: str) -> bool:
        try:
            return await path.exists()
        except OSError as e:
            logger.warning("Failed to check %s: %s", file_name, e)
            raise StorageIOError(f"Error accessing file: {file_name}") from e

    async def write_chunks(self, file_name: str, chunks: AsyncIterable[bytes]) -> int:
        """Create or truncate ``file_name`` and append each chunk in order.

        Only the chunk currently in hand is held in memory. Returns the number
        of bytes written. A failure leaves whatever was written on disk.
        """
        path = self._resolve(file_name)
        await self.ensure_root()

        written = 0
        try:
            async with await anyio.open_file(path, "wb") as f:
                async for chunk in chunks:
                    await f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            logger.warning("Error writing %s after %d bytes: %s", file_name, written, e)
            raise StorageIOError(f"Error uploading file: {file_name}") from e
        return written

    async def open_chunks(self, file_name: str) -> AsyncIterator[bytes]:
        """Check that ``file_name`` exists, open it and return its chunk iterator.

        The file is opened here rather than on first iteration so that an open
        failure is reported before any response bytes go out. Between the
        existence check and the open the file may vanish; that surfaces as
        StorageIOError.
        """
        path = self._resolve(file_name)
        if not await self._exists(path, file_name):
            logger.warning("File %s not found in archive", file_name)
            raise FileNotFound("File not found")

        try:
            f = await anyio.open_file(path, "rb")
        except OSError as e:
            logger.warning("Failed to open %s: %s", file_name, e)
            raise StorageIOError(f"Error opening file: {file_name}") from e
        return self._iter_chunks(f, file_name)

    async def _iter_chunks(self, f, file_name: str) -> AsyncIterator[bytes]:
        try:
            while True:
                try:
                    chunk = await f.read(self.chunk_size)
                except OSError as e:
                    logger.warning("Error reading %s: %s", file_name, e)
                    raise StorageIOError(f"Error reading file: {file_name}") from e
                if not chunk:
                    break
                yield chunk
        finally:
            await f.aclose()

    async def list_names(self) -> list[str]:
        """Names of every entry in the archive directory, in filesystem order.

        Entries whose names are not valid UTF-8 cannot be reported to clients
        and are skipped.
        """
        await self.ensure_root()
        names = []
        try:
            async for entry in self.base.iterdir():
                try:
                    entry.name.encode("utf-8")
                except UnicodeEncodeError:
                    logger.warning("Skipping archive entry with non UTF-8 name %r", entry.name)
                    continue
                names.append(entry.name)
        except OSError as e:
            logger.warning("Failed to read archive directory %s: %s", self.base, e)
            raise StorageIOError("Failed to read archive directory") from e
        return names

    async def delete(self, file_name: str) -> None:
        path = self._resolve(file_name)
        if not await self._exists(path, file_name):
            logger.warning("Attempted to delete non-existent file %s", file_name)
            raise FileNotFound("File not found")
        try:
            await path.unlink()
        except OSError as e:
            logger.warning("Failed to delete %s: %s", file_name, e)
            raise StorageIOError(f"Error deleting file: {file_name}") from e


def get_storage() -> ArchiveStorage:
    return ArchiveStorage()
