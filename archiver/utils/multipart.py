"""Incremental multipart/form-data reader.

Parts are handed out one at a time as the request body arrives, and each
part's data is yielded chunk by chunk, so no part is ever spooled in full.
"""

import logging
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator

from python_multipart import MultipartParser
from python_multipart.exceptions import FormParserError
from python_multipart.multipart import parse_options_header

from archiver.exceptions import MalformedUpload, StorageIOError, UploadTooLarge

logger = logging.getLogger(__name__)

# Parser events queued by the callbacks and drained by the async readers
PART_HEADERS = "headers"
PART_DATA = "data"
PART_END = "end"


class StreamedPart:
    """One part of a multipart body; its data can be read exactly once."""

    def __init__(self, stream: "MultipartStream", headers: dict[bytes, bytes]):
        self._stream = stream
        self._done = False
        _, options = parse_options_header(headers.get(b"content-disposition"))
        self.name = options.get(b"name", b"").decode("utf-8", errors="replace")
        filename = options.get(b"filename")
        self.filename = filename.decode("utf-8", errors="replace") if filename is not None else None
        self.content_type = headers.get(b"content-type", b"").decode("latin-1")

    async def chunks(self) -> AsyncIterator[bytes]:
        while not self._done:
            event = await self._stream.next_event()
            if event is None:
                self._done = True
                raise StorageIOError("Upload interrupted")
            kind, payload = event
            if kind == PART_END:
                self._done = True
            elif kind == PART_DATA and payload:
                yield payload

    async def drain(self) -> None:
        async for _ in self.chunks():
            pass


class MultipartStream:
    """Pull-style wrapper around python-multipart's push parser.

    The body iterator is only advanced when the queued events run out, so at
    most one inbound body chunk is held in memory at a time.
    """

    def __init__(self, body: AsyncIterable[bytes], content_type: str | None, max_size: int | None = None):
        ctype, params = parse_options_header(content_type)
        if ctype != b"multipart/form-data" or b"boundary" not in params:
            raise MalformedUpload("Expected a multipart/form-data body")

        self._body = body.__aiter__()
        self._body_done = False
        self._max_size = max_size
        self.received = 0

        self._events: deque[tuple[str, object]] = deque()
        self._header_name = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._parser = MultipartParser(
            params[b"boundary"],
            {
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
            },
        )

    # ── Parser callbacks (synchronous, called from parser.write) ──
    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_name.lower()] = self._header_value
        self._header_name = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._events.append((PART_HEADERS, self._headers))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._events.append((PART_DATA, data[start:end]))

    def _on_part_end(self) -> None:
        self._events.append((PART_END, None))

    async def next_event(self) -> tuple[str, object] | None:
        """Next parser event, reading more body as needed; None once the body ends."""
        while not self._events:
            if self._body_done:
                return None
            try:
                chunk = await self._body.__anext__()
            except StopAsyncIteration:
                self._body_done = True
                self._parser.finalize()
                continue

            self.received += len(chunk)
            if self._max_size is not None and self.received > self._max_size:
                logger.warning("Upload body exceeded %d bytes", self._max_size)
                raise UploadTooLarge("Upload exceeds the configured size limit")
            try:
                self._parser.write(chunk)
            except FormParserError as e:
                raise MalformedUpload("Invalid multipart data") from e
        return self._events.popleft()

    async def parts(self) -> AsyncIterator[StreamedPart]:
        """Yield parts in body order; unread data of a part is skipped when the next is requested."""
        while True:
            event = await self.next_event()
            if event is None:
                return
            kind, payload = event
            if kind != PART_HEADERS:
                continue
            part = StreamedPart(self, payload)
            yield part
            await part.drain()
