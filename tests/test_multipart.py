"""Tests for the incremental multipart reader."""

import pytest

from archiver.exceptions import MalformedUpload, StorageIOError, UploadTooLarge
from archiver.utils.multipart import MultipartStream

BOUNDARY = 'archive-test-boundary'
CONTENT_TYPE = f'multipart/form-data; boundary={BOUNDARY}'


def part(name, content, filename=None):
    disposition = f'form-data; name="{name}"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    return (
        f'--{BOUNDARY}\r\nContent-Disposition: {disposition}\r\n'
        'Content-Type: application/octet-stream\r\n\r\n'
    ).encode() + content + b'\r\n'


def multipart_body(*parts):
    return b''.join(parts) + f'--{BOUNDARY}--\r\n'.encode()


async def pieces(data, size, pulled=None):
    for offset in range(0, len(data), size):
        if pulled is not None:
            pulled.append(offset)
        yield data[offset:offset + size]


async def read_parts(stream):
    result = []
    async for streamed in stream.parts():
        content = b''.join([chunk async for chunk in streamed.chunks()])
        result.append((streamed.name, streamed.filename, content))
    return result


@pytest.mark.anyio
async def test_parts_survive_arbitrary_body_splits(sample_video_content):
    """Test parts come out intact however the body is split on the wire."""
    body = multipart_body(
        part('file', sample_video_content, 'clip.mp4'),
        part('file', b'', 'empty.mp4'),
        part('file', b'second\r\n--almost-boundary', 'b.webm'),
    )

    for size in (1, 7, 64, len(body)):
        parts = await read_parts(MultipartStream(pieces(body, size), CONTENT_TYPE))

        assert parts == [
            ('file', 'clip.mp4', sample_video_content),
            ('file', 'empty.mp4', b''),
            ('file', 'b.webm', b'second\r\n--almost-boundary'),
        ]


@pytest.mark.anyio
async def test_part_without_filename():
    """Test a plain form value reports no filename."""
    body = multipart_body(part('note', b'hello'))

    parts = await read_parts(MultipartStream(pieces(body, 16), CONTENT_TYPE))

    assert parts == [('note', None, b'hello')]


@pytest.mark.anyio
async def test_first_part_available_before_body_is_read():
    """Test the first part's headers and data are handed out before the rest of the body is pulled."""
    body = multipart_body(part('file', b'x' * 4096, 'a.mp4'), part('file', b'y' * 4096, 'b.mp4'))
    pulled = []
    stream = MultipartStream(pieces(body, 512, pulled), CONTENT_TYPE)

    parts = stream.parts()
    first = await parts.__anext__()
    pulled_at_headers = len(pulled)
    await first.chunks().__anext__()

    assert first.filename == 'a.mp4'
    assert pulled_at_headers == 1
    assert len(pulled) < len(body) // 512
    await parts.aclose()


@pytest.mark.anyio
async def test_unread_part_is_skipped():
    """Test requesting the next part discards the unread data of the current one."""
    body = multipart_body(part('file', b'skip me', 'a.mp4'), part('file', b'keep me', 'b.mp4'))
    stream = MultipartStream(pieces(body, 5), CONTENT_TYPE)

    names = []
    async for streamed in stream.parts():
        names.append(streamed.filename)
        if streamed.filename == 'b.mp4':
            assert b''.join([chunk async for chunk in streamed.chunks()]) == b'keep me'

    assert names == ['a.mp4', 'b.mp4']


@pytest.mark.anyio
async def test_body_over_limit():
    """Test bytes received beyond max_size abort the read."""
    body = multipart_body(part('file', b'z' * 10000, 'big.mp4'))
    stream = MultipartStream(pieces(body, 1000), CONTENT_TYPE, max_size=5000)

    with pytest.raises(UploadTooLarge):
        await read_parts(stream)
    assert stream.received <= 6000


@pytest.mark.anyio
async def test_truncated_body():
    """Test a body that ends inside a part raises StorageIOError."""
    body = multipart_body(part('file', b'z' * 1000, 'cut.mp4'))[:400]

    with pytest.raises(StorageIOError):
        await read_parts(MultipartStream(pieces(body, 100), CONTENT_TYPE))


@pytest.mark.anyio
async def test_invalid_boundary_in_body():
    """Test a body that does not start with the declared boundary is rejected."""
    body = b'--some-other-boundary\r\n\r\ndata\r\n'

    with pytest.raises(MalformedUpload):
        await read_parts(MultipartStream(pieces(body, 64), CONTENT_TYPE))


@pytest.mark.parametrize('content_type', [None, 'application/json', 'multipart/form-data'])
def test_rejects_non_multipart_content_type(content_type):
    """Test a missing, foreign or boundary-less content type is refused."""
    with pytest.raises(MalformedUpload):
        MultipartStream(pieces(b'', 1), content_type)
