"""Shared fixtures for archive server tests."""

import pytest
from fastapi.testclient import TestClient

from archiver.main import create_app
from archiver.utils.storage import ArchiveStorage, get_storage


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
def archive_dir(tmp_path):
    """Archive directory path; not created until first use.

    Returns:
        Path under the test's tmp dir.
    """
    return tmp_path / 'archive'


@pytest.fixture
def storage(archive_dir):
    """Storage rooted at the tmp archive with a small chunk size.

    Returns:
        ArchiveStorage instance.
    """
    return ArchiveStorage(archive_dir, chunk_size=1024)


@pytest.fixture
def app(storage):
    """Application whose routes use the tmp storage."""
    app = create_app()
    app.dependency_overrides[get_storage] = lambda: storage
    return app


@pytest.fixture
def client(app):
    """Test client bound to the app.

    Yields:
        TestClient instance.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_video_content():
    """Binary content spanning several chunks.

    Returns:
        Bytes object of 4984 bytes.
    """
    return bytes(range(256)) * 19 + b'tail-bytes' * 12
