"""Archive error taxonomy, mapped to HTTP responses at the request boundary."""


class ArchiveError(Exception):
    """Base class for failures surfaced to clients as an ErrorResponse."""

    status_code = 500
    error = "internal server error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class FileNotFound(ArchiveError):
    status_code = 404
    error = "not found"


class StorageIOError(ArchiveError):
    """Create, open, read, write, enumerate or remove failed on the archive."""

    status_code = 500
    error = "io error"


class MissingFileName(ArchiveError):
    # Aborts the whole upload; kept as a server error like every other upload failure.
    status_code = 500
    error = "bad request"


class InvalidFileName(ArchiveError):
    status_code = 400
    error = "bad request"


class UploadTooLarge(ArchiveError):
    status_code = 413
    error = "payload too large"


class MalformedUpload(ArchiveError):
    # Same treatment as MissingFileName: the upload is aborted as a server error.
    status_code = 500
    error = "bad request"
