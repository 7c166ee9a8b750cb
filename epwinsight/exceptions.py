"""Exception hierarchy shared by the parser, the cache and the fetcher."""
from typing import Optional


class EPWInsightError(Exception):
    """Base class for all EPW Insight errors."""
    pass


class FormatError(EPWInsightError):
    """Raised when a document cannot be parsed as an EPW file at all."""
    pass


class FieldError(EPWInsightError):
    """Raised for a single malformed observation line."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        field_count: Optional[int] = None,
    ):
        super().__init__(message)
        self.line_number = line_number
        self.field_count = field_count


class SourceError(EPWInsightError):
    """Raised when the remote source of an EPW document cannot be read."""
    pass


class FetchError(SourceError):
    """Network or HTTP failure while downloading an archive."""
    pass


class ArchiveError(SourceError):
    """The downloaded archive is unreadable or lacks the requested file."""
    pass


class CacheStorageError(EPWInsightError):
    """I/O failure in a cache storage backend."""
    pass


class StorageQuotaError(CacheStorageError):
    """The storage backend is out of space."""
    pass


class DatasetLoadError(EPWInsightError):
    """
    User-visible failure to load a dataset.

    ``kind`` tells callers which failure happened: ``"network"`` for download
    failures and ``"archive"`` for unreadable archives.
    """

    def __init__(self, message: str, kind: str = "network"):
        super().__init__(message)
        self.kind = kind
