"""Key/value storage backends for the dataset cache."""
import errno
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import CacheStorageError, StorageQuotaError

logger = logging.getLogger(__name__)

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class StorageBackend(ABC):
    """Abstract byte store addressed by string keys."""

    @abstractmethod
    def keys(self, prefix: str) -> List[str]:
        """List stored keys starting with ``prefix``."""
        pass

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None if the key is absent."""
        pass

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """
        Store ``data`` under ``key``, replacing any previous value.

        Raises:
            StorageQuotaError: If the backend is out of space
            CacheStorageError: On any other I/O failure
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        pass


class MemoryBackend(StorageBackend):
    """In-process backend, optionally capped at ``capacity_bytes``."""

    def __init__(self, capacity_bytes: Optional[int] = None):
        self.capacity_bytes = capacity_bytes
        self._data: Dict[str, bytes] = {}

    def keys(self, prefix: str) -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        if self.capacity_bytes is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(data) > self.capacity_bytes:
                raise StorageQuotaError(
                    f"Storage quota exceeded: {used + len(data)} bytes "
                    f"> capacity {self.capacity_bytes}"
                )
        self._data[key] = data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileSystemBackend(StorageBackend):
    """One file per key inside a cache directory."""

    SUFFIX = ".entry"

    def __init__(self, directory: Union[str, Path], capacity_bytes: Optional[int] = None):
        """Initialize backend.

        Args:
            directory: Cache directory, created if missing
            capacity_bytes: Optional hard limit on total stored bytes
        """
        self.directory = Path(directory)
        self.capacity_bytes = capacity_bytes
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheStorageError(f"Cannot create cache directory {self.directory}: {e}") from e
        logger.debug(f"Using cache directory: {self.directory}")

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.SUFFIX}"

    def keys(self, prefix: str) -> List[str]:
        try:
            return [
                path.name[: -len(self.SUFFIX)]
                for path in self.directory.glob(f"{prefix}*{self.SUFFIX}")
            ]
        except OSError as e:
            raise CacheStorageError(f"Failed to list cache directory: {e}") from e

    def read(self, key: str) -> Optional[bytes]:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError(f"Failed to read {key}: {e}") from e

    def _used_bytes(self, exclude: str) -> int:
        total = 0
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            if path.name != exclude:
                total += path.stat().st_size
        return total

    def write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            if self.capacity_bytes is not None:
                used = self._used_bytes(exclude=path.name)
                if used + len(data) > self.capacity_bytes:
                    raise StorageQuotaError(
                        f"Storage quota exceeded: {used + len(data)} bytes "
                        f"> capacity {self.capacity_bytes}"
                    )

            # Write-then-rename so readers never see a partial entry
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(f"Storage quota exceeded writing {key}: {e}") from e
            raise CacheStorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheStorageError(f"Failed to delete {key}: {e}") from e
