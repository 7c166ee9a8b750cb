"""Size- and age-bounded LRU cache of processed EPW datasets."""
import gzip
import hashlib
import json
import logging
import threading
import time
import zlib
from datetime import datetime, timezone
from typing import Callable, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import CacheStorageError, StorageQuotaError
from ..models import ProcessedDataset
from .config import CacheConfig
from .storage import StorageBackend

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
_DECODE_ERRORS = (ValueError, KeyError, TypeError, OSError, EOFError, zlib.error)


class CacheEntry(BaseModel):
    """Persisted layout of one cached dataset."""
    model_config = ConfigDict(frozen=True)

    key: str
    timestamp: int  # last access, epoch milliseconds
    source_url: str
    original_file_name: str
    data: ProcessedDataset


class CacheEntryInfo(BaseModel):
    """Listing row for one cached dataset."""
    key: str
    file_name: str
    source_url: str
    timestamp: datetime
    size: int


class CacheInfo(BaseModel):
    """All cached datasets, newest first."""
    count: int
    total_bytes: int
    entries: List[CacheEntryInfo]


class CacheStatus(BaseModel):
    """Cache usage against its byte budget."""
    count: int
    total_bytes: int
    max_bytes: int
    usage_percent: float
    is_near_limit: bool


class _IndexRecord(NamedTuple):
    timestamp: int
    size: int
    file_name: str
    source_url: str


class CacheStore:
    """
    Persists processed datasets keyed by (archive URL, file name).

    Entries expire after ``max_age_seconds``. Total stored bytes are kept
    within ``max_bytes`` by evicting the least recently used entries before
    each write. Storage failures are logged and never raised to callers.

    An in-memory index of {key: (timestamp, size)} is loaded from the
    backend on first use so eviction does not rescan stored entries. All
    public methods hold a single lock.
    """

    def __init__(
        self,
        backend: StorageBackend,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache store.

        Args:
            backend: Byte storage for serialized entries
            config: Cache configuration
            clock: Returns the current time in epoch seconds
        """
        self.backend = backend
        self.config = config or CacheConfig()
        self.clock = clock
        self._lock = threading.RLock()
        self._index: Optional[Dict[str, _IndexRecord]] = None

    # ------------------------------------------------------------------
    # Keys, time and serialization
    # ------------------------------------------------------------------

    def build_key(self, source_url: str, file_name: str) -> str:
        """Deterministic key for a source identity."""
        digest = hashlib.sha256(f"{source_url}\n{file_name}".encode("utf-8")).hexdigest()
        return f"{self.config.key_prefix}{digest}"

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _serialize(self, entry: CacheEntry) -> bytes:
        payload = entry.model_dump_json().encode("utf-8")
        return gzip.compress(payload) if self.config.compress else payload

    @staticmethod
    def _decode(raw: bytes) -> bytes:
        return gzip.decompress(raw) if raw[:2] == _GZIP_MAGIC else raw

    def _deserialize(self, raw: bytes) -> CacheEntry:
        return CacheEntry.model_validate_json(self._decode(raw))

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def _ensure_index(self) -> Dict[str, _IndexRecord]:
        if self._index is not None:
            return self._index

        index: Dict[str, _IndexRecord] = {}
        for key in self.backend.keys(self.config.key_prefix):
            raw = self.backend.read(key)
            if raw is None:
                continue
            try:
                meta = json.loads(self._decode(raw))
                index[key] = _IndexRecord(
                    timestamp=int(meta["timestamp"]),
                    size=len(raw),
                    file_name=str(meta.get("original_file_name", "")),
                    source_url=str(meta.get("source_url", "")),
                )
            except _DECODE_ERRORS as e:
                # Corrupted entries sort first for eviction
                logger.warning(f"Corrupted cache entry {key}: {e}")
                index[key] = _IndexRecord(0, len(raw), "corrupted", "")

        logger.info(f"Loaded cache index: {len(index)} entries")
        self._index = index
        return index

    def _usage(self) -> int:
        return sum(record.size for record in self._ensure_index().values())

    def _write(self, entry: CacheEntry, payload: bytes) -> None:
        self.backend.write(entry.key, payload)
        self._ensure_index()[entry.key] = _IndexRecord(
            timestamp=entry.timestamp,
            size=len(payload),
            file_name=entry.original_file_name,
            source_url=entry.source_url,
        )

    def _delete(self, key: str) -> None:
        self.backend.delete(key)
        self._ensure_index().pop(key, None)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.backend.read(key)
        except CacheStorageError as e:
            logger.warning(f"Failed to read EPW cache: {e}")
            return None

        if raw is None:
            return None

        try:
            return self._deserialize(raw)
        except _DECODE_ERRORS as e:
            logger.warning(f"Removing unreadable cache entry {key}: {e}")
            try:
                self._delete(key)
            except CacheStorageError as delete_error:
                logger.warning(f"Failed to remove cache entry {key}: {delete_error}")
            return None

    def get(
        self, source_url: str, file_name: str, delete_expired: bool = True
    ) -> Optional[ProcessedDataset]:
        """
        Return the cached dataset if present and younger than the max age.

        A hit refreshes the entry's last-access time. Expired entries are
        deleted unless ``delete_expired`` is False, which keeps them
        available to get_stale() until they are replaced or evicted.

        Returns:
            ProcessedDataset, or None on a miss
        """
        with self._lock:
            key = self.build_key(source_url, file_name)
            entry = self._load(key)
            if entry is None:
                return None

            now = self._now_ms()
            if now - entry.timestamp < self.config.max_age_ms:
                logger.info(f"Using cached EPW data for {file_name}")
                self._touch(entry, now)
                return entry.data

            logger.info(f"Cache expired for {file_name}")
            if not delete_expired:
                return None
            try:
                self._delete(key)
            except CacheStorageError as e:
                logger.warning(f"Failed to remove expired entry for {file_name}: {e}")
            return None

    def get_stale(self, source_url: str, file_name: str) -> Optional[ProcessedDataset]:
        """Return any cached dataset for the source, ignoring its age."""
        with self._lock:
            entry = self._load(self.build_key(source_url, file_name))
            return entry.data if entry is not None else None

    def _touch(self, entry: CacheEntry, now: int) -> None:
        updated = entry.model_copy(update={"timestamp": now})
        payload = self._serialize(updated)
        self._ensure_space(updated.key, len(payload))
        try:
            self._write(updated, payload)
        except CacheStorageError as e:
            # Returning the hit matters more than the LRU position
            logger.warning(f"Could not update cache timestamp: {e}")

    # ------------------------------------------------------------------
    # Writes and eviction
    # ------------------------------------------------------------------

    def put(self, source_url: str, file_name: str, dataset: ProcessedDataset) -> bool:
        """
        Cache a dataset, evicting least recently used entries to make room.

        Returns:
            True if the dataset was stored, False if it was dropped
        """
        with self._lock:
            entry = CacheEntry(
                key=self.build_key(source_url, file_name),
                timestamp=self._now_ms(),
                source_url=source_url,
                original_file_name=file_name,
                data=dataset,
            )
            payload = self._serialize(entry)
            size = len(payload)

            if size > self.config.max_bytes:
                logger.warning(
                    f"Not caching {file_name}: entry size {size / 1024 / 1024:.2f} MB "
                    f"exceeds cache budget {self.config.max_bytes / 1024 / 1024:.2f} MB"
                )
                return False

            self._ensure_space(entry.key, size)

            try:
                self._write(entry, payload)
            except StorageQuotaError as e:
                logger.warning(f"Storage quota exceeded caching {file_name} ({size} bytes): {e}")
                logger.info("Attempting aggressive cleanup...")
                self._aggressive_cleanup()
                try:
                    self._write(entry, payload)
                except CacheStorageError as final_error:
                    logger.warning(
                        f"Unable to cache {file_name} - storage limit reached: {final_error}"
                    )
                    return False
                logger.info(f"Cached EPW data for {file_name} after aggressive cleanup")
                return True
            except CacheStorageError as e:
                logger.warning(f"Failed to cache EPW data for {file_name}: {e}")
                return False

            logger.info(f"Cached EPW data for {file_name} ({size / 1024 / 1024:.2f} MB)")
            return True

    def _ensure_space(self, key: str, required: int) -> None:
        """Evict LRU entries so that usage plus ``required`` fits the budget."""
        try:
            index = self._ensure_index()
            budget = self.config.max_bytes
            current = self._usage() - (index[key].size if key in index else 0)

            if current + required > budget:
                target = max(budget - required, budget * self.config.eviction_target_ratio)
                current = self._evict_to(target, current, keep=key)
                if current + required > budget:
                    self._evict_to(budget - required, current, keep=key)
        except CacheStorageError as e:
            logger.warning(f"Failed to ensure storage space: {e}")
            self._aggressive_cleanup()

    def _evict_to(self, target: float, current: int, keep: str) -> int:
        """Delete oldest entries until ``current`` <= ``target``; returns new usage."""
        candidates = sorted(
            ((key, record) for key, record in self._ensure_index().items() if key != keep),
            key=lambda item: item[1].timestamp,
        )
        for key, record in candidates:
            if current <= target:
                break
            self._delete(key)
            current -= record.size
            logger.info(f"Removed old cache entry: {record.file_name} ({record.size} bytes)")

        logger.info(f"Cache cleaned to {current / 1024 / 1024:.2f} MB")
        return current

    def _aggressive_cleanup(self) -> None:
        """Keep only the most recently used entry."""
        try:
            ordered = sorted(
                self._ensure_index().items(),
                key=lambda item: item[1].timestamp,
                reverse=True,
            )
            for key, record in ordered[1:]:
                self._delete(key)
                logger.info(f"Aggressively removed cache entry: {record.file_name}")
            logger.info(f"Aggressive cleanup complete. Kept {min(1, len(ordered))} entries.")
        except CacheStorageError as e:
            logger.warning(f"Failed to perform aggressive cleanup: {e}")
            self.clear()

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def clear(self) -> int:
        """Delete every entry in the cache namespace; returns the count removed."""
        with self._lock:
            removed = 0
            try:
                for key in self.backend.keys(self.config.key_prefix):
                    self.backend.delete(key)
                    removed += 1
            except CacheStorageError as e:
                logger.warning(f"Failed to clear cache: {e}")
            # Force a rescan on next use in case some deletes failed
            self._index = None
            logger.info(f"Cleared {removed} cached EPW entries")
            return removed

    def info(self) -> CacheInfo:
        """List cached datasets, newest first."""
        with self._lock:
            try:
                index = self._ensure_index()
            except CacheStorageError as e:
                logger.warning(f"Failed to get cache info: {e}")
                index = {}

            entries = [
                CacheEntryInfo(
                    key=key,
                    file_name=record.file_name,
                    source_url=record.source_url,
                    timestamp=datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc),
                    size=record.size,
                )
                for key, record in index.items()
            ]
            entries.sort(key=lambda e: e.timestamp, reverse=True)

            return CacheInfo(
                count=len(entries),
                total_bytes=sum(e.size for e in entries),
                entries=entries,
            )

    def stats(self) -> CacheStatus:
        """Usage against the byte budget; near limit above 80% by default."""
        with self._lock:
            try:
                index = self._ensure_index()
            except CacheStorageError as e:
                logger.warning(f"Failed to calculate cache size: {e}")
                index = {}

            total = sum(record.size for record in index.values())
            usage_percent = total / self.config.max_bytes * 100

            return CacheStatus(
                count=len(index),
                total_bytes=total,
                max_bytes=self.config.max_bytes,
                usage_percent=usage_percent,
                is_near_limit=usage_percent > self.config.near_limit_percent,
            )

    def status(self) -> CacheStatus:
        """Alias of stats() used by the API and CLI."""
        return self.stats()
