"""Client for downloading EPW files packed in remote ZIP archives."""
import hashlib
import io
import logging
import zipfile
import zlib
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import ArchiveError, FetchError
from ..processing.parser import decode_text
from .config import FetchConfig

logger = logging.getLogger(__name__)


class ArchiveClient:
    """Fetches a ZIP archive over HTTP and extracts one EPW member as text."""

    TEXT_ENCODINGS = ["utf-8", "latin-1"]

    def __init__(self, config: Optional[FetchConfig] = None):
        """Initialize archive client.

        Args:
            config: Fetch configuration
        """
        self.config = config or FetchConfig()
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=self.config.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({
            "User-Agent": self.config.user_agent,
            "Accept": "application/zip, application/octet-stream, */*",
        })
        return session

    def download(self, url: str) -> bytes:
        """Download an archive.

        Args:
            url: Archive URL

        Returns:
            Raw archive bytes

        Raises:
            FetchError: On network failure or a non-success HTTP status
        """
        logger.info(f"Downloading ZIP file from: {url}")

        try:
            response = self.session.get(url, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to download {url}: {e}")
            raise FetchError(f"Network error fetching {url}: {e}") from e

        if not response.ok:
            logger.error(f"Download failed with status {response.status_code}: {url}")
            raise FetchError(
                f"Failed to fetch ZIP file: {response.status_code} {response.reason}"
            )

        content = response.content
        checksum = hashlib.sha256(content).hexdigest()
        logger.info(f"Downloaded {len(content)} bytes (sha256={checksum[:16]})")
        return content

    @staticmethod
    def find_member(names: List[str], file_name: str) -> Optional[str]:
        """Pick the archive member for ``file_name``.

        Exact name first, then a case-insensitive match, then the first
        ``.epw`` member.
        """
        if file_name in names:
            return file_name

        lowered = file_name.lower()
        for name in names:
            if name.lower() == lowered:
                return name

        for name in names:
            if name.lower().endswith(".epw"):
                return name

        return None

    def extract(self, content: bytes, file_name: str) -> str:
        """Extract one member of a ZIP archive as text.

        Raises:
            ArchiveError: If the archive is unreadable or lacks the file
        """
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as archive:
                names = [info.filename for info in archive.infolist() if not info.is_dir()]
                member = self.find_member(names, file_name)
                if member is None:
                    raise ArchiveError(
                        f'EPW file "{file_name}" not found in ZIP archive. '
                        f"Available files: {', '.join(names)}"
                    )
                logger.info(f"Extracting EPW file: {member}")
                data = archive.read(member)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            # RuntimeError covers encrypted members
            raise ArchiveError(f"Invalid ZIP archive: {e}") from e

        return decode_text(data, self.TEXT_ENCODINGS)

    def fetch(self, url: str, file_name: str) -> str:
        """Download an archive and return the named EPW file's text.

        Raises:
            FetchError: On download failure
            ArchiveError: On archive failure
        """
        return self.extract(self.download(url), file_name)

    def close(self):
        """Close the HTTP session."""
        self.session.close()
