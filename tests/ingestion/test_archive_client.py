"""Unit tests for the remote archive client."""
import io
import zipfile
from unittest.mock import Mock

import pytest
import requests

from epwinsight.exceptions import ArchiveError, FetchError
from epwinsight.ingestion.archive_client import ArchiveClient
from epwinsight.ingestion.config import FetchConfig

URL = "https://climate.example.org/SWE_Gothenburg.zip"


def make_zip(members):
    """In-memory ZIP archive from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_response(content=b"", status_code=200, reason="OK"):
    response = Mock()
    response.content = content
    response.status_code = status_code
    response.reason = reason
    response.ok = status_code < 400
    return response


@pytest.fixture
def client():
    """Archive client with its HTTP session mocked out."""
    archive_client = ArchiveClient(FetchConfig(max_retries=0))
    archive_client.session.get = Mock()
    return archive_client


class TestArchiveClient:
    """Test archive download and extraction."""

    def test_session_configuration(self):
        archive_client = ArchiveClient(FetchConfig(user_agent="test-agent/1.0"))

        assert archive_client.session.headers["User-Agent"] == "test-agent/1.0"
        adapter = archive_client.session.get_adapter("https://example.org")
        assert adapter.max_retries.total == archive_client.config.max_retries
        assert 503 in adapter.max_retries.status_forcelist

    def test_fetch_exact_member(self, client):
        client.session.get.return_value = make_response(make_zip({
            "SWE_Gothenburg.epw": b"LOCATION,Gothenburg",
            "SWE_Gothenburg.stat": b"stats",
        }))

        text = client.fetch(URL, "SWE_Gothenburg.epw")

        assert text == "LOCATION,Gothenburg"
        client.session.get.assert_called_once_with(URL, timeout=client.config.timeout)

    def test_fetch_case_insensitive_member(self, client):
        client.session.get.return_value = make_response(make_zip({
            "swe_gothenburg.EPW": b"LOCATION,Gothenburg",
        }))

        assert client.fetch(URL, "SWE_Gothenburg.epw") == "LOCATION,Gothenburg"

    def test_fetch_falls_back_to_first_epw(self, client):
        client.session.get.return_value = make_response(make_zip({
            "readme.txt": b"hello",
            "other.epw": b"LOCATION,Other",
        }))

        assert client.fetch(URL, "SWE_Gothenburg.epw") == "LOCATION,Other"

    def test_missing_member_lists_available(self, client):
        client.session.get.return_value = make_response(make_zip({
            "readme.txt": b"hello",
            "data.csv": b"1,2,3",
        }))

        with pytest.raises(ArchiveError) as exc_info:
            client.fetch(URL, "SWE_Gothenburg.epw")

        assert "SWE_Gothenburg.epw" in str(exc_info.value)
        assert "readme.txt" in str(exc_info.value)

    def test_invalid_archive(self, client):
        client.session.get.return_value = make_response(b"<html>Not Found</html>")

        with pytest.raises(ArchiveError):
            client.fetch(URL, "SWE_Gothenburg.epw")

    def test_encrypted_member(self, client, encrypted_archive):
        client.session.get.return_value = make_response(encrypted_archive)

        with pytest.raises(ArchiveError) as exc_info:
            client.fetch(URL, "SWE_Gothenburg.epw")

        assert "encrypted" in str(exc_info.value)

    def test_latin1_member_decoded(self, client):
        client.session.get.return_value = make_response(make_zip({
            "a.epw": "LOCATION,Göteborg".encode("latin-1"),
        }))

        assert client.fetch(URL, "a.epw") == "LOCATION,Göteborg"

    def test_http_error_status(self, client):
        client.session.get.return_value = make_response(status_code=404, reason="Not Found")

        with pytest.raises(FetchError) as exc_info:
            client.fetch(URL, "SWE_Gothenburg.epw")

        assert "404" in str(exc_info.value)

    def test_network_error(self, client):
        client.session.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(FetchError):
            client.download(URL)

    def test_timeout(self, client):
        client.session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(FetchError):
            client.download(URL)

    @pytest.mark.parametrize("names,file_name,expected", [
        (["a.epw", "b.epw"], "b.epw", "b.epw"),
        (["A.EPW"], "a.epw", "A.EPW"),
        (["x.txt", "y.epw"], "z.epw", "y.epw"),
        (["x.txt"], "z.epw", None),
        ([], "z.epw", None),
    ])
    def test_find_member(self, names, file_name, expected):
        assert ArchiveClient.find_member(names, file_name) == expected

    def test_close(self, client):
        client.session.close = Mock()
        client.close()
        client.session.close.assert_called_once()
