import io

import pytest
import requests

from edgek8s.errors import ArtefactDownloadError
from edgek8s.utils.cache import ArtefactCache
from edgek8s.utils.download import download_file


def test_download_file(tmp_path, requests_mock):
    requests_mock.get("https://example.com/file.txt", content=b"hello")

    download_file("https://example.com/file.txt", tmp_path / "nested" / "file.txt", progress=False)

    assert (tmp_path / "nested" / "file.txt").read_bytes() == b"hello"


def test_download_file_transport_error(tmp_path, requests_mock):
    requests_mock.get("https://example.com/file.txt", exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ArtefactDownloadError, match="executing request"):
        download_file("https://example.com/file.txt", tmp_path / "file.txt")
    assert list(tmp_path.iterdir()) == []


def test_download_file_bad_status_leaves_nothing_behind(tmp_path, requests_mock):
    requests_mock.get("https://example.com/file.txt", status_code=403)

    with pytest.raises(ArtefactDownloadError, match="unexpected status code: 403"):
        download_file("https://example.com/file.txt", tmp_path / "file.txt")
    assert list(tmp_path.iterdir()) == []


def test_artefact_cache(tmp_path):
    cache = ArtefactCache(tmp_path / "cache")

    assert cache.get("rke2.linux-amd64.tar.gz") is None

    entry = cache.put("rke2.linux-amd64.tar.gz", io.BytesIO(b"binary"))

    assert cache.get("rke2.linux-amd64.tar.gz") == entry
    assert entry.read_bytes() == b"binary"
    assert cache.get("sha256sum-amd64.txt") is None
