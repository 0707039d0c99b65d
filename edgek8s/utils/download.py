"""Blocking HTTP downloads."""
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Union

import requests
import typer

from ..errors import ArtefactDownloadError

logger = logging.getLogger("edgek8s.download")

CHUNK_SIZE = 1024 * 1024
DEFAULT_TIMEOUT = 600


def download_file(
    url: str,
    path: Union[str, Path],
    timeout: int = DEFAULT_TIMEOUT,
    progress: bool = True,
) -> None:
    """Download a file from the given URL and store it at the given path.

    The response is written to a temporary file next to ``path`` which is
    only moved into place once the whole body was received, so a failed
    download never leaves a partial file behind.

    Args:
        url: URL to download
        path: Destination file path
        timeout: Connect/read timeout in seconds
        progress: Show a progress bar when the content length is known

    Raises:
        ArtefactDownloadError: On transport errors or a non 2xx status
    """
    path = Path(path)
    filename = path.name
    path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Downloading file '{filename}' from '{url}' to '{path.parent}'...")

    try:
        response = requests.get(url, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise ArtefactDownloadError(f"executing request for '{url}': {e}") from e

    with response:
        if not 200 <= response.status_code < 300:
            raise ArtefactDownloadError(f"downloading '{url}': unexpected status code: {response.status_code}")

        fd, tmp_name = tempfile.mkstemp(prefix=f".{filename}.", dir=path.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                _copy_body(response, f, filename, progress)
            os.replace(tmp_name, path)
        except (requests.RequestException, OSError) as e:
            os.unlink(tmp_name)
            raise ArtefactDownloadError(f"storing response from '{url}': {e}") from e
        except BaseException:
            os.unlink(tmp_name)
            raise

    logger.info(f"Downloading file '{filename}' completed")


def _copy_body(response: requests.Response, f: BinaryIO, filename: str, progress: bool) -> None:
    length = response.headers.get('Content-Length')
    chunks = response.iter_content(chunk_size=CHUNK_SIZE)

    if progress and length and length.isdigit():
        with typer.progressbar(length=int(length), label=f"Downloading file: {filename}") as bar:
            for chunk in chunks:
                f.write(chunk)
                bar.update(len(chunk))
        return

    for chunk in chunks:
        f.write(chunk)
