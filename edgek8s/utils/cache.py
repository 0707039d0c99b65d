"""Local cache of downloaded artefacts, keyed by file name."""
import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional, Union

logger = logging.getLogger("edgek8s.cache")


class ArtefactCache:
    """Directory backed artefact cache.

    Entries are stored under the SHA-256 of the artefact name, so versioned
    names (which embed the release) never collide.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _entry(self, artefact: str) -> Path:
        return self.directory / hashlib.sha256(artefact.encode('utf-8')).hexdigest()

    def get(self, artefact: str) -> Optional[Path]:
        """Return the cached file for ``artefact`` or None on a miss."""
        entry = self._entry(artefact)
        if entry.is_file():
            return entry
        return None

    def put(self, artefact: str, source: BinaryIO) -> Path:
        """Store the contents of ``source`` for ``artefact``."""
        entry = self._entry(artefact)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory)
        try:
            with os.fdopen(fd, 'wb') as f:
                shutil.copyfileobj(source, f)
            os.replace(tmp_name, entry)
        except OSError:
            os.unlink(tmp_name)
            raise
        logger.debug(f"Cached artefact '{artefact}' as {entry.name}")
        return entry
