"""
Raw Payload Archive
Writes submitted payload bytes to versioned files under the profile directory.
"""
import logging
import os
from pathlib import Path

from fingerprint_service.application.services.identity import archive_filename

logger = logging.getLogger(__name__)


class BlobArchive:
    """Filesystem side of the archive; the index lives in fingerprint_archive."""

    def __init__(self, directory: Path, version: int, extension: str = ".enc"):
        self.directory = Path(directory)
        self.version = version
        self.extension = extension

    def new_filename(self) -> str:
        return archive_filename(self.version, self.extension)

    def ensure_directory(self) -> None:
        self.directory.mkdir(mode=0o755, parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        return self.directory / filename

    def write(self, filename: str, payload: bytes) -> Path:
        """
        Write payload bytes to a new file, creating the directory on demand.

        Returns:
            Full path of the written file
        """
        self.ensure_directory()
        path = self.path_for(filename)
        with open(path, "xb") as fh:
            fh.write(payload)
        return path

    def discard(self, filename: str) -> bool:
        """
        Remove an archived file after a failed index write.
        Failures are logged and reported, not raised; the orphan is left
        for out-of-band cleanup.
        """
        path = self.path_for(filename)
        try:
            os.remove(path)
            return True
        except OSError as e:
            logger.error(f"Failed to remove orphaned archive file {path}: {e}")
            return False
