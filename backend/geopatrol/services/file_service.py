"""
GeoPatrol Backend — Local File Blob Store
===========================================

What:  Stores delivery photos in a flat upload directory and names them.
How:   Generates a collision-resistant filename, writes bytes with aiofiles,
       and returns the filename as the blob reference.
Who:   Constructed once by create_app() and shared through app.state.

Naming Scheme:
    <epoch milliseconds>-<12 random hex chars><original extension>
    e.g. 1718000000123-9f86d081884c.jpg

    The millisecond prefix keeps names sortable by upload time. The random
    suffix means two uploads in the same millisecond never overwrite each
    other.

Directory Structure:
    uploads/
    ├── 1718000000123-9f86d081884c.jpg
    └── 1718000004551-2c26b46b68ff.png

    Served read-only by StaticFiles under settings.uploads_url_prefix.
"""

import logging
import os
import re
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from geopatrol.exceptions import FileStorageError
from geopatrol.services.blob_base import BlobStore

logger = logging.getLogger(__name__)

# Extensions are copied from the client filename; anything odd is dropped
_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class LocalBlobStore(BlobStore):
    """
    Blob store backed by a directory on the local file system.

    The directory is created on construction if it does not exist yet, so
    a fresh deployment can accept uploads without manual setup.
    """

    def __init__(self, upload_dir: str, url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("LocalBlobStore initialized with upload_dir=%s", self.upload_dir)

    @staticmethod
    def extension_of(filename: Optional[str]) -> str:
        """Lowercased extension including the dot, or '' if missing/unsafe."""
        ext = Path(filename or "").suffix.lower()
        return ext if _SAFE_EXTENSION.match(ext) else ""

    def generate_name(self, original_filename: str) -> str:
        millis = time.time_ns() // 1_000_000
        return f"{millis}-{uuid.uuid4().hex[:12]}{self.extension_of(original_filename)}"

    def path_for(self, reference: str) -> Path:
        """
        Absolute path of a stored blob.

        Raises FileStorageError if the reference would escape upload_dir.
        """
        path = (self.upload_dir / reference).resolve()
        if path.parent != self.upload_dir:
            raise FileStorageError(context={"reference": reference, "reason": "outside upload_dir"})
        return path

    async def save(self, original_filename: str, content: bytes) -> str:
        reference = self.generate_name(original_filename)
        path = self.path_for(reference)

        try:
            # 'xb': never overwrite an existing blob
            async with aiofiles.open(path, "xb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo %s: %s", reference, str(e))
            raise FileStorageError(
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Photo stored: %s (%d bytes)", reference, len(content))
        return reference

    async def delete(self, reference: str) -> None:
        """
        Remove a blob if it exists.

        Cleanup is best-effort: a failure is logged and the orphan stays on
        disk rather than masking the error that triggered the cleanup.
        """
        try:
            path = self.path_for(reference)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up photo: %s", reference)
            else:
                logger.debug("Cleanup: photo already gone: %s", reference)
        except (OSError, FileStorageError) as e:
            logger.warning("Failed to clean up photo %s: %s", reference, str(e))

    def url_for(self, reference: str) -> str:
        return f"{self.url_prefix}/{reference}"
