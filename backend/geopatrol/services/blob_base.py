"""
GeoPatrol Backend — Abstract Blob Store Interface
===================================================

What:  Contract for wherever delivery photos are persisted and served from.
Who:   ReportService writes through it; routes build photo URLs with it.

Design Decision:
    ReportService only needs "save these bytes, give me a reference" and
    "turn a reference into a URL". Keeping that behind an ABC means the
    local upload directory can later be swapped for object storage
    without touching the service or its tests.
"""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """
    Abstract photo storage.

    Contract:
        - save() returns an opaque reference that is stored in the report row
        - references contain no user-controlled path components
        - failures are raised as FileStorageError
    """

    @abstractmethod
    async def save(self, original_filename: str, content: bytes) -> str:
        """
        Persist photo bytes under a newly generated name.

        Args:
            original_filename: Client-side filename; only its extension is kept.
            content: Raw photo bytes.

        Returns:
            The reference (generated filename) to store with the report.

        Raises:
            FileStorageError: When the bytes could not be written.
        """
        ...

    @abstractmethod
    async def delete(self, reference: str) -> None:
        """Best-effort removal of a stored blob (compensation after a failed insert)."""
        ...

    @abstractmethod
    def url_for(self, reference: str) -> str:
        """Public path under which the blob is retrievable."""
        ...
