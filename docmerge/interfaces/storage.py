"""File storage interface.

The engine only ever talks to this triad; it never touches filesystem
paths of stored files directly.
"""

from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """Abstract base class for raw file storage."""

    @abstractmethod
    async def save(self, data: bytes, original_name: str) -> str:
        """Store bytes and return an opaque file reference."""
        ...

    @abstractmethod
    async def read(self, file_ref: str) -> bytes:
        """Return the bytes behind a file reference.

        Raises:
            FileNotFoundError: If nothing is stored under the reference.
        """
        ...

    @abstractmethod
    async def delete(self, file_ref: str) -> None:
        """Delete a stored file. Deleting a missing file is not an error."""
        ...
