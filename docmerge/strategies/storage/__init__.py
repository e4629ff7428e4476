"""Template file storage implementations."""

from docmerge.strategies.storage.local import LocalFileStorage

__all__ = ["LocalFileStorage"]
