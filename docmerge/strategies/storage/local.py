"""Local filesystem storage for template files."""

import asyncio
import logging
import re
import uuid
from pathlib import Path

from docmerge.interfaces.storage import BaseStorage

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: str) -> str:
    """Reduce an uploaded filename to a safe basename."""
    base = Path(name.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "upload"


class LocalFileStorage(BaseStorage):
    """Stores files under a base directory as ``<uuid>_<name>``.

    File references are the stored basenames; anything that resolves
    outside the base directory is treated as missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, file_ref: str) -> Path:
        path = (self._base_dir / file_ref).resolve()
        if path.parent != self._base_dir.resolve():
            raise FileNotFoundError(f"No stored file for reference: {file_ref}")
        return path

    async def save(self, data: bytes, original_name: str) -> str:
        file_ref = f"{uuid.uuid4().hex}_{safe_filename(original_name)}"
        path = self._base_dir / file_ref
        await asyncio.to_thread(path.write_bytes, data)
        logger.info(f"Stored {len(data)} bytes as {file_ref}")
        return file_ref

    async def read(self, file_ref: str) -> bytes:
        path = self._path_for(file_ref)
        if not path.is_file():
            raise FileNotFoundError(f"No stored file for reference: {file_ref}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, file_ref: str) -> None:
        try:
            path = self._path_for(file_ref)
        except FileNotFoundError:
            logger.warning(f"Ignoring delete of invalid reference: {file_ref}")
            return
        if not path.exists():
            logger.info(f"Nothing to delete for {file_ref}")
            return
        await asyncio.to_thread(path.unlink)
        logger.info(f"Deleted stored file {file_ref}")
