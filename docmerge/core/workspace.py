"""Scratch files for per-request working copies.

Every merge and OCR run works on private copies so concurrent requests never
observe each other's in-flight files. Copies are removed when the scope exits,
whatever the outcome.
"""

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_quietly(path: Path) -> None:
    """Delete a scratch file, logging instead of raising on failure."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove scratch file {path}: {e}")


@contextmanager
def scratch_file(
    directory: Path | None = None,
    suffix: str = "",
    data: bytes | None = None,
) -> Iterator[Path]:
    """Create a uniquely named scratch file and remove it on exit.

    Args:
        directory: Where to create the file. Defaults to the system temp dir.
        suffix: File suffix, e.g. ".docx".
        data: Optional initial contents.

    Yields:
        Path to the scratch file.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, prefix="docmerge_", dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            if data is not None:
                handle.write(data)
        yield path
    finally:
        remove_quietly(path)
