"""Pillow helpers for OCR input and thumbnails."""

import io
import logging
import zipfile
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from docmerge.interfaces.errors import ExtractionError

logger = logging.getLogger(__name__)

_MEDIA_PREFIX = "word/media/"
_RASTER_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff"}


def embedded_scan_image(data: bytes) -> bytes | None:
    """Return the largest raster image embedded in a .docx, if any."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            candidates = [
                info
                for info in archive.infolist()
                if info.filename.startswith(_MEDIA_PREFIX)
                and Path(info.filename).suffix.lower() in _RASTER_SUFFIXES
            ]
            if not candidates:
                return None
            largest = max(candidates, key=lambda info: info.file_size)
            logger.info(f"Using embedded image {largest.filename} for OCR")
            return archive.read(largest)
    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Cannot read embedded media: {e}") from e


def render_for_ocr(image_bytes: bytes, destination: Path) -> Path:
    """Write ``image_bytes`` as a greyscale PNG the OCR executable can read.

    Raises:
        ExtractionError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.seek(0)
            rendered = ImageOps.exif_transpose(image).convert("L")
            rendered.save(destination, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        raise ExtractionError(f"Cannot render image for OCR: {e}") from e
    return destination


def make_thumbnail(image_bytes: bytes, max_px: int) -> bytes:
    """Return a PNG thumbnail whose longest edge is at most ``max_px``.

    Raises:
        ExtractionError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            thumbnail = ImageOps.exif_transpose(image).convert("RGB")
            thumbnail.thumbnail((max_px, max_px))
            buffer = io.BytesIO()
            thumbnail.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        raise ExtractionError(f"Cannot create thumbnail: {e}") from e
    return buffer.getvalue()
