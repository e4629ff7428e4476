"""Template upload pipeline.

Turns an uploaded .docx or scanned image into stored bytes, the raw template
text and its variable set. Text comes from the document's own text layer;
when that is empty (image-only documents, plain scans) OCR takes over.
"""

import asyncio
import logging
from pathlib import Path

from docmerge.core.workspace import scratch_file
from docmerge.interfaces.errors import ExtractionError, FormatError
from docmerge.interfaces.extractor import BaseTextExtractor
from docmerge.interfaces.ocr import BaseOcrEngine
from docmerge.interfaces.storage import BaseStorage
from docmerge.strategies.extraction.docx_text import ensure_container
from docmerge.strategies.imaging import embedded_scan_image, make_thumbnail, render_for_ocr
from docmerge.strategies.template_engine.models import (
    ImportResult,
    TemplateVariable,
    VariableSource,
)
from docmerge.strategies.template_engine.placeholders import extract_variables
from docmerge.strategies.template_engine.unifier import unify_variables

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATE_TEXT = "text not extracted, add variables manually"

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
IMAGE_MEDIA_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/bmp",
    "image/gif",
}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif"}


class TemplateImporter:
    """Imports uploaded templates."""

    def __init__(
        self,
        extractor: BaseTextExtractor,
        ocr: BaseOcrEngine,
        storage: BaseStorage,
        work_dir: Path | None = None,
        thumbnail_max_px: int = 256,
    ) -> None:
        self._extractor = extractor
        self._ocr = ocr
        self._storage = storage
        self._work_dir = work_dir
        self._thumbnail_max_px = thumbnail_max_px

    async def import_template(
        self,
        data: bytes,
        filename: str,
        media_type: str | None = None,
    ) -> ImportResult:
        """Extract, validate and store an uploaded template.

        Args:
            data: Uploaded bytes.
            filename: Client supplied filename.
            media_type: Client supplied content type, if any.

        Returns:
            ImportResult with the stored reference and detected variables.

        Raises:
            FormatError: If the upload is neither a Word document nor an image.
            ValidationError: If a placeholder is not a valid variable name.
                Nothing is stored in that case.
        """
        is_image = self._is_image(filename, media_type)
        if not is_image:
            if not self._extractor.supports_file(filename) and media_type != DOCX_MEDIA_TYPE:
                raise FormatError(f"Unsupported upload type: {filename} ({media_type})")
            ensure_container(data)

        logger.info(f"Importing template {filename} ({len(data)} bytes, image={is_image})")

        try:
            if is_image:
                text, ocr_text = "", await self._ocr_image(data)
            else:
                text, ocr_text = await self._docx_text(data)
        except ExtractionError as e:
            logger.warning(f"Text extraction failed for {filename}, degrading: {e}")
            file_ref = await self._storage.save(data, filename)
            return ImportResult(
                template_text=FALLBACK_TEMPLATE_TEXT,
                variables=[],
                file_ref=file_ref,
                thumbnail_ref=await self._thumbnail(data, filename, is_image),
                extraction_degraded=True,
            )

        template_text = text or ocr_text or ""
        text_vars = extract_variables(text, VariableSource.TEXT)
        ocr_vars: list[TemplateVariable] = []
        if ocr_text is not None:
            ocr_vars = extract_variables(ocr_text, VariableSource.OCR)
        variables = unify_variables(text_vars, ocr_vars)
        logger.info(f"Detected {len(variables)} variables: {[v.name for v in variables]}")

        file_ref = await self._storage.save(data, filename)
        return ImportResult(
            template_text=template_text,
            variables=variables,
            file_ref=file_ref,
            thumbnail_ref=await self._thumbnail(data, filename, is_image),
        )

    @staticmethod
    def _is_image(filename: str, media_type: str | None) -> bool:
        if media_type in IMAGE_MEDIA_TYPES:
            return True
        return Path(filename or "").suffix.lower() in IMAGE_EXTENSIONS

    async def _docx_text(self, data: bytes) -> tuple[str, str | None]:
        """Return (text layer, OCR text or None)."""
        text = await asyncio.to_thread(self._extractor.extract_text, data)
        if text.strip():
            return text, None

        logger.info("Document has no text layer, falling back to OCR")
        image = await asyncio.to_thread(embedded_scan_image, data)
        if image is None:
            raise ExtractionError("Document has neither text nor an embedded image")
        return "", await self._ocr_image(image)

    async def _ocr_image(self, image_bytes: bytes) -> str:
        with scratch_file(self._work_dir, ".png") as image_path:
            await asyncio.to_thread(render_for_ocr, image_bytes, image_path)
            text = await self._ocr.recognize(image_path)
        if not text.strip():
            raise ExtractionError("OCR produced no text")
        return text

    async def _thumbnail(self, data: bytes, filename: str, is_image: bool) -> str | None:
        """Store a PNG thumbnail of the upload; failures are logged only."""
        try:
            source = data if is_image else await asyncio.to_thread(embedded_scan_image, data)
            if source is None:
                return None
            thumbnail = await asyncio.to_thread(make_thumbnail, source, self._thumbnail_max_px)
            return await self._storage.save(thumbnail, f"{Path(filename).stem}_thumb.png")
        except Exception as e:
            logger.warning(f"Thumbnail generation failed for {filename}: {e}")
            return None
