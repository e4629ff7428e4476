"""Mammoth-based text extraction.

Converts .docx bytes to plain text or HTML. Image-only documents yield an
empty string, which tells the importer to fall back to OCR.
"""

import io
import logging

import mammoth

from docmerge.interfaces.errors import ExtractionError
from docmerge.interfaces.extractor import BaseTextExtractor, HtmlConversion

logger = logging.getLogger(__name__)


class MammothTextExtractor(BaseTextExtractor):
    """Extracts raw text and HTML from Word documents using mammoth."""

    def extract_text(self, data: bytes) -> str:
        """Extract the raw text of the document body.

        Args:
            data: The .docx bytes.

        Returns:
            The body text, or an empty string when there is no text layer.

        Raises:
            ExtractionError: If mammoth cannot read the document.
        """
        try:
            result = mammoth.extract_raw_text(io.BytesIO(data))
        except Exception as e:
            logger.error(f"Text extraction failed: {e}", exc_info=True)
            raise ExtractionError(f"Text extraction failed: {e}") from e

        self._log_messages(result.messages)
        text = result.value or ""
        logger.info(f"Extracted {len(text.strip())} characters of text")
        return text if text.strip() else ""

    def to_html(self, data: bytes) -> HtmlConversion:
        """Convert the document to an HTML fragment.

        Raises:
            ExtractionError: If mammoth cannot convert the document.
        """
        try:
            result = mammoth.convert_to_html(io.BytesIO(data))
        except Exception as e:
            logger.error(f"HTML conversion failed: {e}", exc_info=True)
            raise ExtractionError(f"HTML conversion failed: {e}") from e

        return HtmlConversion(
            html=result.value or "",
            warnings=[message.message for message in result.messages],
        )

    def _log_messages(self, messages) -> None:
        for message in messages:
            logger.debug(f"mammoth {message.type}: {message.message}")

    @property
    def supported_extensions(self) -> set[str]:
        """Return supported file extensions."""
        return {".docx"}
