"""HTML preview of merged documents."""

import logging

from docmerge.interfaces.extractor import BaseTextExtractor

logger = logging.getLogger(__name__)

PREVIEW_STYLE = (
    "font-family: 'Times New Roman', Times, serif; "
    "font-size: 12pt; "
    "line-height: 1.5; "
    "max-width: 816px; "
    "margin: 0 auto; "
    "padding: 48px; "
    "background: #ffffff; "
    "color: #1a1a1a; "
    "box-shadow: 0 1px 4px rgba(0, 0, 0, 0.15);"
)


class PreviewRenderer:
    """Renders a merged document as an HTML fragment for in-browser display."""

    def __init__(self, extractor: BaseTextExtractor) -> None:
        self._extractor = extractor

    def render(self, data: bytes) -> str:
        """Convert document bytes to styled HTML.

        Conversion warnings are logged and otherwise ignored.

        Raises:
            ExtractionError: If the document cannot be converted at all.
        """
        conversion = self._extractor.to_html(data)
        for warning in conversion.warnings:
            logger.warning(f"Preview conversion warning: {warning}")
        return f'<div class="merge-preview" style="{PREVIEW_STYLE}">{conversion.html}</div>'
