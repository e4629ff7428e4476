"""Live text of a Word document as python-docx sees it.

Upload-time text comes from the main body only. Placeholders also live in
headers, footers, tables and text boxes, so merge time walks every story
part of the package instead.
"""

import io
import logging
import re
from collections.abc import Iterator

from docx import Document
from docx.document import Document as DocxDocument
from docx.oxml.ns import qn

from docmerge.interfaces.errors import FormatError

logger = logging.getLogger(__name__)

# ZIP local file header; every OOXML container starts with it.
CONTAINER_SIGNATURE = b"PK\x03\x04"

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")

_STORY_PART = re.compile(r"^/word/(document|header\d*|footer\d*)\.xml$")


def is_container(data: bytes) -> bool:
    return data[: len(CONTAINER_SIGNATURE)] == CONTAINER_SIGNATURE


def ensure_container(data: bytes) -> None:
    """Raise FormatError unless ``data`` starts with the ZIP signature."""
    if not is_container(data):
        raise FormatError(
            "File is not a ZIP-based document container "
            f"(leading bytes {data[:4]!r}, expected {CONTAINER_SIGNATURE!r})"
        )


def load_document(source: bytes | str) -> DocxDocument:
    """Open a .docx from bytes or a path.

    Raises:
        FormatError: If the container is not a readable Word document.
    """
    try:
        if isinstance(source, bytes):
            return Document(io.BytesIO(source))
        return Document(source)
    except Exception as e:
        logger.warning(f"Could not open Word document: {e}")
        raise FormatError(f"Not a readable Word document: {e}") from e


def iter_story_roots(document: DocxDocument) -> Iterator:
    """Yield the root element of the body and of every header and footer part."""
    parts = [
        part
        for part in document.part.package.iter_parts()
        if _STORY_PART.match(str(part.partname)) and hasattr(part, "element")
    ]
    # body first, then headers and footers in name order
    parts.sort(key=lambda part: (not str(part.partname).endswith("document.xml"), str(part.partname)))
    for part in parts:
        yield part.element


def paragraph_runs(paragraph) -> list:
    """The ``w:r`` elements belonging to a paragraph, in document order.

    Runs wrapped in hyperlinks, tracked insertions, smart tags, fields or
    content controls are included. Runs of paragraphs nested inside this one
    (text boxes) are not; they belong to their own paragraph.
    """
    runs = []
    _collect_runs(paragraph, runs)
    return runs


def _collect_runs(element, runs: list) -> None:
    for child in element:
        if child.tag == W_R:
            runs.append(child)
        elif child.tag != W_P:
            _collect_runs(child, runs)


def paragraph_text(paragraph) -> str:
    """Concatenate the ``w:t`` text of a paragraph's runs."""
    return "".join(
        t.text or ""
        for run in paragraph_runs(paragraph)
        for t in run
        if t.tag == W_T
    )


def document_text(document: DocxDocument) -> str:
    """All paragraph text of every story part, one paragraph per line."""
    lines = []
    for root in iter_story_roots(document):
        lines.extend(paragraph_text(paragraph) for paragraph in root.iter(W_P))
    return "\n".join(lines)


def read_live_text(data: bytes) -> str:
    """Load ``data`` and return its live text (see document_text)."""
    return document_text(load_document(data))
