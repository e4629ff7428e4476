"""Abstract base classes for template processing strategies."""

from docmerge.interfaces.errors import (
    DocMergeError,
    DuplicateVariableError,
    ExtractionError,
    FormatError,
    MergeVerificationFailure,
    SubprocessFailure,
    ValidationError,
)
from docmerge.interfaces.extractor import BaseTextExtractor, HtmlConversion
from docmerge.interfaces.ocr import BaseOcrEngine
from docmerge.interfaces.storage import BaseStorage

__all__ = [
    "BaseTextExtractor",
    "BaseOcrEngine",
    "BaseStorage",
    "HtmlConversion",
    "DocMergeError",
    "DuplicateVariableError",
    "ExtractionError",
    "FormatError",
    "MergeVerificationFailure",
    "SubprocessFailure",
    "ValidationError",
]
