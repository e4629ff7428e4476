"""Concrete strategy implementations."""

from docmerge.strategies.extraction import (
    MammothTextExtractor,
)
from docmerge.strategies.ocr import (
    TesseractCliEngine,
)
from docmerge.strategies.storage import (
    LocalFileStorage,
)

__all__ = [
    "MammothTextExtractor",
    "TesseractCliEngine",
    "LocalFileStorage",
]
