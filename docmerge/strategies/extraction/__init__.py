"""Text extraction strategies."""

from docmerge.strategies.extraction.mammoth_extractor import MammothTextExtractor

__all__ = [
    "MammothTextExtractor",
]
