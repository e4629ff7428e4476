"""OCR engine implementations."""

from docmerge.strategies.ocr.tesseract import TesseractCliEngine

__all__ = ["TesseractCliEngine"]
