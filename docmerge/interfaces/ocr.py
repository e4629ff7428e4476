"""OCR engine interface."""

from abc import ABC, abstractmethod
from pathlib import Path


class BaseOcrEngine(ABC):
    """Abstract base class for OCR strategies.

    Implementations run an external recognizer on a rendered image.
    """

    @abstractmethod
    async def recognize(self, image_path: Path) -> str:
        """Recognize the text in an image.

        Args:
            image_path: Path to a rendered raster image.

        Returns:
            The recognized text.

        Raises:
            SubprocessFailure: If the recognizer fails, times out or is missing.
        """
        ...
