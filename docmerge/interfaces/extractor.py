"""Abstract base classes for the text extraction boundary.

The Strategy Pattern keeps the engine independent of the library that
turns document bytes into text or HTML.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class HtmlConversion:
    """Result of converting a document to HTML.

    Attributes:
        html: The converted HTML fragment.
        warnings: Non-fatal messages reported by the converter.
    """

    html: str
    warnings: list[str] = field(default_factory=list)


class BaseTextExtractor(ABC):
    """Abstract base class for document text extraction strategies.

    Example:
        ```python
        class MammothTextExtractor(BaseTextExtractor):
            def extract_text(self, data: bytes) -> str:
                ...
        ```
    """

    @abstractmethod
    def extract_text(self, data: bytes) -> str:
        """Convert document bytes to best-effort plain text.

        Args:
            data: The binary document.

        Returns:
            The extracted text, or an empty string when the document has no
            text layer (e.g. a scanned image).

        Raises:
            ExtractionError: If the document cannot be read.
        """
        ...

    @abstractmethod
    def to_html(self, data: bytes) -> HtmlConversion:
        """Convert document bytes to an HTML fragment.

        Raises:
            ExtractionError: If the document cannot be converted.
        """
        ...

    @property
    @abstractmethod
    def supported_extensions(self) -> set[str]:
        """Return the set of file extensions supported by this extractor."""
        ...

    def supports_file(self, filename: str) -> bool:
        """Check if this extractor supports the given file name."""
        import os

        _, ext = os.path.splitext(filename)
        return ext.lower() in self.supported_extensions
