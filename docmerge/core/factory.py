"""Component Factory for strategy instantiation.

The Factory Pattern allows the application to instantiate
different strategy implementations at runtime based on
configuration or environment variables.
"""

import logging

from docmerge.core.config import Settings, get_settings
from docmerge.interfaces.extractor import BaseTextExtractor
from docmerge.interfaces.ocr import BaseOcrEngine
from docmerge.interfaces.storage import BaseStorage
from docmerge.strategies.extraction import MammothTextExtractor
from docmerge.strategies.ocr import TesseractCliEngine
from docmerge.strategies.storage import LocalFileStorage
from docmerge.strategies.template_engine import (
    MergeEngine,
    PreviewRenderer,
    TemplateImporter,
    default_helpers,
)

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        settings = get_settings()
        factory = ComponentFactory(settings)

        importer = factory.get_importer()
        engine = factory.get_merge_engine()
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._extractor_cache: BaseTextExtractor | None = None
        self._ocr_cache: BaseOcrEngine | None = None
        self._storage_cache: BaseStorage | None = None
        self._importer_cache: TemplateImporter | None = None
        self._merge_engine_cache: MergeEngine | None = None
        self._preview_cache: PreviewRenderer | None = None

    def get_text_extractor(self, extractor_type: str = "mammoth") -> BaseTextExtractor:
        """Get a text extractor instance.

        Args:
            extractor_type: The extractor type to instantiate.

        Returns:
            A BaseTextExtractor implementation instance.

        Raises:
            ValueError: If the extractor type is unknown.
        """
        if self._extractor_cache is None:
            logger.info(f"Instantiating text extractor: {extractor_type}")

            match extractor_type:
                case "mammoth":
                    self._extractor_cache = MammothTextExtractor()
                case _:
                    raise ValueError(
                        f"Unknown extractor type: {extractor_type}. "
                        f"Valid options: 'mammoth'"
                    )

        return self._extractor_cache

    def get_ocr_engine(self) -> BaseOcrEngine:
        """Get the OCR engine configured by the tesseract settings."""
        if self._ocr_cache is None:
            logger.info(f"Instantiating OCR engine: {self._settings.tesseract_cmd}")

            self._ocr_cache = TesseractCliEngine(
                command=self._settings.tesseract_cmd,
                language=self._settings.ocr_language,
                timeout_s=self._settings.ocr_timeout_s,
                fail_on_stderr=self._settings.ocr_fail_on_stderr,
            )

        return self._ocr_cache

    def get_storage(self) -> BaseStorage:
        if self._storage_cache is None:
            logger.info(f"Instantiating local storage at {self._settings.storage_dir}")
            self._storage_cache = LocalFileStorage(self._settings.storage_dir)

        return self._storage_cache

    def get_importer(self) -> TemplateImporter:
        """Get the template import pipeline.

        Returns:
            A TemplateImporter wired to the configured extractor, OCR and storage.
        """
        if self._importer_cache is None:
            logger.info("Instantiating template importer")

            self._importer_cache = TemplateImporter(
                extractor=self.get_text_extractor(),
                ocr=self.get_ocr_engine(),
                storage=self.get_storage(),
                work_dir=self._settings.work_dir,
                thumbnail_max_px=self._settings.thumbnail_max_px,
            )

        return self._importer_cache

    def get_merge_engine(self) -> MergeEngine:
        """Get the merge engine.

        Returns:
            A MergeEngine using the built-in helpers and configured storage.
        """
        if self._merge_engine_cache is None:
            logger.info("Instantiating merge engine")

            self._merge_engine_cache = MergeEngine(
                storage=self.get_storage(),
                helpers=default_helpers,
                work_dir=self._settings.work_dir,
                min_size_ratio=self._settings.merge_min_size_ratio,
            )

        return self._merge_engine_cache

    def get_preview_renderer(self) -> PreviewRenderer:
        if self._preview_cache is None:
            logger.info("Instantiating preview renderer")
            self._preview_cache = PreviewRenderer(self.get_text_extractor())

        return self._preview_cache

    def clear_cache(self) -> None:
        """Clear all cached component instances.

        This forces new instances to be created on next access.
        Useful for testing or when settings change.
        """
        self._extractor_cache = None
        self._ocr_cache = None
        self._storage_cache = None
        self._importer_cache = None
        self._merge_engine_cache = None
        self._preview_cache = None
        logger.debug("Component factory cache cleared")


# Global factory instance
_factory: ComponentFactory | None = None


def get_factory() -> ComponentFactory:
    """Get or create the global ComponentFactory instance.

    Returns:
        The singleton ComponentFactory instance.
    """
    global _factory
    if _factory is None:
        _factory = ComponentFactory()
    return _factory
