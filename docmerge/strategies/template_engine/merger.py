"""Merge engine.

Substitutes entry values into a stored .docx template and verifies the
result before handing it out. Each merge walks

    LOADED -> VALIDATED -> SUBSTITUTED -> VERIFIED -> ACCEPTED | DEGRADED

A merge never ships a document that looks complete but still carries
placeholders or a damaged container: when verification fails the caller
gets the untouched template bytes back, flagged as degraded.
"""

import asyncio
import logging
from collections.abc import Mapping
from contextlib import ExitStack
from pathlib import Path

from docx.document import Document as DocxDocument
from docxtpl import DocxTemplate
from jinja2 import Environment, StrictUndefined

from docmerge.core.workspace import scratch_file
from docmerge.interfaces.errors import MergeVerificationFailure
from docmerge.interfaces.storage import BaseStorage
from docmerge.strategies.extraction.docx_text import (
    document_text,
    ensure_container,
    is_container,
    load_document,
    read_live_text,
)
from docmerge.strategies.template_engine.helpers import HelperRegistry, default_helpers
from docmerge.strategies.template_engine.models import MergeResult
from docmerge.strategies.template_engine.placeholders import scan_placeholders
from docmerge.strategies.template_engine.runs import PlaceholderRewriter
from docmerge.strategies.template_engine.unifier import unify_names
from docmerge.strategies.template_engine.values import EntryValue, build_context

logger = logging.getLogger(__name__)


class MergeEngine:
    """Mail-merges entry values into Word templates.

    The engine is stateless between calls; concurrent merges of the same
    template each work on their own scratch copies.
    """

    def __init__(
        self,
        storage: BaseStorage,
        helpers: HelperRegistry | None = None,
        work_dir: Path | None = None,
        min_size_ratio: float = 0.8,
    ) -> None:
        """Initialize the engine.

        Args:
            storage: Storage holding the template bytes.
            helpers: Helper table for directives. Defaults to the built-ins.
            work_dir: Directory for scratch copies. Defaults to the system temp dir.
            min_size_ratio: Smallest accepted output/input byte-size ratio.
        """
        self._storage = storage
        self._helpers = helpers or default_helpers
        self._work_dir = work_dir
        self._min_size_ratio = min_size_ratio

    async def merge(
        self,
        file_ref: str,
        raw_text: str,
        values: Mapping[str, EntryValue],
    ) -> MergeResult:
        """Merge entry values into the template stored under ``file_ref``.

        Args:
            file_ref: Storage reference of the template bytes.
            raw_text: Template text captured at upload time.
            values: Entry values keyed by canonical variable name.

        Returns:
            The verified merged document, or the original bytes flagged
            as degraded.

        Raises:
            FileNotFoundError: If the template bytes are gone.
            FormatError: If the template is not a Word container.
        """
        data = await self._storage.read(file_ref)
        return await asyncio.to_thread(self.merge_bytes, data, raw_text, values)

    def merge_bytes(
        self,
        data: bytes,
        raw_text: str,
        values: Mapping[str, EntryValue],
    ) -> MergeResult:
        """Run the merge state machine on template bytes."""
        ensure_container(data)
        logger.info(f"Merge LOADED: {len(data)} bytes")

        document = load_document(data)
        names = self._validate(document, raw_text)
        logger.info(f"Merge VALIDATED: {len(names)} variables {names}")

        with ExitStack() as scratch:
            rewritten_path = scratch.enter_context(scratch_file(self._work_dir, ".docx"))
            output_path = scratch.enter_context(scratch_file(self._work_dir, ".docx"))
            try:
                merged = self._substitute(document, names, values, rewritten_path, output_path)
                logger.info(f"Merge SUBSTITUTED: {len(merged)} bytes")
                self._verify(data, merged, names)
            except MergeVerificationFailure as e:
                return self._degrade(data, e)
            except Exception as e:
                logger.error(f"Substitution failed: {e}", exc_info=True)
                return self._degrade(
                    data, MergeVerificationFailure(f"Substitution failed: {e}", names)
                )

        logger.info("Merge VERIFIED: ACCEPTED")
        return MergeResult(payload=merged)

    def _validate(self, document: DocxDocument, raw_text: str) -> list[str]:
        """Union of names in the live document and in the upload-time text."""
        live = scan_placeholders(document_text(document))
        captured = scan_placeholders(raw_text)
        if live.invalid_tokens:
            logger.warning(f"Template contains invalid placeholder tokens: {live.invalid_tokens}")
        return unify_names(live.names, captured.names)

    def _substitute(
        self,
        document: DocxDocument,
        names: list[str],
        values: Mapping[str, EntryValue],
        rewritten_path: Path,
        output_path: Path,
    ) -> bytes:
        rewriter = PlaceholderRewriter()
        rewriter.rewrite(document)
        document.save(str(rewritten_path))

        context: dict[str, object] = dict(
            build_context(unify_names(names, rewriter.data_names), values)
        )
        for key, directive in rewriter.directives.items():
            context[key] = self._helpers.render(directive, values)
        context.update(rewriter.literals)

        template = DocxTemplate(str(rewritten_path))
        template.render(
            context,
            jinja_env=Environment(autoescape=True, undefined=StrictUndefined),
            autoescape=True,
        )
        template.save(str(output_path))
        return output_path.read_bytes()

    def _verify(self, original: bytes, merged: bytes, names: list[str]) -> None:
        """Raise MergeVerificationFailure unless the merged document is sound."""
        if not is_container(merged):
            raise MergeVerificationFailure("Output lost the container signature", names)

        if len(merged) < self._min_size_ratio * len(original):
            raise MergeVerificationFailure(
                f"Output is {len(merged)} bytes, below {self._min_size_ratio:.0%} "
                f"of the {len(original)} byte template",
                names,
            )

        leftovers = [name for name in scan_placeholders(read_live_text(merged)).names if name in names]
        if leftovers:
            raise MergeVerificationFailure("Placeholders left in output", leftovers)

    def _degrade(self, original: bytes, failure: MergeVerificationFailure) -> MergeResult:
        logger.warning(
            f"Merge DEGRADED: {failure.reason}; unresolved={failure.unresolved}"
        )
        return MergeResult(
            payload=original,
            degraded=True,
            unresolved_variables=failure.unresolved,
            reason=failure.reason,
        )
