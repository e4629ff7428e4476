"""Tesseract OCR via the ``tesseract`` CLI.

The executable runs as an asyncio subprocess bounded by a timeout. On
timeout or cancellation the child is killed and reaped, so a hung OCR
process never pins a serving worker.
"""

import asyncio
import logging
from pathlib import Path

from docmerge.interfaces.errors import SubprocessFailure
from docmerge.interfaces.ocr import BaseOcrEngine

logger = logging.getLogger(__name__)


class TesseractCliEngine(BaseOcrEngine):
    """Recognizes image text with the tesseract command line tool."""

    def __init__(
        self,
        command: str = "tesseract",
        language: str = "eng",
        timeout_s: float = 30.0,
        fail_on_stderr: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            command: Executable to run.
            language: Tesseract language pack (``-l``).
            timeout_s: Seconds before the process is killed.
            fail_on_stderr: Treat any stderr output as a failure.
        """
        self._command = command
        self._language = language
        self._timeout_s = timeout_s
        self._fail_on_stderr = fail_on_stderr

    async def recognize(self, image_path: Path) -> str:
        """Run OCR on ``image_path`` and return the recognized text.

        Raises:
            SubprocessFailure: On a missing executable, timeout, non-zero
                exit or (when configured) stderr output.
        """
        if not image_path.exists():
            raise SubprocessFailure(f"OCR input not found: {image_path}")

        cmd = [self._command, str(image_path), "stdout", "-l", self._language]
        logger.info(f"Running OCR: {self._command} on {image_path.name}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SubprocessFailure(f"OCR executable not found: {self._command}") from e
        except PermissionError as e:
            raise SubprocessFailure(f"OCR executable not runnable: {self._command}") from e

        try:
            async with asyncio.timeout(self._timeout_s):
                stdout, stderr = await proc.communicate()
        except TimeoutError as e:
            logger.warning(f"OCR timed out after {self._timeout_s}s, killing pid {proc.pid}")
            raise SubprocessFailure(f"OCR timed out after {self._timeout_s}s") from e
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        error_text = stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            logger.error(f"OCR exited with {proc.returncode}: {error_text[-500:]}")
            raise SubprocessFailure(
                f"OCR exited with code {proc.returncode}",
                returncode=proc.returncode,
                stderr=error_text[-4000:],
            )
        if error_text and self._fail_on_stderr:
            logger.error(f"OCR wrote to stderr: {error_text[-500:]}")
            raise SubprocessFailure(
                "OCR reported errors on stderr",
                returncode=proc.returncode,
                stderr=error_text[-4000:],
            )

        text = stdout.decode("utf-8", errors="replace")
        logger.info(f"OCR recognized {len(text.strip())} characters")
        return text
