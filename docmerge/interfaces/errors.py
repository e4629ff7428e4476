"""Error taxonomy for template import and merge.

FormatError and ValidationError surface to the caller immediately.
ExtractionError (and SubprocessFailure) and MergeVerificationFailure are
absorbed by the pipeline into an explicitly flagged degraded result.
"""


class DocMergeError(Exception):
    """Base class for template engine errors."""


class FormatError(DocMergeError):
    """The input is not a valid document container. Fatal, no fallback."""


class ExtractionError(DocMergeError):
    """The text or OCR layer could not produce text."""


class SubprocessFailure(ExtractionError):
    """The OCR executable failed, timed out or could not be started."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ValidationError(DocMergeError):
    """One or more placeholder tokens are not valid variable names.

    The whole import is rejected; ``invalid_tokens`` lists the raw offenders.
    """

    def __init__(self, invalid_tokens: list[str]) -> None:
        self.invalid_tokens = list(invalid_tokens)
        super().__init__(
            "Invalid placeholder tokens: "
            + ", ".join(repr(token) for token in self.invalid_tokens)
        )


class MergeVerificationFailure(DocMergeError):
    """Post-substitution checks failed on a merged document."""

    def __init__(self, reason: str, unresolved: list[str] | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.unresolved = list(unresolved or [])


class DuplicateVariableError(DocMergeError):
    """A template already has a variable with this canonical name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Variable already exists: {name}")
        self.name = name
