"""Template engine domain models.

Pydantic models specific to template import and merge.
These models are kept here to avoid circular imports with the API layer.
"""

import enum
from dataclasses import dataclass, field

from pydantic import BaseModel, Field


class VariableType(str, enum.Enum):
    """Declared scalar type of a template variable."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"


class VariableSource(str, enum.Enum):
    """Where a variable definition came from."""

    TEXT = "detected-from-text"
    OCR = "detected-from-ocr"
    MANUAL = "manual"


class TemplateVariable(BaseModel):
    """A variable detected in (or manually added to) a template."""

    name: str = Field(description="Canonical variable name, unique within a template")
    label: str = Field(description="Human readable label shown in forms")
    type: VariableType = Field(default=VariableType.TEXT, description="Declared scalar type")
    source: VariableSource = Field(default=VariableSource.TEXT, description="Extraction source")


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing an uploaded template.

    Attributes:
        template_text: Raw text captured at upload time (or the fallback message).
        variables: Unified, deduplicated variable list.
        file_ref: Storage reference of the uploaded bytes.
        thumbnail_ref: Storage reference of the PNG thumbnail, if one was made.
        extraction_degraded: True when neither text nor OCR produced text.
    """

    template_text: str
    variables: list[TemplateVariable]
    file_ref: str
    thumbnail_ref: str | None = None
    extraction_degraded: bool = False


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a single merge. Never persisted.

    Attributes:
        payload: The merged document, or the untouched template when degraded.
        degraded: True when verification failed.
        unresolved_variables: Variables that failed verification.
        reason: Why the merge degraded, for logging and headers.
    """

    payload: bytes
    degraded: bool = False
    unresolved_variables: list[str] = field(default_factory=list)
    reason: str | None = None
