"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

import enum
import uuid
from typing import Any

from pydantic import BaseModel, Field, model_validator

from docmerge.strategies.template_engine.models import (
    TemplateVariable,
    VariableSource,
    VariableType,
)


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")


# =============================================================================
# Template Schemas
# =============================================================================


class UploadResponse(BaseModel):
    """Response for template upload."""

    template_id: uuid.UUID = Field(description="ID of the created template record")
    template_text: str = Field(description="Raw text captured at upload time")
    detected_variables: list[TemplateVariable] = Field(default_factory=list)
    stored_file_ref: str = Field(description="Storage reference of the uploaded file")
    thumbnail_ref: str | None = Field(default=None, description="Storage reference of the thumbnail")
    extraction_degraded: bool = Field(
        default=False,
        description="True when no text could be extracted and variables must be added manually",
    )


class VariableRead(BaseModel):
    """A stored template variable."""

    id: uuid.UUID
    template_id: uuid.UUID
    name: str
    label: str
    type: VariableType
    source: VariableSource
    use_random_initial: bool = False
    min_value: float | None = None
    max_value: float | None = None

    model_config = {"from_attributes": True}


class VariableCreate(BaseModel):
    """Request to add a manual variable."""

    name: str = Field(min_length=1, max_length=255, description="Variable name, normalized on save")
    label: str | None = Field(default=None, max_length=255, description="Defaults to a label derived from the name")
    type: VariableType = Field(default=VariableType.TEXT)
    use_random_initial: bool = Field(default=False)
    min_value: float | None = None
    max_value: float | None = None

    @model_validator(mode="after")
    def check_range(self) -> "VariableCreate":
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError("min_value must not exceed max_value")
        return self


class VariableUpdate(BaseModel):
    """Partial update of a variable. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    label: str | None = Field(default=None, min_length=1, max_length=255)
    type: VariableType | None = None
    use_random_initial: bool | None = None
    min_value: float | None = None
    max_value: float | None = None

    @model_validator(mode="after")
    def check_range(self) -> "VariableUpdate":
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError("min_value must not exceed max_value")
        return self


# =============================================================================
# Merge Schemas
# =============================================================================


class OutputMode(str, enum.Enum):
    """What a merge request returns."""

    DOWNLOAD = "download"
    PREVIEW = "preview"


class MergeRequest(BaseModel):
    """Request to merge an entry into a template."""

    template_id: uuid.UUID
    entry_id: uuid.UUID
    output_mode: OutputMode = Field(default=OutputMode.DOWNLOAD)


class MergePreviewResponse(BaseModel):
    """HTML preview of a merged document."""

    html: str
    unresolved_variables: list[str] = Field(default_factory=list)
    degraded: bool = False
