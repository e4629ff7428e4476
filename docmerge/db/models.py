"""Database models using SQLModel.

Defines the persisted records of the merge service:
- FormTemplate: an uploaded template bound to a form
- TemplateVariableRecord: a variable of a template (detected or manual)
- FormEntry: a submitted entry whose values feed a merge

Forms and entries are owned by an external form service; this service only
reads entries.
"""

import datetime
import uuid
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlmodel import Field, Relationship, SQLModel

from docmerge.strategies.template_engine.models import VariableSource, VariableType


# =============================================================================
# Shared Models (for API responses, not database tables)
# =============================================================================


class TemplateVariableBase(SQLModel):
    """Base template variable fields."""

    name: str = Field(min_length=1, max_length=255)
    label: str = Field(min_length=1, max_length=255)
    type: VariableType = Field(default=VariableType.TEXT)
    source: VariableSource = Field(default=VariableSource.TEXT)
    use_random_initial: bool = Field(default=False)
    min_value: float | None = Field(default=None)
    max_value: float | None = Field(default=None)


# =============================================================================
# Database Models
# =============================================================================


class FormTemplate(SQLModel, table=True):
    """An uploaded template.

    Re-uploading a file always creates a new record; templates are never
    overwritten in place.
    """

    __tablename__ = "templates"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(UUID(as_uuid=True), primary_key=True),
    )
    form_id: uuid.UUID = Field(
        sa_column=Column(UUID(as_uuid=True), nullable=False, index=True),
    )
    name: str = Field(max_length=512)
    template_text: str = Field(default="")
    file_ref: str = Field(max_length=1024)
    thumbnail_ref: str | None = Field(default=None, max_length=1024)
    extraction_degraded: bool = Field(default=False)
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        sa_column=Column(DateTime(timezone=True), server_default=text("NOW()")),
    )

    # Relationships
    variables: list["TemplateVariableRecord"] = Relationship(back_populates="template")


class TemplateVariableRecord(TemplateVariableBase, table=True):
    """A variable of a template. Names are unique per template."""

    __tablename__ = "template_variables"
    __table_args__ = (UniqueConstraint("template_id", "name", name="uq_template_variable_name"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(UUID(as_uuid=True), primary_key=True),
    )
    template_id: uuid.UUID = Field(
        sa_column=Column(
            UUID(as_uuid=True),
            ForeignKey("templates.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )

    # Relationships
    template: FormTemplate = Relationship(back_populates="variables")


class FormEntry(SQLModel, table=True):
    """A submitted form entry. Values are keyed by canonical variable name."""

    __tablename__ = "entries"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(UUID(as_uuid=True), primary_key=True),
    )
    form_id: uuid.UUID = Field(
        sa_column=Column(UUID(as_uuid=True), nullable=False, index=True),
    )
    values: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    )
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        sa_column=Column(DateTime(timezone=True), server_default=text("NOW()")),
    )
    updated_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        sa_column=Column(
            DateTime(timezone=True),
            server_default=text("NOW()"),
            onupdate=text("NOW()"),
        ),
    )


# =============================================================================
# Response Models
# =============================================================================


class TemplateVariableRead(TemplateVariableBase):
    """Template variable response model."""

    id: uuid.UUID
    template_id: uuid.UUID
