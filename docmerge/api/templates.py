"""Template management API routes.

Handles template upload (text extraction, OCR fallback, variable detection)
and review of the detected variables.
"""

import logging
import uuid
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from docmerge.api.deps import get_importer, get_repository
from docmerge.api.schemas import (
    UploadResponse,
    VariableCreate,
    VariableRead,
    VariableUpdate,
)
from docmerge.core.config import Settings, get_settings
from docmerge.interfaces.errors import ValidationError
from docmerge.interfaces.repository import BaseTemplateRepository
from docmerge.strategies.template_engine import TemplateImporter, TemplateVariable, VariableSource
from docmerge.strategies.template_engine.placeholders import (
    default_label,
    first_token,
    is_valid_name,
    normalize_name,
)

logger = logging.getLogger(__name__)
audit = structlog.get_logger("docmerge.audit")

router = APIRouter(prefix="/templates", tags=["templates"])


# =============================================================================
# Helper Functions
# =============================================================================


def _canonical_name(raw: str) -> str:
    """Normalize a user supplied variable name the way placeholders are normalized."""
    name = normalize_name(first_token(raw))
    if not is_valid_name(name):
        raise ValidationError([raw])
    return name


async def _require_template(repository: BaseTemplateRepository, template_id: uuid.UUID):
    template = await repository.get_template(template_id)
    if template is None:
        logger.warning(f"Template not found: {template_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template {template_id} not found",
        )
    return template


# =============================================================================
# Upload
# =============================================================================


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_template(
    file: UploadFile = File(..., description="Word document or scanned image"),
    form_id: uuid.UUID = Form(..., description="Form the template belongs to"),
    name: str | None = Form(default=None, description="Display name, defaults to the filename"),
    importer: TemplateImporter = Depends(get_importer),
    repository: BaseTemplateRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """Upload a template and detect its variables.

    Every upload creates a new template record, including re-uploads of the
    same file.

    Raises:
        HTTPException: 413 if the file is too large.
        FormatError: If the file is neither a Word document nor an image.
        ValidationError: If a placeholder is not a valid variable name.
    """
    filename = file.filename or "upload"
    logger.info(f"Starting template upload for form {form_id}: {filename}")

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        logger.warning(f"Upload too large: {filename}")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )

    result = await importer.import_template(data, filename, file.content_type)
    template = await repository.create_template(
        form_id=form_id,
        name=name or Path(filename).stem,
        result=result,
    )

    audit.info(
        "template_uploaded",
        template_id=str(template.id),
        form_id=str(form_id),
        variables=[v.name for v in result.variables],
        extraction_degraded=result.extraction_degraded,
    )
    return UploadResponse(
        template_id=template.id,
        template_text=result.template_text,
        detected_variables=result.variables,
        stored_file_ref=result.file_ref,
        thumbnail_ref=result.thumbnail_ref,
        extraction_degraded=result.extraction_degraded,
    )


# =============================================================================
# Variables
# =============================================================================


@router.get("/{template_id}/variables", response_model=list[VariableRead])
async def list_variables(
    template_id: uuid.UUID,
    repository: BaseTemplateRepository = Depends(get_repository),
) -> list[VariableRead]:
    await _require_template(repository, template_id)
    records = await repository.list_variables(template_id)
    return [VariableRead.model_validate(record) for record in records]


@router.post(
    "/{template_id}/variables",
    response_model=VariableRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_variable(
    template_id: uuid.UUID,
    request: VariableCreate,
    repository: BaseTemplateRepository = Depends(get_repository),
) -> VariableRead:
    """Add a variable the extractor missed.

    Raises:
        ValidationError: If the name cannot be normalized to a valid identifier.
        DuplicateVariableError: If the template already has this name.
    """
    await _require_template(repository, template_id)

    name = _canonical_name(request.name)
    variable = TemplateVariable(
        name=name,
        label=request.label or default_label(name),
        type=request.type,
        source=VariableSource.MANUAL,
    )
    record = await repository.add_variable(
        template_id,
        variable,
        extra={
            "use_random_initial": request.use_random_initial,
            "min_value": request.min_value,
            "max_value": request.max_value,
        },
    )
    logger.info(f"Manual variable {name} added to template {template_id}")
    return VariableRead.model_validate(record)


@router.patch("/{template_id}/variables/{variable_id}", response_model=VariableRead)
async def update_variable(
    template_id: uuid.UUID,
    variable_id: uuid.UUID,
    request: VariableUpdate,
    repository: BaseTemplateRepository = Depends(get_repository),
) -> VariableRead:
    """Edit a variable's label, type, initial-value settings or name."""
    await _require_template(repository, template_id)

    changes = request.model_dump(exclude_unset=True)
    # min/max may be cleared with null, the rest may not
    for key in ("name", "label", "type", "use_random_initial"):
        if key in changes and changes[key] is None:
            del changes[key]
    if "name" in changes:
        changes["name"] = _canonical_name(changes["name"])

    record = await repository.update_variable(template_id, variable_id, changes)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Variable {variable_id} not found",
        )
    return VariableRead.model_validate(record)
