"""Merge API routes.

Merges a form entry into a template and returns either the document or an
HTML preview.
"""

import asyncio
import logging
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from docmerge.api.deps import get_merge_engine, get_preview_renderer, get_repository
from docmerge.api.schemas import MergePreviewResponse, MergeRequest, OutputMode
from docmerge.interfaces.errors import ExtractionError
from docmerge.interfaces.repository import BaseTemplateRepository
from docmerge.strategies.storage.local import safe_filename
from docmerge.strategies.template_engine import MergeEngine, PreviewRenderer

logger = logging.getLogger(__name__)
audit = structlog.get_logger("docmerge.audit")

router = APIRouter(tags=["merge"])

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PREVIEW_UNAVAILABLE_HTML = '<div class="merge-preview">Preview unavailable</div>'


@router.post(
    "/merge",
    response_model=None,
    responses={
        200: {
            "content": {DOCX_MEDIA_TYPE: {}},
            "description": "Merged document, or an HTML preview in preview mode",
        }
    },
)
async def merge_entry(
    request: MergeRequest,
    repository: BaseTemplateRepository = Depends(get_repository),
    engine: MergeEngine = Depends(get_merge_engine),
    renderer: PreviewRenderer = Depends(get_preview_renderer),
) -> Response | MergePreviewResponse:
    """Merge an entry's values into a template.

    A degraded merge still succeeds with the untouched template; the
    ``X-Merge-Degraded`` and ``X-Unresolved-Variables`` headers (or the
    preview fields) tell the caller what went wrong.

    Raises:
        HTTPException: 404 for a missing template, entry or stored file,
            400 when the entry belongs to another form.
    """
    template = await repository.get_template(request.template_id)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template {request.template_id} not found",
        )

    entry = await repository.get_entry(request.entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Entry {request.entry_id} not found",
        )

    if entry.form_id != template.form_id:
        logger.warning(
            f"Entry {entry.id} (form {entry.form_id}) does not belong to "
            f"template {template.id} (form {template.form_id})"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Entry and template belong to different forms",
        )

    logger.info(f"Merging entry {entry.id} into template {template.id} ({request.output_mode.value})")
    try:
        result = await engine.merge(template.file_ref, template.template_text, entry.values)
    except FileNotFoundError as e:
        logger.error(f"Stored file missing for template {template.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template file not found in storage",
        ) from e

    audit.info(
        "merge_completed",
        template_id=str(template.id),
        entry_id=str(entry.id),
        output_mode=request.output_mode.value,
        degraded=result.degraded,
        unresolved=result.unresolved_variables,
        reason=result.reason,
    )

    if request.output_mode == OutputMode.PREVIEW:
        try:
            html = await asyncio.to_thread(renderer.render, result.payload)
        except ExtractionError as e:
            logger.warning(f"Preview conversion failed for template {template.id}: {e}")
            return MergePreviewResponse(
                html=PREVIEW_UNAVAILABLE_HTML,
                unresolved_variables=result.unresolved_variables,
                degraded=True,
            )
        return MergePreviewResponse(
            html=html,
            unresolved_variables=result.unresolved_variables,
            degraded=result.degraded,
        )

    download_name = f"{safe_filename(Path(template.name).stem)}_merged.docx"
    return Response(
        content=result.payload,
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{download_name}"',
            "X-Merge-Degraded": "true" if result.degraded else "false",
            "X-Unresolved-Variables": ",".join(result.unresolved_variables),
        },
    )
