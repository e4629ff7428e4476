"""SQLModel-backed template repository."""

import logging
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from docmerge.db.models import FormEntry, FormTemplate, TemplateVariableRecord
from docmerge.interfaces.errors import DuplicateVariableError
from docmerge.interfaces.repository import BaseTemplateRepository
from docmerge.strategies.template_engine.models import ImportResult, TemplateVariable

logger = logging.getLogger(__name__)


class SqlTemplateRepository(BaseTemplateRepository):
    """Repository over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_template(
        self,
        form_id: uuid.UUID,
        name: str,
        result: ImportResult,
    ) -> FormTemplate:
        template = FormTemplate(
            form_id=form_id,
            name=name,
            template_text=result.template_text,
            file_ref=result.file_ref,
            thumbnail_ref=result.thumbnail_ref,
            extraction_degraded=result.extraction_degraded,
        )
        self._session.add(template)
        await self._session.flush()

        for variable in result.variables:
            self._session.add(_record_for(template.id, variable))

        await self._session.commit()
        await self._session.refresh(template)
        logger.info(f"Created template {template.id} with {len(result.variables)} variables")
        return template

    async def get_template(self, template_id: uuid.UUID) -> FormTemplate | None:
        return await self._session.get(FormTemplate, template_id)

    async def list_variables(self, template_id: uuid.UUID) -> list[TemplateVariableRecord]:
        result = await self._session.execute(
            select(TemplateVariableRecord)
            .where(TemplateVariableRecord.template_id == template_id)
            .order_by(TemplateVariableRecord.name)
        )
        return list(result.scalars().all())

    async def add_variable(
        self,
        template_id: uuid.UUID,
        variable: TemplateVariable,
        extra: dict[str, Any] | None = None,
    ) -> TemplateVariableRecord:
        if await self._find_by_name(template_id, variable.name) is not None:
            raise DuplicateVariableError(variable.name)

        record = _record_for(template_id, variable, **(extra or {}))
        self._session.add(record)
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateVariableError(variable.name) from e
        await self._session.refresh(record)
        logger.info(f"Added variable {record.name} to template {template_id}")
        return record

    async def update_variable(
        self,
        template_id: uuid.UUID,
        variable_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> TemplateVariableRecord | None:
        record = await self._session.get(TemplateVariableRecord, variable_id)
        if record is None or record.template_id != template_id:
            return None

        new_name = changes.get("name")
        if new_name and new_name != record.name:
            existing = await self._find_by_name(template_id, new_name)
            if existing is not None:
                raise DuplicateVariableError(new_name)

        for key, value in changes.items():
            setattr(record, key, value)
        self._session.add(record)
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateVariableError(str(new_name)) from e
        await self._session.refresh(record)
        logger.info(f"Updated variable {variable_id} of template {template_id}: {sorted(changes)}")
        return record

    async def get_entry(self, entry_id: uuid.UUID) -> FormEntry | None:
        return await self._session.get(FormEntry, entry_id)

    async def _find_by_name(
        self, template_id: uuid.UUID, name: str
    ) -> TemplateVariableRecord | None:
        result = await self._session.execute(
            select(TemplateVariableRecord).where(
                TemplateVariableRecord.template_id == template_id,
                TemplateVariableRecord.name == name,
            )
        )
        return result.scalar_one_or_none()


def _record_for(
    template_id: uuid.UUID, variable: TemplateVariable, **extra: Any
) -> TemplateVariableRecord:
    return TemplateVariableRecord(
        template_id=template_id,
        name=variable.name,
        label=variable.label,
        type=variable.type,
        source=variable.source,
        **extra,
    )
