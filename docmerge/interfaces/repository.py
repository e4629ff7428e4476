"""Template persistence interface."""

import uuid
from abc import ABC, abstractmethod
from typing import Any

from docmerge.db.models import FormEntry, FormTemplate, TemplateVariableRecord
from docmerge.strategies.template_engine.models import ImportResult, TemplateVariable


class BaseTemplateRepository(ABC):
    """Abstract base class for template, variable and entry persistence.

    Variables are unique by canonical name within a template and are never
    deleted. Entries are read only.
    """

    @abstractmethod
    async def create_template(
        self,
        form_id: uuid.UUID,
        name: str,
        result: ImportResult,
    ) -> FormTemplate:
        """Persist an imported template and its detected variables."""
        ...

    @abstractmethod
    async def get_template(self, template_id: uuid.UUID) -> FormTemplate | None:
        ...

    @abstractmethod
    async def list_variables(self, template_id: uuid.UUID) -> list[TemplateVariableRecord]:
        """Return the variables of a template ordered by name."""
        ...

    @abstractmethod
    async def add_variable(
        self,
        template_id: uuid.UUID,
        variable: TemplateVariable,
        extra: dict[str, Any] | None = None,
    ) -> TemplateVariableRecord:
        """Add a variable to a template.

        Raises:
            DuplicateVariableError: If the name is already taken.
        """
        ...

    @abstractmethod
    async def update_variable(
        self,
        template_id: uuid.UUID,
        variable_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> TemplateVariableRecord | None:
        """Apply field changes to a variable; None if it does not exist.

        Raises:
            DuplicateVariableError: If a rename collides with another variable.
        """
        ...

    @abstractmethod
    async def get_entry(self, entry_id: uuid.UUID) -> FormEntry | None:
        ...
