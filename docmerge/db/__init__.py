"""Database models and session management."""

from docmerge.db.models import (
    FormEntry,
    FormTemplate,
    TemplateVariableRead,
    TemplateVariableRecord,
)
from docmerge.db.session import (
    AsyncSession,
    close_db,
    get_async_session,
    init_db,
)

__all__ = [
    # Models
    "FormTemplate",
    "TemplateVariableRecord",
    "TemplateVariableRead",
    "FormEntry",
    # Session
    "AsyncSession",
    "get_async_session",
    "init_db",
    "close_db",
]
