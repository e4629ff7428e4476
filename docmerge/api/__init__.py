"""API routers."""

from docmerge.api.merge import router as merge_router
from docmerge.api.templates import router as templates_router

__all__ = [
    "merge_router",
    "templates_router",
]
