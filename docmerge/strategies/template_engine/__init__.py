"""Template engine strategies.

Implements placeholder extraction, template import and verified mail merge
for Word documents.
"""

from docmerge.strategies.template_engine.helpers import HelperRegistry, default_helpers
from docmerge.strategies.template_engine.importer import FALLBACK_TEMPLATE_TEXT, TemplateImporter
from docmerge.strategies.template_engine.merger import MergeEngine
from docmerge.strategies.template_engine.models import (
    ImportResult,
    MergeResult,
    TemplateVariable,
    VariableSource,
    VariableType,
)
from docmerge.strategies.template_engine.placeholders import extract_variables, scan_placeholders
from docmerge.strategies.template_engine.preview import PreviewRenderer
from docmerge.strategies.template_engine.unifier import unify_names, unify_variables

__all__ = [
    "FALLBACK_TEMPLATE_TEXT",
    "HelperRegistry",
    "ImportResult",
    "MergeEngine",
    "MergeResult",
    "PreviewRenderer",
    "TemplateImporter",
    "TemplateVariable",
    "VariableSource",
    "VariableType",
    "default_helpers",
    "extract_variables",
    "scan_placeholders",
    "unify_names",
    "unify_variables",
]
