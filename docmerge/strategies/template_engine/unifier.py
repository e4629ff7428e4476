"""Variable unification across extraction sources."""

from collections.abc import Iterable

from docmerge.strategies.template_engine.models import TemplateVariable


def unify_variables(*sources: Iterable[TemplateVariable]) -> list[TemplateVariable]:
    """Merge variable lists given in priority order.

    The first occurrence of a canonical name wins, so the primary source
    decides label and type on conflicts. Matching is exact and
    case-sensitive.

    Args:
        *sources: Variable lists, highest priority first.

    Returns:
        Deduplicated variables in first-seen order.
    """
    seen: set[str] = set()
    unified: list[TemplateVariable] = []
    for variables in sources:
        for variable in variables:
            if variable.name in seen:
                continue
            seen.add(variable.name)
            unified.append(variable)
    return unified


def unify_names(*sources: Iterable[str]) -> list[str]:
    """Same as unify_variables for bare canonical names."""
    return list(dict.fromkeys(name for names in sources for name in names))
