"""Placeholder extraction.

Finds ``{{ ... }}`` tokens in template text and turns them into canonical
variable names. Editors and OCR both produce messy tokens, so parsing is
tolerant: whitespace and hyphens collapse to underscores and stray
punctuation is dropped. Tokens that still do not form a valid identifier are
reported instead of being dropped, and the caller rejects the import.
"""

import enum
import logging
import re
from dataclasses import dataclass, field

from docmerge.interfaces.errors import ValidationError
from docmerge.strategies.template_engine.models import TemplateVariable, VariableSource

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)

# Control markers for the merge engine, never data fields.
DIRECTIVE_KEYWORD = "CMD_NODE"

_TOKEN_BREAK = re.compile(r"[\r\n\t\v\f]")
_SEPARATORS = re.compile(r"[\s-]+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9_]")
_VALID_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class PlaceholderKind(str, enum.Enum):
    DATA = "data"
    DIRECTIVE = "directive"
    INVALID = "invalid"


@dataclass(frozen=True)
class Placeholder:
    """A classified placeholder occurrence.

    Attributes:
        kind: Data field, engine directive or invalid token.
        raw: The text between the braces, untouched.
        token: The trimmed first token.
        name: Canonical name for data placeholders, else None.
    """

    kind: PlaceholderKind
    raw: str
    token: str
    name: str | None = None


@dataclass
class PlaceholderScan:
    """All placeholders found in a piece of text, first-seen order, deduplicated."""

    names: list[str] = field(default_factory=list)
    invalid_tokens: list[str] = field(default_factory=list)
    directives: list[str] = field(default_factory=list)


def first_token(raw: str) -> str:
    """Trim a placeholder body and keep the part before the first line break or tab."""
    return _TOKEN_BREAK.split(raw.strip(), maxsplit=1)[0].strip()


def normalize_name(token: str) -> str:
    """Collapse spaces/hyphens to one underscore and strip everything else."""
    return _DISALLOWED.sub("", _SEPARATORS.sub("_", token))


def is_valid_name(name: str) -> bool:
    return bool(_VALID_NAME.match(name))


def default_label(name: str) -> str:
    """Derive a display label: ``code_1`` -> ``Code 1``."""
    return " ".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def classify_placeholder(raw: str) -> Placeholder:
    token = first_token(raw)
    if DIRECTIVE_KEYWORD in token:
        return Placeholder(kind=PlaceholderKind.DIRECTIVE, raw=raw, token=token)
    name = normalize_name(token)
    if is_valid_name(name):
        return Placeholder(kind=PlaceholderKind.DATA, raw=raw, token=token, name=name)
    return Placeholder(kind=PlaceholderKind.INVALID, raw=raw, token=token)


def scan_placeholders(text: str) -> PlaceholderScan:
    """Collect every placeholder in ``text`` without raising.

    Args:
        text: Raw template text.

    Returns:
        A PlaceholderScan with canonical names, invalid raw tokens and
        directive tokens.
    """
    scan = PlaceholderScan()
    for match in PLACEHOLDER_PATTERN.finditer(text or ""):
        placeholder = classify_placeholder(match.group(1))
        match placeholder.kind:
            case PlaceholderKind.DATA:
                if placeholder.name not in scan.names:
                    scan.names.append(placeholder.name)
            case PlaceholderKind.DIRECTIVE:
                if placeholder.token not in scan.directives:
                    scan.directives.append(placeholder.token)
            case PlaceholderKind.INVALID:
                if placeholder.token not in scan.invalid_tokens:
                    scan.invalid_tokens.append(placeholder.token)
    return scan


def extract_variables(
    text: str,
    source: VariableSource = VariableSource.TEXT,
) -> list[TemplateVariable]:
    """Extract the variable set of a template text.

    Args:
        text: Raw template text.
        source: Source tag recorded on every variable.

    Returns:
        Variables in first-seen order with default labels.

    Raises:
        ValidationError: If any placeholder is not a valid variable name.
            No partial set is returned.
    """
    scan = scan_placeholders(text)
    if scan.invalid_tokens:
        logger.warning(f"Rejecting variable import, invalid tokens: {scan.invalid_tokens}")
        raise ValidationError(scan.invalid_tokens)

    if scan.directives:
        logger.debug(f"Skipped {len(scan.directives)} directive placeholders")

    return [
        TemplateVariable(name=name, label=default_label(name), source=source)
        for name in scan.names
    ]
