"""Named helper functions available to merge directives.

A directive placeholder looks like ``{{CMD_NODE <helper> [variable] [args...]}}``.
Helpers are pure ``(value, args) -> Markup`` transforms that return a
WordprocessingML fragment. The fragment is spliced into the ``<w:t>`` of the
directive's own run, so fragments that need new runs or paragraphs close the
current ones and reopen them. New helpers are added with
``HelperRegistry.register`` without touching the merge engine.
"""

import datetime
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from markupsafe import Markup, escape

from docmerge.strategies.template_engine.placeholders import DIRECTIVE_KEYWORD, normalize_name
from docmerge.strategies.template_engine.values import EntryValue, stringify_value

logger = logging.getLogger(__name__)

Helper = Callable[[EntryValue, Sequence[str]], Markup]

_CLOSE_RUN = "</w:t></w:r>"
_OPEN_RUN = '<w:r><w:t xml:space="preserve">'
_CLOSE_PARAGRAPH = "</w:t></w:r></w:p>"
_OPEN_PARAGRAPH = '<w:p><w:r><w:t xml:space="preserve">'

_ALIGNMENTS = {"left", "center", "right", "both"}


@dataclass(frozen=True)
class Directive:
    """A parsed directive placeholder."""

    helper: str | None
    variable: str | None = None
    args: tuple[str, ...] = ()


def parse_directive(token: str) -> Directive:
    """Split a directive token into helper name, variable and literal args.

    ``CMD_NODE date due date`` is not supported: the variable is a single
    whitespace-free word, normalized like any placeholder.
    """
    parts = token.split()
    if DIRECTIVE_KEYWORD not in parts:
        return Directive(helper=None)
    rest = parts[parts.index(DIRECTIVE_KEYWORD) + 1:]
    if not rest:
        return Directive(helper=None)
    variable = normalize_name(rest[1]) if len(rest) > 1 else None
    return Directive(helper=rest[0], variable=variable or None, args=tuple(rest[2:]))


class HelperRegistry:
    """Table of helper functions keyed by name."""

    def __init__(self) -> None:
        self._helpers: dict[str, Helper] = {}

    def register(self, name: str) -> Callable[[Helper], Helper]:
        """Decorator registering ``func`` under ``name``."""

        def decorator(func: Helper) -> Helper:
            self._helpers[name] = func
            return func

        return decorator

    def resolve(self, name: str) -> Helper:
        try:
            return self._helpers[name]
        except KeyError:
            raise KeyError(f"Unknown helper: {name}") from None

    def call(self, name: str, value: EntryValue, args: Sequence[str] = ()) -> Markup:
        return Markup(self.resolve(name)(value, tuple(args)))

    def render(self, directive: Directive, values: Mapping[str, EntryValue]) -> Markup:
        """Evaluate a directive against entry values.

        Directives without a known helper (control markers such as
        ``CMD_NODE foreach``) render as nothing.
        """
        if directive.helper is None or directive.helper not in self._helpers:
            logger.warning(f"Ignoring directive with unknown helper: {directive.helper!r}")
            return Markup("")
        value = values.get(directive.variable) if directive.variable else None
        return self.call(directive.helper, value, directive.args)

    @property
    def names(self) -> list[str]:
        return sorted(self._helpers)

    def __contains__(self, name: object) -> bool:
        return name in self._helpers


def _text(value: EntryValue) -> Markup:
    return escape(stringify_value(value))


def _styled_run(value: EntryValue, properties: str) -> Markup:
    return Markup(
        f"{_CLOSE_RUN}<w:r><w:rPr>{properties}</w:rPr>"
        f'<w:t xml:space="preserve">{_text(value)}</w:t></w:r>{_OPEN_RUN}'
    )


def _as_date(value: EntryValue) -> datetime.date | None:
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        for parse in (datetime.datetime.fromisoformat, datetime.date.fromisoformat):
            try:
                return parse(value.strip())
            except ValueError:
                continue
    return None


default_helpers = HelperRegistry()


@default_helpers.register("date")
def format_date(value: EntryValue, args: Sequence[str]) -> Markup:
    """Format a date with a strftime pattern (default ``%d/%m/%Y``)."""
    parsed = _as_date(value)
    if parsed is None:
        return _text(value)
    pattern = " ".join(args) if args else "%d/%m/%Y"
    return escape(parsed.strftime(pattern))


@default_helpers.register("upper")
def upper(value: EntryValue, args: Sequence[str]) -> Markup:
    return escape(stringify_value(value).upper())


@default_helpers.register("lower")
def lower(value: EntryValue, args: Sequence[str]) -> Markup:
    return escape(stringify_value(value).lower())


@default_helpers.register("bold")
def bold(value: EntryValue, args: Sequence[str]) -> Markup:
    return _styled_run(value, "<w:b/>")


@default_helpers.register("italic")
def italic(value: EntryValue, args: Sequence[str]) -> Markup:
    return _styled_run(value, "<w:i/>")


@default_helpers.register("underline")
def underline(value: EntryValue, args: Sequence[str]) -> Markup:
    return _styled_run(value, '<w:u w:val="single"/>')


@default_helpers.register("number")
def format_number(value: EntryValue, args: Sequence[str]) -> Markup:
    """Format a number with thousands separators and ``args[0]`` decimals (default 2)."""
    if isinstance(value, bool) or value is None:
        return _text(value)
    try:
        number = float(value)
        decimals = int(args[0]) if args else 2
    except (TypeError, ValueError):
        return _text(value)
    return escape(f"{number:,.{max(decimals, 0)}f}")


@default_helpers.register("paragraph_break")
def paragraph_break(value: EntryValue, args: Sequence[str]) -> Markup:
    return Markup(_CLOSE_PARAGRAPH + _OPEN_PARAGRAPH) + _text(value)


@default_helpers.register("page_break")
def page_break(value: EntryValue, args: Sequence[str]) -> Markup:
    return Markup('</w:t><w:br w:type="page"/><w:t xml:space="preserve">') + _text(value)


@default_helpers.register("indent")
def indent(value: EntryValue, args: Sequence[str]) -> Markup:
    """Prefix the value with ``args[0]`` tab stops (default 1)."""
    try:
        level = int(args[0]) if args else 1
    except ValueError:
        level = 1
    tabs = "<w:tab/>" * max(level, 0)
    return Markup(f'</w:t>{tabs}<w:t xml:space="preserve">') + _text(value)


@default_helpers.register("align")
def align(value: EntryValue, args: Sequence[str]) -> Markup:
    """Put the value in its own paragraph aligned left, center, right or both."""
    alignment = args[0].lower() if args else "center"
    if alignment not in _ALIGNMENTS:
        alignment = "center"
    return Markup(
        f'{_CLOSE_PARAGRAPH}<w:p><w:pPr><w:jc w:val="{alignment}"/></w:pPr>'
        f'<w:r><w:t xml:space="preserve">{_text(value)}</w:t></w:r></w:p>'
        f"{_OPEN_PARAGRAPH}"
    )
