"""Placeholder run collapsing.

Word editors freely split ``{{first name}}`` across several ``w:r`` runs
(spell check, formatting changes, revision marks), which defeats any
delimiter-based templating pass. The rewriter moves every placeholder into a
single run of its own, cloned from the run where the placeholder starts so
bold/italic/underline/size/colour survive, and replaces the placeholder body
with a Jinja expression:

- data placeholders become ``{{ canonical_name }}``
- directives become ``{{ _directive_N }}``
- invalid tokens become ``{{ _literal_N }}`` and render back verbatim
"""

import bisect
import logging
from copy import deepcopy

from docx.document import Document as DocxDocument
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from docmerge.strategies.extraction.docx_text import W_P, W_T, iter_story_roots, paragraph_runs
from docmerge.strategies.template_engine.helpers import Directive, parse_directive
from docmerge.strategies.template_engine.placeholders import (
    PLACEHOLDER_PATTERN,
    PlaceholderKind,
    classify_placeholder,
)

logger = logging.getLogger(__name__)

W_RPR = qn("w:rPr")
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


def _set_text(t, text: str) -> None:
    t.text = text
    t.set(XML_SPACE, "preserve")


def _text_element(text: str):
    t = OxmlElement("w:t")
    _set_text(t, text)
    return t


def _bare_clone(run):
    """Copy ``run`` keeping only its run properties."""
    clone = deepcopy(run)
    for child in list(clone):
        if child.tag != W_RPR:
            clone.remove(child)
    return clone


def _clone_run(run, text: str):
    """Copy ``run`` keeping only its run properties, with ``text`` as content."""
    clone = _bare_clone(run)
    clone.append(_text_element(text))
    return clone


def _split_after(run, t):
    """Move the children that follow ``t`` into a detached copy of ``run``.

    Returns None when ``t`` is the last child.
    """
    following = list(t.itersiblings())
    if not following:
        return None
    tail = _bare_clone(run)
    for child in following:
        tail.append(child)
    return tail


class PlaceholderRewriter:
    """Rewrites placeholders of a python-docx Document in place.

    After ``rewrite`` the collected state tells the merge engine what to put
    in the rendering context.

    Attributes:
        data_names: Canonical names of data placeholders, first-seen order.
        directives: Context key -> parsed directive.
        literals: Context key -> original placeholder text.
        rewritten: Number of placeholders rewritten.
    """

    def __init__(self) -> None:
        self.data_names: list[str] = []
        self.directives: dict[str, Directive] = {}
        self.literals: dict[str, str] = {}
        self.rewritten = 0

    def rewrite(self, document: DocxDocument) -> int:
        for root in iter_story_roots(document):
            for paragraph in list(root.iter(W_P)):
                self._rewrite_paragraph(paragraph)
        logger.debug(
            f"Rewrote {self.rewritten} placeholders: {len(self.data_names)} variables, "
            f"{len(self.directives)} directives, {len(self.literals)} literals"
        )
        return self.rewritten

    def _expression_for(self, raw: str) -> str:
        placeholder = classify_placeholder(raw)
        match placeholder.kind:
            case PlaceholderKind.DATA:
                if placeholder.name not in self.data_names:
                    self.data_names.append(placeholder.name)
                return placeholder.name
            case PlaceholderKind.DIRECTIVE:
                key = f"_directive_{len(self.directives)}"
                self.directives[key] = parse_directive(placeholder.token)
                return key
            case _:
                key = f"_literal_{len(self.literals)}"
                self.literals[key] = "{{" + raw + "}}"
                return key

    def _rewrite_paragraph(self, paragraph) -> None:
        segments = [
            (run, t)
            for run in paragraph_runs(paragraph)
            for t in run
            if t.tag == W_T
        ]
        if not segments:
            return

        texts = [t.text or "" for _, t in segments]
        full_text = "".join(texts)
        if "{{" not in full_text:
            return

        starts = []
        offset = 0
        for text in texts:
            starts.append(offset)
            offset += len(text)

        matches = list(PLACEHOLDER_PATTERN.finditer(full_text))
        expressions = [self._expression_for(match.group(1)) for match in matches]
        # Right to left, so offsets of earlier matches stay valid.
        for match, expression in reversed(list(zip(matches, expressions))):
            self._isolate(segments, starts, match, expression)

    def _isolate(self, segments, starts: list[int], match, expression: str) -> None:
        start, end = match.span()
        first = bisect.bisect_right(starts, start) - 1
        last = bisect.bisect_right(starts, end - 1) - 1

        first_run, first_t = segments[first]
        last_run, last_t = segments[last]
        prefix = (first_t.text or "")[: start - starts[first]]
        suffix = (last_t.text or "")[end - starts[last]:]

        placeholder_run = _clone_run(first_run, "{{ " + expression + " }}")
        tail = _split_after(first_run, first_t)

        _set_text(first_t, prefix)
        if first == last:
            if suffix:
                if tail is None:
                    tail = _clone_run(first_run, suffix)
                else:
                    rpr = tail.find(W_RPR)
                    tail.insert(0 if rpr is None else 1, _text_element(suffix))
        else:
            for _, t in segments[first + 1:last]:
                _set_text(t, "")
            _set_text(last_t, suffix)
        first_run.addnext(placeholder_run)
        if tail is not None:
            placeholder_run.addnext(tail)
        self.rewritten += 1
