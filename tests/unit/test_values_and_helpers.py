"""Unit tests for entry value stringification and merge helpers."""

import datetime

import pytest
from markupsafe import Markup

from docmerge.strategies.template_engine.helpers import (
    Directive,
    HelperRegistry,
    default_helpers,
    parse_directive,
)
from docmerge.strategies.template_engine.values import build_context, stringify_value


class TestStringifyValue:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (3.0, "3"),
            (2.5, "2.5"),
            ("Ana", "Ana"),
            (datetime.date(2024, 3, 9), "2024-03-09"),
            (datetime.time(14, 30), "14:30:00"),
        ],
    )
    def test_rules(self, value, expected):
        assert stringify_value(value) == expected

    def test_build_context_fills_missing_and_ignores_extra(self):
        context = build_context(["first_name", "code_1"], {"first_name": "Ana", "unused": 1})

        assert context == {"first_name": "Ana", "code_1": ""}


class TestParseDirective:
    def test_helper_variable_and_args(self):
        directive = parse_directive("CMD_NODE date due-date %Y %m")

        assert directive == Directive(helper="date", variable="due_date", args=("%Y", "%m"))

    def test_bare_marker(self):
        assert parse_directive("CMD_NODE") == Directive(helper=None)

    def test_helper_without_variable(self):
        assert parse_directive("CMD_NODE page_break") == Directive(helper="page_break")


class TestHelperRegistry:
    def test_register_and_call(self):
        registry = HelperRegistry()

        @registry.register("shout")
        def shout(value, args):
            return Markup(str(value).upper() + "!")

        assert "shout" in registry
        assert registry.names == ["shout"]
        assert registry.call("shout", "hi") == "HI!"

    def test_resolve_unknown(self):
        with pytest.raises(KeyError, match="Unknown helper"):
            HelperRegistry().resolve("missing")

    def test_render_unknown_helper_is_empty(self):
        assert default_helpers.render(Directive(helper="foreach"), {}) == ""
        assert default_helpers.render(Directive(helper=None), {}) == ""

    def test_render_looks_up_variable(self):
        directive = Directive(helper="upper", variable="name")

        assert default_helpers.render(directive, {"name": "ana"}) == "ANA"


class TestDefaultHelpers:
    def test_builtins_registered(self):
        for name in (
            "date", "upper", "lower", "bold", "italic", "underline",
            "number", "paragraph_break", "page_break", "indent", "align",
        ):
            assert name in default_helpers

    def test_date_formats(self):
        assert default_helpers.call("date", datetime.date(2024, 3, 9)) == "09/03/2024"
        assert default_helpers.call("date", "2024-03-09", ["%Y"]) == "2024"
        assert default_helpers.call("date", "not a date") == "not a date"

    def test_text_is_escaped(self):
        assert default_helpers.call("upper", "a<b") == "A&lt;B"

    def test_number(self):
        assert default_helpers.call("number", 1234.5) == "1,234.50"
        assert default_helpers.call("number", "7", ["0"]) == "7"
        assert default_helpers.call("number", "abc") == "abc"

    def test_bold_opens_styled_run(self):
        fragment = default_helpers.call("bold", "Ana")

        assert "<w:b/>" in fragment
        assert ">Ana</w:t>" in fragment
        assert fragment.startswith("</w:t></w:r>")

    def test_align_defaults_to_center(self):
        assert '<w:jc w:val="center"/>' in default_helpers.call("align", "x", ["sideways"])
        assert '<w:jc w:val="right"/>' in default_helpers.call("align", "x", ["right"])

    def test_indent_levels(self):
        assert default_helpers.call("indent", "x", ["3"]).count("<w:tab/>") == 3

    def test_helpers_are_idempotent(self):
        first = default_helpers.call("page_break", "x")
        second = default_helpers.call("page_break", "x")

        assert first == second
