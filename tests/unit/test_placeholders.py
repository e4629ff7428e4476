"""Unit tests for placeholder extraction and variable unification."""

import pytest

from docmerge.interfaces.errors import ValidationError
from docmerge.strategies.template_engine.models import TemplateVariable, VariableSource
from docmerge.strategies.template_engine.placeholders import (
    PlaceholderKind,
    classify_placeholder,
    default_label,
    extract_variables,
    first_token,
    normalize_name,
    scan_placeholders,
)
from docmerge.strategies.template_engine.unifier import unify_names, unify_variables


# =============================================================================
# Extraction Tests
# =============================================================================


class TestExtractVariables:
    """Test suite for extract_variables."""

    def test_spaces_and_hyphens_become_underscores(self):
        """Messy tokens normalize to canonical names with derived labels."""
        variables = extract_variables("Hello {{first name}}, your code is {{code-1}}.")

        assert [v.name for v in variables] == ["first_name", "code_1"]
        assert [v.label for v in variables] == ["First Name", "Code 1"]
        assert all(v.source == VariableSource.TEXT for v in variables)

    def test_directives_are_not_variables(self):
        """Engine directives never show up as data variables."""
        variables = extract_variables("{{CMD_NODE foreach}} {{client}} {{CMD_NODE end}}")

        assert [v.name for v in variables] == ["client"]

    def test_duplicates_keep_first_occurrence(self):
        variables = extract_variables("{{b}} {{a}} {{b}} {{ a }}")

        assert [v.name for v in variables] == ["b", "a"]

    def test_punctuation_is_stripped(self):
        variables = extract_variables("{{ client.name! }}")

        assert [v.name for v in variables] == ["clientname"]

    def test_token_stops_at_line_break(self):
        variables = extract_variables("{{amount\nin words}}")

        assert [v.name for v in variables] == ["amount"]

    def test_source_is_recorded(self):
        variables = extract_variables("{{total}}", VariableSource.OCR)

        assert variables[0].source == VariableSource.OCR

    def test_invalid_token_rejects_whole_import(self):
        """One bad token fails the import and reports every offender."""
        with pytest.raises(ValidationError) as exc_info:
            extract_variables("{{name}} {{1st}} {{???}}")

        assert exc_info.value.invalid_tokens == ["1st", "???"]

    def test_empty_text(self):
        assert extract_variables("") == []

    def test_reextracting_canonical_names_is_stable(self):
        """Canonical names survive a second pass unchanged."""
        first = extract_variables("{{first name}} {{code-1}} {{x__y}}")
        text = " ".join("{{" + v.name + "}}" for v in first)

        assert [v.name for v in extract_variables(text)] == [v.name for v in first]


class TestPlaceholderHelpers:
    """Test suite for the token level helpers."""

    @pytest.mark.parametrize(
        "token,expected",
        [
            ("first name", "first_name"),
            ("first  -  name", "first_name"),
            ("code-1", "code_1"),
            ("already_canonical", "already_canonical"),
        ],
    )
    def test_normalize_name(self, token, expected):
        assert normalize_name(token) == expected
        assert normalize_name(expected) == expected

    def test_first_token_trims(self):
        assert first_token("  due date \t ignored") == "due date"

    def test_default_label_skips_empty_segments(self):
        assert default_label("x__y") == "X Y"

    def test_classify(self):
        assert classify_placeholder("CMD_NODE date due").kind == PlaceholderKind.DIRECTIVE
        assert classify_placeholder("9lives").kind == PlaceholderKind.INVALID
        data = classify_placeholder(" due-date ")
        assert data.kind == PlaceholderKind.DATA
        assert data.name == "due_date"

    def test_scan_never_raises(self):
        scan = scan_placeholders("{{ok}} {{1bad}} {{CMD_NODE upper ok}}")

        assert scan.names == ["ok"]
        assert scan.invalid_tokens == ["1bad"]
        assert scan.directives == ["CMD_NODE upper ok"]


# =============================================================================
# Unifier Tests
# =============================================================================


class TestUnifier:
    """Test suite for variable unification."""

    def test_primary_source_wins(self):
        primary = [TemplateVariable(name="nombre", label="Nombre")]
        secondary = [TemplateVariable(name="nombre", label="Name", source=VariableSource.OCR)]

        unified = unify_variables(primary, secondary)

        assert len(unified) == 1
        assert unified[0].label == "Nombre"
        assert unified[0].source == VariableSource.TEXT

    def test_secondary_only_names_are_appended(self):
        primary = [TemplateVariable(name="a", label="A")]
        secondary = [
            TemplateVariable(name="b", label="B", source=VariableSource.OCR),
            TemplateVariable(name="a", label="Other", source=VariableSource.OCR),
        ]

        assert [v.name for v in unify_variables(primary, secondary)] == ["a", "b"]

    def test_matching_is_case_sensitive(self):
        unified = unify_variables(
            [TemplateVariable(name="Name", label="Name")],
            [TemplateVariable(name="name", label="Name")],
        )

        assert [v.name for v in unified] == ["Name", "name"]

    def test_unify_names(self):
        assert unify_names(["a", "b"], ["b", "c"], []) == ["a", "b", "c"]
