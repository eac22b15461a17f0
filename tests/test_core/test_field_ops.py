"""Tests for folio.core.field_ops -- body coercion and validation."""

import pytest

from folio.core.field_ops import (
    FieldDef,
    FieldType,
    as_int,
    as_optional_int,
    as_status,
    changed_columns,
    coerce_body,
    coerce_value,
    parse_json_column,
    to_json_text,
    validate_body,
)

MOCK_SCHEMA: dict[str, FieldDef] = {
    "title": FieldDef(FieldType.STRING, "Title"),
    "kind": FieldDef(FieldType.STRING, "Kind", default="alpha", choices=["alpha", "beta"]),
    "rank": FieldDef(FieldType.OPTIONAL_INT, "Rank"),
    "status": FieldDef(FieldType.STATUS, "Status"),
    "items_json": FieldDef(FieldType.JSON_LIST, "Items", source="items"),
    "data_json": FieldDef(FieldType.JSON_OBJECT, "Data", source="data"),
}


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


class TestAsInt:
    def test_numeric_string(self):
        assert as_int(" 3 ", 1) == 3

    @pytest.mark.parametrize("value", [None, "", "abc", "0", "-2", "1.5"])
    def test_falls_back(self, value):
        assert as_int(value, 7) == 7


class TestAsOptionalInt:
    def test_int_and_float(self):
        assert as_optional_int(4) == 4
        assert as_optional_int("2.9") == 2

    @pytest.mark.parametrize("value", [None, "", "  ", "x", True, float("nan"), float("inf")])
    def test_blank_or_garbage(self, value):
        assert as_optional_int(value) is None


class TestAsStatus:
    def test_published(self):
        assert as_status("published") == "published"

    @pytest.mark.parametrize("value", [None, "", "PUBLISHED", "live", "draft"])
    def test_everything_else_is_draft(self, value):
        assert as_status(value) == "draft"


class TestJsonText:
    def test_string_passes_through(self):
        assert to_json_text('["a"]', "[]") == '["a"]'

    def test_none_falls_back(self):
        assert to_json_text(None, "{}") == "{}"

    def test_list_is_dumped(self):
        assert to_json_text(["a", "b"], "[]") == '["a", "b"]'

    def test_parse_column(self):
        assert parse_json_column('["x"]', []) == ["x"]
        assert parse_json_column("not json", []) == []
        assert parse_json_column(None, {}) == {}


# ---------------------------------------------------------------------------
# Whole bodies
# ---------------------------------------------------------------------------


class TestCoerceBody:
    def test_fills_every_column(self):
        params = coerce_body({}, MOCK_SCHEMA)

        assert params == {
            "title": "",
            "kind": "alpha",
            "rank": None,
            "status": "draft",
            "items_json": "[]",
            "data_json": "{}",
        }

    def test_reads_source_keys(self):
        params = coerce_body({"items": ["a"], "data": {"k": 1}, "rank": "5", "status": "published"}, MOCK_SCHEMA)

        assert params["items_json"] == '["a"]'
        assert params["data_json"] == '{"k": 1}'
        assert params["rank"] == 5
        assert params["status"] == "published"

    def test_int_default(self):
        field_def = FieldDef(FieldType.INT, "Order")
        assert coerce_value("nope", field_def) == 0
        assert coerce_value("12", field_def) == 12


class TestValidateBody:
    def test_valid(self):
        assert validate_body({"kind": "beta", "items": '["a"]'}, MOCK_SCHEMA) == []

    def test_blank_values_skip_validation(self):
        assert validate_body({"kind": "", "items": None}, MOCK_SCHEMA) == []

    def test_bad_choice(self):
        errors = validate_body({"kind": "gamma"}, MOCK_SCHEMA)

        assert len(errors) == 1
        assert errors[0].startswith("kind:")
        assert "alpha, beta" in errors[0]

    def test_bad_json_text(self):
        errors = validate_body({"items": "[unclosed", "data": "{}"}, MOCK_SCHEMA)
        assert errors == ["items: not valid JSON."]


def test_changed_columns():
    old = {"title": "A", "status": "draft", "rank": None}
    new = {"title": "B", "status": "draft", "rank": 3}
    assert changed_columns(old, new) == ["rank", "title"]
