"""Field schema model unit tests"""

import json

import pytest

from blockbuilder.errors import SchemaException
from blockbuilder.schema import (
    FieldKind,
    FieldSchema,
    create_record,
    effective_min,
    load_form_schema,
    zero_value,
)

from conftest import CARDS, make_field


def test_kind_is_derived_from_type(cards_field):
    assert cards_field.kind == FieldKind.REPEATABLE
    assert cards_field.child("title").kind == FieldKind.SCALAR
    assert cards_field.child("links").is_repeatable
    assert cards_field.child("missing") is None


def test_repeater_requires_item_fields():
    with pytest.raises(ValueError):
        FieldSchema(name="cards", type="repeater")


def test_scalar_rejects_item_fields():
    with pytest.raises(ValueError):
        FieldSchema(name="title", item_fields=[{"name": "x"}])


def test_duplicate_item_fields_rejected():
    with pytest.raises(ValueError, match="duplicate"):
        FieldSchema(
            name="cards",
            type="repeater",
            item_fields=[{"name": "title"}, {"name": "title"}],
        )


def test_field_name_cannot_contain_path_syntax():
    with pytest.raises(ValueError):
        FieldSchema(name="cards[0]")
    with pytest.raises(ValueError):
        FieldSchema(name="a.b")


def test_min_cannot_exceed_max():
    with pytest.raises(ValueError):
        make_field(CARDS, min_items=4, max_items=2)


def test_rule_value_required_for_bounds():
    with pytest.raises(ValueError):
        FieldSchema(name="age", type="number", rules=[{"type": "min"}])


def test_pattern_rule_must_compile():
    with pytest.raises(ValueError, match="invalid expression"):
        FieldSchema(name="code", rules=[{"type": "pattern", "value": "["}])


def test_bound_rules_need_numbers():
    with pytest.raises(ValueError, match="requires a number"):
        FieldSchema(name="age", type="number", rules=[{"type": "min", "value": "three"}])


def test_load_form_schema_rejects_bad_pattern(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(
        json.dumps({"fields": [{"name": "code", "rules": [{"type": "pattern", "value": "["}]}]}),
        encoding="utf-8",
    )

    with pytest.raises(SchemaException, match="invalid expression"):
        load_form_schema(path)


def test_effective_min_required_without_min():
    """Test: Required field without min_items needs exactly one item"""
    assert effective_min(make_field(CARDS)) == 1


def test_effective_min_required_with_min():
    assert effective_min(make_field(CARDS, min_items=2)) == 2
    assert effective_min(make_field(CARDS, min_items=0)) == 0


def test_effective_min_optional_ignores_min():
    """Test: Optional field has minimum 0 regardless of min_items"""
    assert effective_min(make_field(CARDS, rules=[])) == 0
    assert effective_min(make_field(CARDS, rules=[], min_items=3)) == 0


def test_zero_values():
    assert zero_value(FieldSchema(name="a", type="checkbox")) is False
    assert zero_value(FieldSchema(name="a", type="number")) == 0
    assert zero_value(FieldSchema(name="a", type="multiselect")) == []
    assert zero_value(FieldSchema(name="a", type="color")) == ""


def test_create_record_precedence():
    """Test: default_item wins over child default, child default over zero value"""
    field = FieldSchema(
        name="rows",
        type="repeater",
        default_item={"title": "From item"},
        item_fields=[
            {"name": "title", "default": "From child"},
            {"name": "count", "type": "number", "default": 5},
            {"name": "done", "type": "checkbox"},
            {"name": "tags", "type": "repeater", "item_fields": [{"name": "tag"}]},
        ],
    )

    assert create_record(field) == {"title": "From item", "count": 5, "done": False, "tags": []}


def test_create_record_returns_independent_copies():
    field = FieldSchema(
        name="rows",
        type="repeater",
        default_item={"tags": ["a"]},
        item_fields=[{"name": "tags", "type": "multiselect"}],
    )

    first = create_record(field)
    first["tags"].append("b")

    assert create_record(field) == {"tags": ["a"]}


def test_load_form_schema_toml(tmp_path):
    schema_file = tmp_path / "form.toml"
    schema_file.write_text(
        """
title = "Hero"

[[fields]]
name = "title"
rules = [{ type = "required" }]

[[fields]]
name = "buttons"
type = "repeater"
max_items = 2

[[fields.item_fields]]
name = "text"
""",
        encoding="utf-8",
    )

    schema = load_form_schema(schema_file)

    assert schema.title == "Hero"
    assert schema.field("title").required
    assert schema.field("buttons").max_items == 2
    assert schema.field("buttons").child("text") is not None


def test_load_form_schema_json(tmp_path):
    schema_file = tmp_path / "form.json"
    schema_file.write_text(json.dumps({"fields": [CARDS]}), encoding="utf-8")

    assert load_form_schema(schema_file).field("cards").is_repeatable


def test_load_form_schema_errors(tmp_path):
    with pytest.raises(SchemaException, match="not found"):
        load_form_schema(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("fields = [", encoding="utf-8")
    with pytest.raises(SchemaException):
        load_form_schema(broken)

    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"fields": [{"name": "x", "type": "repeater"}]}))
    with pytest.raises(SchemaException, match="Schema validation failed"):
        load_form_schema(invalid)
