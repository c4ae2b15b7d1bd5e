"""Rule evaluation and error map tests"""

import pytest

from blockbuilder.schema import FieldSchema, ValidationRule
from blockbuilder.validation import validate, validate_field

from conftest import CARDS, card, link, make_field


def rule(type, **kwargs) -> ValidationRule:
    return ValidationRule(type=type, **kwargs)


@pytest.mark.parametrize(
    "rules,value,failed",
    [
        ([rule("required")], "", True),
        ([rule("required")], [], True),
        ([rule("required")], 0, False),
        ([rule("email")], "user@example.com", False),
        ([rule("email")], "user@", True),
        ([rule("email")], "", False),
        ([rule("url")], "https://example.com/a", False),
        ([rule("url")], "example", True),
        ([rule("min", value=3)], 2, True),
        ([rule("min", value=3)], "3", False),
        ([rule("max", value=10)], 11.5, True),
        ([rule("minLength", value=3)], "ab", True),
        ([rule("maxLength", value=3)], "abcd", True),
        ([rule("pattern", value=r"^\d+$")], "12a", True),
        ([rule("pattern", value=r"^\d+$")], "123", False),
        ([rule("custom", validator=lambda v: v == "ok")], "no", True),
    ],
)
def test_validate_field_rules(rules, value, failed):
    assert bool(validate_field(value, rules)) is failed


def test_custom_message_wins():
    assert validate_field("", [rule("required", message="Title please")]) == ["Title please"]


def test_failing_custom_validator_reports_its_rule():
    def broken(value):
        raise TypeError("boom")

    rules = [rule("custom", validator=broken, message="Code is not valid")]

    assert validate_field("abc", rules) == ["Code is not valid"]
    assert validate({"code": "abc"}, [FieldSchema(name="code", rules=rules)]) == {
        "code": ["Code is not valid"]
    }


def test_default_messages():
    assert validate_field("", [rule("required")]) == ["This field is required"]
    assert validate_field(1, [rule("min", value=2)]) == ["Value must be at least 2"]


def test_validate_builds_nested_paths():
    fields = [FieldSchema(name="title", rules=[{"type": "required"}]), make_field(CARDS)]
    value = {
        "title": "",
        "cards": [
            card("A", links=[link(), link(url="not a url")]),
            card("", links=[link(label="")]),
        ],
    }

    errors = validate(value, fields)

    assert errors == {
        "title": ["This field is required"],
        "cards[0].links[1].url": ["Enter a valid URL"],
        "cards[1].title": ["This field is required"],
        "cards[1].links[0].label": ["This field is required"],
    }


def test_validate_valid_value_returns_empty_map():
    assert validate({"cards": [card("A", links=[link()])]}, [make_field(CARDS)]) == {}


def test_validate_required_list_empty():
    errors = validate({"cards": []}, [make_field(CARDS)])

    assert errors == {"cards": ["This field is required"]}


def test_validate_list_bounds():
    field = make_field(CARDS, min_items=2, max_items=2)

    below = validate({"cards": [card("A")]}, [field])
    above = validate({"cards": [card("A"), card("B"), card("C")]}, [field])

    assert below == {"cards": ["Add at least 2 items"]}
    assert above == {"cards": ["Add at most 2 items"]}


def test_validate_structural_errors():
    field = make_field(CARDS)

    assert validate({"cards": "nope"}, [field]) == {"cards": ["Expected a list of items"]}
    assert validate({"cards": [card("A"), 5]}, [field]) == {
        "cards[1]": ["Expected an item with fields"]
    }
