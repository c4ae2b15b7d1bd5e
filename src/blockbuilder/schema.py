"""Field and form schema models.

A field schema is static, externally authored data. Scalar fields carry an
editor type (text, number, ...); a field typed ``repeater`` is repeatable and
describes its child records through ``item_fields``.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .consts import DEFAULT_ITEM_TITLE, DEFAULT_MAX_NESTING_DEPTH, REPEATER_TYPE
from .errors import SchemaException
from .utils import deep_clone

# record values: scalar, list of scalars, or a nested list of records
Record = dict[str, Any]


class FieldKind(str, Enum):
    SCALAR = "scalar"
    REPEATABLE = "repeatable"


class RuleType(str, Enum):
    REQUIRED = "required"
    EMAIL = "email"
    URL = "url"
    MIN = "min"
    MAX = "max"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CUSTOM = "custom"


class ValidationRule(BaseModel):
    type: RuleType
    message: str = ""
    value: Any = None
    validator: Optional[Callable[[Any], bool]] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def check_value(self) -> "ValidationRule":
        needs_value = {
            RuleType.MIN,
            RuleType.MAX,
            RuleType.MIN_LENGTH,
            RuleType.MAX_LENGTH,
            RuleType.PATTERN,
        }
        if self.type in needs_value and self.value is None:
            raise ValueError(f"Rule '{self.type.value}' requires a value")
        if self.type == RuleType.PATTERN:
            try:
                re.compile(str(self.value))
            except re.error as e:
                raise ValueError(f"Rule 'pattern' has an invalid expression: {e}") from e
        if self.type in (RuleType.MIN, RuleType.MAX, RuleType.MIN_LENGTH, RuleType.MAX_LENGTH):
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
                raise ValueError(f"Rule '{self.type.value}' requires a number")
        if self.type == RuleType.CUSTOM and self.validator is None:
            raise ValueError("Rule 'custom' requires a validator callable")
        return self


class FieldOption(BaseModel):
    value: Any
    label: str = ""


class FieldSchema(BaseModel):
    name: str
    label: str = ""
    type: str = "text"
    placeholder: str = ""
    help_text: Optional[str] = None
    default: Any = None
    options: list[FieldOption] = []
    rules: list[ValidationRule] = []

    # repeater only
    item_fields: Optional[list[FieldSchema]] = None
    min_items: Optional[int] = Field(default=None, ge=0)
    max_items: Optional[int] = Field(default=None, ge=1)
    max_nesting_depth: int = Field(default=DEFAULT_MAX_NESTING_DEPTH, ge=1)
    default_item: dict[str, Any] = {}
    item_title: str = DEFAULT_ITEM_TITLE
    add_button_text: str = "Add"
    remove_button_text: str = "Remove"
    collapsible: bool = False
    count_labels: Optional[dict[str, str]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field name cannot be empty")
        if any(ch in v for ch in "[]."):
            raise ValueError(f"Field name cannot contain '[', ']' or '.': {v}")
        return v.strip()

    @model_validator(mode="after")
    def validate_repeater(self) -> "FieldSchema":
        if self.type == REPEATER_TYPE:
            if not self.item_fields:
                raise ValueError(f"Repeater field '{self.name}' requires item_fields")
            names = [f.name for f in self.item_fields]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(
                    f"Repeater field '{self.name}' has duplicate item fields: {', '.join(duplicates)}"
                )
            if (
                self.min_items is not None
                and self.max_items is not None
                and self.min_items > self.max_items
            ):
                raise ValueError(
                    f"Repeater field '{self.name}': min_items cannot exceed max_items"
                )
        elif self.item_fields is not None:
            raise ValueError(f"Only repeater fields may declare item_fields: {self.name}")
        return self

    @property
    def kind(self) -> FieldKind:
        return FieldKind.REPEATABLE if self.type == REPEATER_TYPE else FieldKind.SCALAR

    @property
    def is_repeatable(self) -> bool:
        return self.kind == FieldKind.REPEATABLE

    @property
    def required(self) -> bool:
        return any(rule.type == RuleType.REQUIRED for rule in self.rules)

    def child(self, name: str) -> Optional[FieldSchema]:
        for field in self.item_fields or []:
            if field.name == name:
                return field
        return None


class FormSchema(BaseModel):
    title: str = ""
    description: str = ""
    fields: list[FieldSchema]
    submit_button_text: str = "Save"
    cancel_button_text: str = "Cancel"

    @model_validator(mode="after")
    def validate_unique_names(self) -> "FormSchema":
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate form fields: {', '.join(duplicates)}")
        return self

    def field(self, name: str) -> Optional[FieldSchema]:
        for field in self.fields:
            if field.name == name:
                return field
        return None


def effective_min(field: FieldSchema) -> int:
    """Lower bound on a repeatable list's length.

    An optional field can always be cleared completely, so a configured
    ``min_items`` only applies once the field is required. A required field
    without ``min_items`` needs one item.
    """
    if not field.required:
        return 0
    if field.min_items is not None:
        return field.min_items
    return 1


def zero_value(field: FieldSchema) -> Any:
    match field.type:
        case "checkbox":
            return False
        case "number":
            return 0
        case "repeater" | "multiselect":
            return []
        case _:
            return ""


def initial_value(field: FieldSchema) -> Any:
    if field.default is not None:
        return deep_clone(field.default)
    return zero_value(field)


def create_record(field: FieldSchema) -> Record:
    """Build a fresh record for a repeatable field.

    Values come from, in order: the field's ``default_item``, the child
    field's own default, then the child type's zero value.
    """
    record: Record = {}
    for child in field.item_fields or []:
        if field.default_item.get(child.name) is not None:
            record[child.name] = deep_clone(field.default_item[child.name])
        else:
            record[child.name] = initial_value(child)
    return record


def load_form_schema(path: str | Path) -> FormSchema:
    """Load a form schema from a TOML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise SchemaException(f"Schema file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = tomlkit.loads(text).unwrap()
    except (OSError, ValueError) as e:
        raise SchemaException(f"Failed to read schema {path}: {e}") from e

    return parse_form_schema(data)


def parse_form_schema(data: dict[str, Any]) -> FormSchema:
    try:
        return FormSchema.model_validate(data)
    except ValidationError as e:
        lines = ["Schema validation failed:"]
        for error in e.errors():
            loc = " -> ".join(str(item) for item in error.get("loc", []))
            lines.append(f"  - {loc}: {error.get('msg', '')}")
        raise SchemaException("\n".join(lines)) from e
