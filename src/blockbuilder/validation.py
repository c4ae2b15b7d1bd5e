"""Validation of serialized form values against field rules.

Produces the flat error map consumed by the error router: keys are paths
(``title``, ``cards[0].links[1].url``), values are lists of messages.
"""

import logging
import re
from typing import Any, Iterable, Mapping
from urllib.parse import urlparse

from .i18n import gettext as _
from .i18n import ngettext
from .paths import build_path
from .schema import FieldSchema, RuleType, ValidationRule, effective_min

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and not value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def default_message(rule: ValidationRule) -> str:
    match rule.type:
        case RuleType.REQUIRED:
            return _("This field is required")
        case RuleType.EMAIL:
            return _("Enter a valid email address")
        case RuleType.URL:
            return _("Enter a valid URL")
        case RuleType.MIN:
            return _("Value must be at least {value}").format(value=rule.value)
        case RuleType.MAX:
            return _("Value must be at most {value}").format(value=rule.value)
        case RuleType.MIN_LENGTH:
            return _("Must be at least {value} characters").format(value=rule.value)
        case RuleType.MAX_LENGTH:
            return _("Must be at most {value} characters").format(value=rule.value)
        case RuleType.PATTERN:
            return _("Value has an invalid format")
        case _:
            return _("Value is invalid")


def _violates(rule: ValidationRule, value: Any) -> bool:
    match rule.type:
        case RuleType.REQUIRED:
            return _is_empty(value)
        case RuleType.EMAIL:
            return isinstance(value, str) and bool(value) and not EMAIL_RE.match(value)
        case RuleType.URL:
            return isinstance(value, str) and bool(value) and not _is_url(value)
        case RuleType.MIN:
            number = _as_number(value)
            return number is not None and number < float(rule.value)
        case RuleType.MAX:
            number = _as_number(value)
            return number is not None and number > float(rule.value)
        case RuleType.MIN_LENGTH:
            return isinstance(value, (str, list)) and len(value) < int(rule.value)
        case RuleType.MAX_LENGTH:
            return isinstance(value, (str, list)) and len(value) > int(rule.value)
        case RuleType.PATTERN:
            return (
                isinstance(value, str)
                and bool(value)
                and re.search(str(rule.value), value) is None
            )
        case RuleType.CUSTOM:
            try:
                return not rule.validator(value)
            except Exception as e:
                logger.warning(f"Custom validator failed: {e}")
                return True
    return False


def validate_field(value: Any, rules: Iterable[ValidationRule]) -> list[str]:
    """Messages for every rule ``value`` violates, in rule order."""
    messages = []
    for rule in rules:
        if _violates(rule, value):
            messages.append(rule.message or default_message(rule))
    return messages


def _validate_list_bounds(field: FieldSchema, items: list) -> list[str]:
    messages = []
    minimum = effective_min(field)
    # an empty required list is already reported by the required rule
    if items and len(items) < minimum:
        messages.append(
            ngettext("Add at least {count} item", "Add at least {count} items", minimum).format(
                count=minimum
            )
        )
    if field.max_items is not None and len(items) > field.max_items:
        messages.append(
            ngettext(
                "Add at most {count} item", "Add at most {count} items", field.max_items
            ).format(count=field.max_items)
        )
    return messages


def _validate_into(
    errors: dict[str, list[str]],
    path: str,
    field: FieldSchema,
    value: Any,
) -> None:
    messages = validate_field(value, field.rules)

    if field.is_repeatable:
        if value is not None and not isinstance(value, list):
            messages.append(_("Expected a list of items"))
            value = []
        items = value or []
        messages.extend(_validate_list_bounds(field, items))

        for index, record in enumerate(items):
            if not isinstance(record, dict):
                errors[f"{path}[{index}]"] = [_("Expected an item with fields")]
                continue
            for child in field.item_fields or []:
                _validate_into(
                    errors,
                    build_path(path, index, child.name),
                    child,
                    record.get(child.name),
                )

    if messages:
        errors[path] = messages


def validate(value: Mapping[str, Any], fields: Iterable[FieldSchema]) -> dict[str, list[str]]:
    """Validate a serialized form value.

    Args:
        value: Field name to value mapping (repeatables as lists of records)
        fields: Top-level field schemas

    Returns:
        Flat error map; empty when the value is valid
    """
    errors: dict[str, list[str]] = {}
    for field in fields:
        _validate_into(errors, field.name, field, value.get(field.name))

    if errors:
        logger.debug(f"Validation produced {len(errors)} error keys")
    return errors
