"""Path strings addressing values inside a form value tree.

A path is ``name`` or ``parent[index].name`` applied recursively, e.g.
``cards[2].links[0].url``. The same syntax keys the validation error map,
the ``data-path`` attributes of rendered markup and the serialized value,
so every producer and consumer goes through the helpers below.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, Mapping, Optional

REPEATABLE_KEY_RE = re.compile(r"^([A-Za-z_][\w-]*)\[(\d+)\]\.(.+)$")
ITEM_SEGMENT_RE = re.compile(r"^([A-Za-z_][\w-]*)\[(\d+)\]")


@dataclass(frozen=True)
class PathInfo:
    key: str
    field_name: str
    index: Optional[int] = None
    remainder: Optional[str] = None

    @property
    def is_repeatable(self) -> bool:
        return self.index is not None


def build_path(parent_path: str, index: int, field_name: str) -> str:
    return f"{parent_path}[{index}].{field_name}"


def item_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


def parse_path(key: str) -> PathInfo:
    """Classify an error key.

    ``cards[2].links[0].url`` is repeatable with field ``cards``, index 2 and
    remainder ``links[0].url``; the remainder parses the same way. Anything
    without a leading ``name[index].rest`` is a scalar leaf.
    """
    match = REPEATABLE_KEY_RE.match(key)
    if match is None:
        return PathInfo(key=key, field_name=key)

    return PathInfo(
        key=key,
        field_name=match.group(1),
        index=int(match.group(2)),
        remainder=match.group(3),
    )


def split_path(key: str) -> tuple[list[tuple[str, int]], str]:
    """Break a key into its ``(field, index)`` chain and terminal leaf.

    ``cards[0].links[1].url`` → ``([("cards", 0), ("links", 1)], "url")``.
    A key that ends at an item (``cards[0]``) keeps the item in the chain and
    returns an empty leaf.
    """
    segments: list[tuple[str, int]] = []
    remaining = key

    while remaining:
        match = ITEM_SEGMENT_RE.match(remaining)
        if match is None:
            break
        segments.append((match.group(1), int(match.group(2))))
        remaining = remaining[match.end():]
        if remaining.startswith("."):
            remaining = remaining[1:]
        else:
            break

    return segments, remaining


def _compare(a: str, b: str) -> int:
    a_info = parse_path(a)
    b_info = parse_path(b)

    if not a_info.is_repeatable and b_info.is_repeatable:
        return -1
    if a_info.is_repeatable and not b_info.is_repeatable:
        return 1

    if a_info.is_repeatable and b_info.is_repeatable:
        if a_info.field_name != b_info.field_name:
            return -1 if a_info.field_name < b_info.field_name else 1
        if a_info.index != b_info.index:
            return a_info.index - b_info.index
        return -1 if a < b else (1 if a > b else 0)

    if a == b:
        return 0
    return -1 if a < b else 1


def order_keys(keys: Iterable[str]) -> list[str]:
    """Order error keys so the first one is the field to focus.

    Scalar keys come before repeatable keys. Repeatable keys order by field
    name, then numerically by index; keys inside the same item, like two
    scalar leaves, compare as plain strings.
    """
    return sorted(keys, key=cmp_to_key(_compare))


def first_error_key(errors: Mapping[str, list[str]]) -> Optional[str]:
    keys = [key for key, messages in errors.items() if messages]
    if not keys:
        return None
    return order_keys(keys)[0]


def build_error_subset_for_item(
    all_errors: Mapping[str, list[str]],
    field_name: str,
    index: int,
    relativize: bool = False,
) -> dict[str, list[str]]:
    """Errors belonging to one list item's subtree.

    Keeps keys under ``field_name[index].``. With ``relativize`` the prefix is
    stripped, which is the form nested instances receive their errors in.
    """
    prefix = f"{item_path(field_name, index)}."
    subset: dict[str, list[str]] = {}
    for key, messages in all_errors.items():
        if not key.startswith(prefix):
            continue
        subset[key[len(prefix):] if relativize else key] = list(messages)
    return subset


def errors_under(all_errors: Mapping[str, list[str]], path: str) -> dict[str, list[str]]:
    """Errors for ``path`` itself or anything below it."""
    return {
        key: list(messages)
        for key, messages in all_errors.items()
        if key == path or key.startswith(f"{path}[") or key.startswith(f"{path}.")
    }
