"""Utility functions for BlockBuilder"""

import copy
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def canonicalify(p: Path | str) -> Path:
    return Path(p).expanduser().resolve()


def ensure_path(p: Path | str) -> Path:
    path = canonicalify(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_now(timezone: ZoneInfo = UTC) -> datetime:
    """Get current time in specified timezone

    Args:
        timezone: Timezone object

    Returns:
        Current time with timezone info
    """
    return datetime.now(timezone)


def deep_clone(value: Any) -> Any:
    return copy.deepcopy(value)


def plural_form(count: int) -> str:
    """Pick the plural category used by item counters.

    Follows the one/few/many split of Slavic languages, which also degrades
    to a sensible one/many split for English labels (``few`` falls back to
    ``many`` when a label set does not define it).

    Returns:
        One of ``"one"``, ``"few"`` or ``"many"``
    """
    mod10 = count % 10
    mod100 = count % 100

    if mod10 == 1 and mod100 != 11:
        return "one"
    if 2 <= mod10 <= 4 and (mod100 < 10 or mod100 >= 20):
        return "few"
    return "many"


def count_text(count: int, variants: Optional[dict[str, str]] = None) -> str:
    """Render an item counter such as ``"3 cards"``.

    Args:
        count: Number of items
        variants: Optional mapping with ``one``/``few``/``many`` (and
            optionally ``zero``) label forms

    Returns:
        The count followed by the matching label, or just the count
    """
    if not variants:
        return f"{count}"

    if count == 0 and variants.get("zero"):
        return f"{count} {variants['zero']}"

    form = plural_form(count)
    label = variants.get(form) or variants.get("many") or variants.get("one", "")
    return f"{count} {label}".rstrip()
