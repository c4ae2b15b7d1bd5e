"""Routing of validation errors onto a tree of repeatable instances.

Given the flat error map, the router expands every collapsed list item that
hides an error and brings the first error (by ``order_keys``) into view.
Anything that cannot be reached is logged and skipped; routing never raises
for a missing container or a stale index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

from .paths import order_keys, parse_path, split_path
from .repeatable import RepeatableInstance

logger = logging.getLogger(__name__)


class Viewport(Protocol):
    """What the router needs from the rendered form."""

    async def settle(self) -> None:
        """Resolve once the last structural change is rendered."""
        ...

    def locate(self, path: str) -> bool: ...

    def decorate(self, errors: Mapping[str, list[str]]) -> None: ...

    def scroll_to(self, path: str) -> None: ...

    def focus(self, path: str) -> None: ...


@dataclass
class RouteResult:
    key: str
    reached: bool = False
    expanded: list[tuple[str, int]] = field(default_factory=list)


class ErrorRouter:
    def __init__(self, instances: Mapping[str, RepeatableInstance]):
        self._instances = instances

    def _resolve_chain(
        self, key: str
    ) -> Optional[list[tuple[RepeatableInstance, int]]]:
        """Instances and item indices on the way down to ``key``.

        None when some container or item along the way does not exist.
        """
        info = parse_path(key)
        if not info.is_repeatable:
            return []

        chain = []
        instance = self._instances.get(info.field_name)
        while True:
            if instance is None:
                logger.debug(f"No repeatable container for '{info.field_name}' ({key})")
                return None
            if not instance.store.in_range(info.index):
                logger.debug(f"Item {info.index} of {instance.path} is gone ({key})")
                return None

            chain.append((instance, info.index))

            rest = parse_path(info.remainder)
            if not rest.is_repeatable:
                return chain

            instance = instance.nested_instance(info.index, rest.field_name)
            info = rest

    async def expand_for_errors(
        self, errors: Mapping[str, list[str]], viewport: Viewport
    ) -> list[tuple[str, int]]:
        """Expand every collapsed item that contains an error.

        Walks keys in routing order and opens each ancestor at most once;
        waits for the viewport to settle after each expansion so deeper
        containers exist before they are looked up.
        """
        opened: set[tuple[str, int]] = set()
        expanded: list[tuple[str, int]] = []

        for key in order_keys(k for k, messages in errors.items() if messages):
            segments, _leaf = split_path(key)
            if not segments:
                continue

            instance = self._instances.get(segments[0][0])
            for depth, (name, index) in enumerate(segments):
                if instance is None or not instance.store.in_range(index):
                    logger.debug(f"Cannot expand {name}[{index}] for '{key}'")
                    break

                marker = (instance.path, index)
                if marker not in opened:
                    opened.add(marker)
                    if instance.expand_item(index):
                        expanded.append(marker)
                        await viewport.settle()

                if depth + 1 < len(segments):
                    instance = instance.nested_instance(index, segments[depth + 1][0])

        return expanded

    async def route_to_first_error(
        self, errors: Mapping[str, list[str]], viewport: Viewport
    ) -> Optional[RouteResult]:
        keys = order_keys(k for k, messages in errors.items() if messages)
        if not keys:
            return None

        key = keys[0]
        result = RouteResult(key=key)

        chain = self._resolve_chain(key)
        if chain is None:
            return result

        for instance, index in chain:
            if instance.is_item_collapsed(index):
                instance.expand_item(index)
                result.expanded.append((instance.path, index))
                await viewport.settle()

        # expanding re-renders, so error markup has to be put back before focusing
        viewport.decorate(errors)
        if not viewport.locate(key):
            logger.debug(f"First error field '{key}' is not rendered")
            return result

        viewport.scroll_to(key)
        viewport.focus(key)
        result.reached = True
        return result

    async def handle_validation_errors(
        self,
        errors: Mapping[str, list[str]],
        viewport: Viewport,
        expand_all: bool = True,
    ) -> Optional[RouteResult]:
        """Decorate, expand and route one validation pass."""
        for instance in self._instances.values():
            instance.update_errors(dict(errors))

        expanded = []
        if expand_all:
            expanded = await self.expand_for_errors(errors, viewport)

        result = await self.route_to_first_error(errors, viewport)
        if result is not None:
            result.expanded = expanded + [e for e in result.expanded if e not in expanded]
        return result
