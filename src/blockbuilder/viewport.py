"""Server-side viewport over rendered form markup.

The rendered form is parsed with lxml so the router can check which fields
actually exist after each expansion. Scrolling and focusing are recorded as
navigation events for the browser to replay.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Mapping, Optional

from lxml import html

from .consts import (
    CSS_ERROR,
    CSS_FIELD_ERROR_HIGHLIGHT,
    CSS_FORM_GROUP,
    SCROLL_OFFSET,
)

logger = logging.getLogger(__name__)

FORM_FIELD_TAGS = ("input", "textarea", "select")


@dataclass(frozen=True)
class NavigationEvent:
    action: str
    path: str
    offset: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _add_class(element, css_class: str) -> None:
    classes = element.get("class", "").split()
    if css_class not in classes:
        classes.append(css_class)
        element.set("class", " ".join(classes))


class HtmlViewport:
    """Viewport backed by a render callable.

    ``settle`` waits for the injected notification (or the fixed delay) and
    then re-renders, so lookups after an expansion see the new markup.
    """

    def __init__(
        self,
        render: Callable[[], str],
        *,
        settle_delay_ms: int = 0,
        on_settle: Optional[Callable[[], Awaitable[None]]] = None,
        scroll_offset: int = SCROLL_OFFSET,
    ):
        self._render = render
        self._settle_delay_ms = settle_delay_ms
        self._on_settle = on_settle
        self._scroll_offset = scroll_offset
        self._document = None
        self.events: list[NavigationEvent] = []
        self.refresh()

    def refresh(self) -> None:
        self._document = html.fragment_fromstring(self._render(), create_parent="div")

    @property
    def markup(self) -> str:
        return html.tostring(self._document, encoding="unicode")

    async def settle(self) -> None:
        if self._on_settle is not None:
            await self._on_settle()
        elif self._settle_delay_ms:
            await asyncio.sleep(self._settle_delay_ms / 1000)
        self.refresh()

    def _find(self, path: str):
        matches = self._document.xpath("//*[@data-path=$path]", path=path)
        if not matches:
            matches = self._document.xpath("//*[@name=$path]", path=path)
        return matches[0] if matches else None

    def locate(self, path: str) -> bool:
        return self._find(path) is not None

    def decorate(self, errors: Mapping[str, list[str]]) -> None:
        for path, messages in errors.items():
            if not messages:
                continue
            element = self._find(path)
            if element is None:
                continue
            _add_class(element, CSS_ERROR)
            group = next(
                (
                    ancestor
                    for ancestor in element.iterancestors()
                    if CSS_FORM_GROUP in ancestor.get("class", "").split()
                ),
                None,
            )
            if group is not None:
                _add_class(group, CSS_ERROR)

    def scroll_to(self, path: str) -> None:
        if not self.locate(path):
            logger.debug(f"Scroll target '{path}' not found")
            return
        self.events.append(NavigationEvent("scroll", path, self._scroll_offset))

    def focus(self, path: str) -> None:
        element = self._find(path)
        if element is None:
            logger.debug(f"Focus target '{path}' not found")
            return

        target = element
        if element.tag not in FORM_FIELD_TAGS:
            inputs = [e for e in element.iterdescendants() if e.tag in FORM_FIELD_TAGS]
            if inputs:
                target = inputs[0]

        _add_class(target, CSS_FIELD_ERROR_HIGHLIGHT)
        self.events.append(NavigationEvent("focus", target.get("name") or path))
