"""Form controller: the top of one editable form.

Holds scalar values plus one top-level ``RepeatableInstance`` per repeatable
field, serializes them into a single value, validates it and routes the
resulting errors. Everything the instances need is passed in explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

from .config import EditorConfig
from .paths import split_path
from .render import FormRenderer, get_default_renderer
from .repeatable import FieldView, RepeatableInstance, _dom_id
from .router import ErrorRouter, RouteResult
from .schema import FieldSchema, FormSchema, initial_value
from .utils import deep_clone
from .validation import validate
from .viewport import HtmlViewport, NavigationEvent

logger = logging.getLogger(__name__)

SubmitCallback = Callable[[dict[str, Any]], Awaitable[bool]]


@dataclass
class SubmitResult:
    success: bool
    value: dict[str, Any]
    errors: dict[str, list[str]] = field(default_factory=dict)
    route: Optional[RouteResult] = None
    events: list[NavigationEvent] = field(default_factory=list)


def with_nesting_depth(field_schema: FieldSchema, depth: int) -> FieldSchema:
    """Copy of a repeatable field tree with ``depth`` filled in wherever it is unset."""
    update: dict[str, Any] = {}
    if "max_nesting_depth" not in field_schema.model_fields_set:
        update["max_nesting_depth"] = depth
    if field_schema.item_fields:
        update["item_fields"] = [
            with_nesting_depth(child, depth) if child.is_repeatable else child
            for child in field_schema.item_fields
        ]
    return field_schema.model_copy(update=update)


class FormController:
    def __init__(
        self,
        schema: FormSchema,
        value: Optional[Mapping[str, Any]] = None,
        *,
        editor: Optional[EditorConfig] = None,
        renderer: Optional[FormRenderer] = None,
        on_change: Optional[Callable[[dict[str, Any]], None]] = None,
    ):
        self.schema = schema
        self.editor = editor or EditorConfig()
        self.renderer = renderer or get_default_renderer()
        self._on_change = on_change
        self._values: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}
        self.instances: dict[str, RepeatableInstance] = {}
        self._build(value or {})

    def _build(self, value: Mapping[str, Any]) -> None:
        for instance in self.instances.values():
            instance.destroy()
        self.instances = {}
        self._values = {}

        for field_schema in self.schema.fields:
            name = field_schema.name
            if field_schema.is_repeatable:
                field_schema = with_nesting_depth(field_schema, self.editor.max_nesting_depth)
                self.instances[name] = RepeatableInstance(
                    field_schema,
                    value.get(name),
                    errors=self._errors,
                    on_change=lambda records, name=name: self._field_changed(name, records),
                    renderer=self.renderer,
                )
            elif name in value:
                self._values[name] = deep_clone(value[name])
            else:
                self._values[name] = initial_value(field_schema)

    def _field_changed(self, name: str, value: Any) -> None:
        logger.debug(f"Form field changed: {name}")
        if self._on_change is not None:
            self._on_change(self.get_value())

    # ---------------------------------------------------------------- value

    def get_value(self) -> dict[str, Any]:
        value = deep_clone(self._values)
        for name, instance in self.instances.items():
            value[name] = instance.get_value()
        return {f.name: value.get(f.name) for f in self.schema.fields}

    def set_value(self, value: Mapping[str, Any]) -> None:
        for field_schema in self.schema.fields:
            name = field_schema.name
            if name not in value:
                continue
            if name in self.instances:
                self.instances[name].set_value(value[name])
            else:
                self._values[name] = deep_clone(value[name])

    def set_field(self, name: str, value: Any) -> bool:
        """Set one field, addressed by path (``title`` or ``cards[0].title``)."""
        segments, leaf = split_path(name)
        if not segments:
            if name in self.instances:
                self.instances[name].set_value(value)
            elif self.schema.field(name) is not None:
                self._values[name] = deep_clone(value)
            else:
                return False
            self._field_changed(name, value)
            return True

        container = self._resolve(segments[:-1], segments[-1][0])
        if container is None or not leaf:
            return False
        return container.update_field(segments[-1][1], leaf, value)

    def instance(self, name: str) -> Optional[RepeatableInstance]:
        return self.instances.get(name)

    def find_instance(self, path: str) -> Optional[RepeatableInstance]:
        """Instance rendered at ``path``, e.g. ``cards`` or ``cards[0].links``."""
        segments, leaf = split_path(path)
        if not segments:
            return self.instances.get(path)
        if not leaf:
            return None
        return self._resolve(segments, leaf)

    def _resolve(self, segments: list[tuple[str, int]], name: str) -> Optional[RepeatableInstance]:
        if not segments:
            return self.instances.get(name)

        instance = self.instances.get(segments[0][0])
        for depth, (_name, index) in enumerate(segments):
            if instance is None:
                return None
            next_name = segments[depth + 1][0] if depth + 1 < len(segments) else name
            instance = instance.nested_instance(index, next_name)
        return instance

    # ---------------------------------------------------------------- errors

    @property
    def errors(self) -> dict[str, list[str]]:
        return dict(self._errors)

    def validate(self) -> dict[str, list[str]]:
        return validate(self.get_value(), self.schema.fields)

    def update_errors(self, errors: Mapping[str, list[str]]) -> None:
        self._errors = {key: list(messages) for key, messages in errors.items() if messages}
        for instance in self.instances.values():
            instance.update_errors(self._errors)

    def clear_errors(self) -> None:
        self.update_errors({})

    def router(self) -> ErrorRouter:
        return ErrorRouter(self.instances)

    def viewport(self, on_settle=None) -> HtmlViewport:
        return HtmlViewport(
            self.render,
            settle_delay_ms=self.editor.settle_delay_ms,
            on_settle=on_settle,
            scroll_offset=self.editor.scroll_offset,
        )

    async def route_errors(
        self, errors: Mapping[str, list[str]], viewport: Optional[HtmlViewport] = None
    ) -> tuple[Optional[RouteResult], HtmlViewport]:
        self.update_errors(errors)
        viewport = viewport or self.viewport()
        result = await self.router().handle_validation_errors(
            self._errors, viewport, expand_all=self.editor.expand_all_errors
        )
        return result, viewport

    async def submit(
        self, on_submit: SubmitCallback, viewport: Optional[HtmlViewport] = None
    ) -> SubmitResult:
        value = self.get_value()
        errors = validate(value, self.schema.fields)

        if errors:
            route, viewport = await self.route_errors(errors, viewport)
            logger.info(f"Form submit rejected with {len(errors)} errors")
            return SubmitResult(
                success=False,
                value=value,
                errors=self.errors,
                route=route,
                events=list(viewport.events),
            )

        self.clear_errors()
        try:
            success = bool(await on_submit(value))
        except Exception as e:
            logger.error(f"Form submit callback failed: {e}")
            success = False
        return SubmitResult(success=success, value=value)

    # ---------------------------------------------------------------- render

    def field_views(self) -> list[FieldView]:
        views = []
        for field_schema in self.schema.fields:
            name = field_schema.name
            view = FieldView(
                schema=field_schema,
                path=name,
                dom_id=_dom_id(name),
                value=self._values.get(name),
                errors=list(self._errors.get(name, [])),
            )
            if name in self.instances:
                view.value = None
                view.nested_html = self.instances[name].render()
            views.append(view)
        return views

    def render(self) -> str:
        return self.renderer.render_form(self.schema, self.field_views())

    def destroy(self) -> None:
        for instance in self.instances.values():
            instance.destroy()
        self.instances.clear()
        self._values.clear()
        self._errors.clear()
