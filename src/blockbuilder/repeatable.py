"""Repeatable field instances.

A ``RepeatableInstance`` owns the records of one repeatable field and exposes
the list operations an editor needs (add, remove, move, collapse, edit a
field). Child fields that are themselves repeatable get one nested instance
per record, created on demand up to the schema's nesting depth. Nested
instances push their value back into the owning record through their
change callback, so the root's value is always the complete tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .consts import ROOT_NESTING_DEPTH
from .errors import SchemaException
from .paths import build_error_subset_for_item, build_path, errors_under, item_path
from .records import RecordStore
from .schema import FieldSchema, Record, create_record, effective_min
from .utils import count_text, deep_clone

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[list[Record]], None]


@dataclass
class FieldView:
    schema: FieldSchema
    path: str
    dom_id: str
    value: Any
    errors: list[str]
    nested_html: Optional[str] = None
    nesting_blocked: bool = False

    @property
    def has_error(self) -> bool:
        return bool(self.errors)


@dataclass
class ItemView:
    index: int
    record_id: str
    path: str
    title: str
    collapsed: bool
    has_errors: bool
    can_move_up: bool
    can_move_down: bool
    can_remove: bool
    fields: list[FieldView] = field(default_factory=list)


@dataclass
class RepeatableView:
    path: str
    schema: FieldSchema
    nesting_depth: int
    items: list[ItemView]
    errors: list[str]
    count_text: str
    can_add: bool
    minimum: int
    below_minimum: bool
    at_maximum: bool


def _coerce_records(value: Any) -> list[Record]:
    if not isinstance(value, list):
        return []
    return [record for record in value if isinstance(record, dict)]


class RepeatableInstance:
    """Editable list of records for one repeatable field.

    Errors handed to an instance are keyed relative to its own field name:
    a top-level instance for ``cards`` sees ``cards[0].title``, the nested
    ``links`` instance inside ``cards[0]`` sees ``links[1].url``.

    Invalid indices and bound violations are ignored; the mutating methods
    return ``False`` instead of raising.
    """

    def __init__(
        self,
        schema: FieldSchema,
        value: Optional[list[Record]] = None,
        *,
        nesting_depth: int = ROOT_NESTING_DEPTH,
        parent_path: str = "",
        errors: Optional[dict[str, list[str]]] = None,
        on_change: Optional[ChangeCallback] = None,
        renderer=None,
    ):
        if not schema.is_repeatable:
            raise SchemaException(f"Field '{schema.name}' is not repeatable")

        self.schema = schema
        self.nesting_depth = nesting_depth
        self.html: Optional[str] = None

        self._parent_path = parent_path
        self._parent: Optional[RepeatableInstance] = None
        self._parent_record_id: Optional[str] = None
        self._errors: dict[str, list[str]] = dict(errors or {})
        self._on_change = on_change
        self._renderer = renderer
        self._nested: dict[tuple[str, str], RepeatableInstance] = {}
        self._mounted = False

        self.store = RecordStore(_coerce_records(value))

        minimum = effective_min(schema)
        if len(self.store) == 0 and minimum > 0:
            for _ in range(minimum):
                self.store.append(create_record(schema))

    def __len__(self) -> int:
        return len(self.store)

    def __repr__(self) -> str:
        return f"<RepeatableInstance {self.path} items={len(self.store)} depth={self.nesting_depth}>"

    # ---------------------------------------------------------------- identity

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def path(self) -> str:
        if self._parent is not None:
            index = self._parent.store.index_of(self._parent_record_id)
            if index is None:
                return self.schema.name
            return build_path(self._parent.path, index, self.schema.name)
        if self._parent_path:
            return f"{self._parent_path}.{self.schema.name}"
        return self.schema.name

    @property
    def root(self) -> RepeatableInstance:
        instance = self
        while instance._parent is not None:
            instance = instance._parent
        return instance

    @property
    def minimum(self) -> int:
        return effective_min(self.schema)

    @property
    def can_nest(self) -> bool:
        return self.nesting_depth < self.schema.max_nesting_depth

    # ---------------------------------------------------------------- mutations

    def add_item(self) -> bool:
        max_items = self.schema.max_items
        if max_items is not None and len(self.store) >= max_items:
            logger.debug(f"{self.path}: add ignored, maximum of {max_items} reached")
            return False

        self.store.append(create_record(self.schema))
        self._emit_change()
        self._refresh()
        return True

    def remove_item(self, index: int) -> bool:
        if len(self.store) <= self.minimum:
            logger.debug(f"{self.path}: remove ignored, minimum of {self.minimum} reached")
            return False

        record_id = self.store.remove(index)
        if record_id is None:
            return False

        self._drop_nested(record_id)
        self._emit_change()
        self._refresh()
        return True

    def move_item(self, from_index: int, to_index: int) -> bool:
        if not self.store.move(from_index, to_index):
            return False

        self._emit_change()
        self._refresh()
        return True

    def toggle_collapse(self, index: int) -> bool:
        if not self.store.toggle(index):
            return False
        self._refresh()
        return True

    def collapse_item(self, index: int) -> bool:
        if not self.store.collapse(index):
            return False
        self._refresh()
        return True

    def expand_item(self, index: int) -> bool:
        if not self.store.expand(index):
            return False
        self._refresh()
        return True

    def is_item_collapsed(self, index: int) -> bool:
        return self.store.is_collapsed(index)

    def update_field(self, item_index: int, field_name: str, value: Any) -> bool:
        child = self.schema.child(field_name)
        record_id = self.store.id_at(item_index)
        if child is None or record_id is None:
            return False

        value = deep_clone(value)
        if child.is_repeatable:
            nested = self._nested.get((record_id, field_name))
            if nested is not None:
                nested._replace(_coerce_records(value))
                value = nested.get_value()

        self.store.set_field(item_index, field_name, value)
        self._emit_change()
        return True

    # ---------------------------------------------------------------- value

    def get_value(self) -> list[Record]:
        return self.store.to_list()

    serialize = get_value

    def set_value(self, value: list[Record]) -> None:
        self._replace(_coerce_records(value))
        self._refresh()

    def _replace(self, records: list[Record]) -> None:
        for nested in self._nested.values():
            nested.destroy()
        self._nested.clear()
        self.store.replace(records)

    def _emit_change(self) -> None:
        if self._on_change is not None:
            self._on_change(self.get_value())

    def _on_nested_change(self, record_id: str, field_name: str, value: list[Record]) -> None:
        index = self.store.index_of(record_id)
        if index is None:
            logger.debug(f"{self.path}: change from detached nested '{field_name}' ignored")
            return
        self.store.set_field(index, field_name, value)
        self._emit_change()

    # ---------------------------------------------------------------- errors

    @property
    def errors(self) -> dict[str, list[str]]:
        return dict(self._errors)

    def update_errors(self, errors: dict[str, list[str]]) -> None:
        self._set_errors(errors)
        self._refresh()

    def _set_errors(self, errors: dict[str, list[str]]) -> None:
        self._errors = dict(errors)
        for (record_id, name), nested in self._nested.items():
            index = self.store.index_of(record_id)
            if index is not None:
                nested._set_errors(self._nested_errors(index, name))

    def item_errors(self, index: int) -> dict[str, list[str]]:
        """Errors of one item, relative to the item (``title``, ``links[0].url``)."""
        return build_error_subset_for_item(self._errors, self.schema.name, index, relativize=True)

    def _nested_errors(self, index: int, field_name: str) -> dict[str, list[str]]:
        return errors_under(self.item_errors(index), field_name)

    def field_errors(self, index: int, field_name: str) -> list[str]:
        return list(self._errors.get(build_path(self.schema.name, index, field_name), []))

    def item_has_errors(self, index: int) -> bool:
        return any(self.item_errors(index).values())

    # ---------------------------------------------------------------- nesting

    def nested_instance(self, index: int, field_name: str) -> Optional[RepeatableInstance]:
        """Nested instance for ``field_name`` of the record at ``index``.

        Created on first access. Returns None for out-of-range indices,
        non-repeatable children and when the nesting depth is exhausted.
        """
        record_id = self.store.id_at(index)
        child = self.schema.child(field_name)
        if record_id is None or child is None or not child.is_repeatable:
            return None
        if not self.can_nest:
            return None

        instance = self._nested.get((record_id, field_name))
        if instance is None:
            instance = self._create_nested(record_id, child)
        return instance

    def nested_instances(self) -> dict[tuple[int, str], RepeatableInstance]:
        """Live nested instances keyed by current ``(index, field name)``."""
        result = {}
        for (record_id, name), instance in self._nested.items():
            index = self.store.index_of(record_id)
            if index is not None:
                result[(index, name)] = instance
        return result

    def _create_nested(self, record_id: str, child: FieldSchema) -> RepeatableInstance:
        index = self.store.index_of(record_id)
        record = self.store.get(index)

        nested = RepeatableInstance(
            child,
            record.get(child.name),
            nesting_depth=self.nesting_depth + 1,
            errors=self._nested_errors(index, child.name),
            renderer=self._renderer,
        )
        self._wire_nested(nested, record_id)

        # a seeded minimum lands in the record without a change event
        record[child.name] = nested.get_value()
        self._nested[(record_id, child.name)] = nested
        logger.debug(f"Created nested instance {nested.path}")
        return nested

    def _wire_nested(self, nested: RepeatableInstance, record_id: str) -> None:
        name = nested.schema.name
        nested._parent = self
        nested._parent_record_id = record_id
        nested._on_change = lambda value: self._on_nested_change(record_id, name, value)

    def _sync_nested(self) -> None:
        live_ids = set(self.store.ids)
        for key in [key for key in self._nested if key[0] not in live_ids]:
            self._nested.pop(key).destroy()

        if not self.can_nest:
            return

        for index, record_id in enumerate(self.store.ids):
            for child in self.schema.item_fields or []:
                if not child.is_repeatable:
                    continue
                nested = self._nested.get((record_id, child.name))
                if nested is None:
                    self._create_nested(record_id, child)
                else:
                    self._wire_nested(nested, record_id)
                    nested._set_errors(self._nested_errors(index, child.name))

    def _drop_nested(self, record_id: str) -> None:
        for key in [key for key in self._nested if key[0] == record_id]:
            self._nested.pop(key).destroy()

    # ---------------------------------------------------------------- render

    def mount(self) -> str:
        """Render and keep re-rendering after every structural change."""
        self._mounted = True
        self.html = self.render()
        return self.html

    def _refresh(self) -> None:
        root = self.root
        if root._mounted:
            root.html = root.render()

    def build_view(self) -> RepeatableView:
        self._sync_nested()

        count = len(self.store)
        minimum = self.minimum
        max_items = self.schema.max_items
        path = self.path

        items = []
        for index, record_id in enumerate(self.store.ids):
            record = self.store.get(index)
            collapsed = self.store.is_collapsed(index)
            fields = []
            if not collapsed:
                for child in self.schema.item_fields or []:
                    fields.append(self._field_view(index, record_id, record, child))

            items.append(
                ItemView(
                    index=index,
                    record_id=record_id,
                    path=item_path(path, index),
                    title=f"{self.schema.item_title} #{index + 1}",
                    collapsed=collapsed,
                    has_errors=self.item_has_errors(index),
                    can_move_up=index > 0,
                    can_move_down=index < count - 1,
                    can_remove=count > minimum,
                    fields=fields,
                )
            )

        return RepeatableView(
            path=path,
            schema=self.schema,
            nesting_depth=self.nesting_depth,
            items=items,
            errors=list(self._errors.get(self.schema.name, [])),
            count_text=count_text(count, self.schema.count_labels) if count else "",
            can_add=max_items is None or count < max_items,
            minimum=minimum,
            below_minimum=bool(minimum) and count < minimum,
            at_maximum=max_items is not None and count >= max_items,
        )

    def _field_view(self, index: int, record_id: str, record: Record, child: FieldSchema) -> FieldView:
        path = build_path(self.path, index, child.name)
        view = FieldView(
            schema=child,
            path=path,
            dom_id=_dom_id(path),
            value=record.get(child.name),
            errors=self.field_errors(index, child.name),
        )
        if child.is_repeatable:
            nested = self._nested.get((record_id, child.name))
            if nested is None:
                view.nesting_blocked = True
            else:
                view.nested_html = nested.render()
        return view

    def render(self) -> str:
        if self._renderer is None:
            from .render import get_default_renderer

            self._renderer = get_default_renderer()
        return self._renderer.render_repeatable(self.build_view())

    def destroy(self) -> None:
        for nested in self._nested.values():
            nested.destroy()
        self._nested.clear()
        self._on_change = None
        self._mounted = False
        self.html = None


def _dom_id(path: str) -> str:
    return "field-" + path.replace("[", "-").replace("].", "-").replace(".", "-").replace("]", "")
