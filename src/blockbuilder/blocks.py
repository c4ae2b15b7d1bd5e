"""Blocks and the use cases that create and edit them."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from .errors import BlockLocked, BlockNotFound, BlockValidationError
from .i18n import gettext as _
from .registry import BlockType, ComponentRegistry
from .schema import create_record, effective_min, initial_value
from .storages.base import BlockRepository
from .utils import deep_clone, get_now
from .validation import validate

logger = logging.getLogger(__name__)

PRIMITIVES = (str, int, float, bool)


def new_block_id() -> str:
    return uuid.uuid4().hex


class Block(BaseModel):
    id: str = Field(default_factory=new_block_id)
    type: str
    props: dict[str, Any] = {}
    settings: dict[str, Any] = {}
    style: dict[str, Any] = {}
    visible: bool = True
    locked: bool = False
    parent: Optional[str] = None
    order: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=get_now)
    updated_at: datetime = Field(default_factory=get_now)
    version: int = Field(default=1, ge=1)

    def touch(self) -> None:
        self.updated_at = get_now()
        self.version += 1


def _is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, PRIMITIVES)


def check_props(props: Mapping[str, Any]) -> dict[str, list[str]]:
    """Structural check of block props.

    Top-level values must be primitives, lists of primitives or lists of
    records; repeatable values are the only nested structures a block holds.
    """
    errors: dict[str, list[str]] = {}
    for key, value in props.items():
        if _is_primitive(value):
            continue
        if isinstance(value, list):
            if all(_is_primitive(v) for v in value) or all(isinstance(v, dict) for v in value):
                continue
            errors[key] = [_("List values must be all primitives or all items")]
            continue
        errors[key] = [_("Value must be a primitive or a list")]
    return errors


def check_settings(settings: Mapping[str, Any]) -> dict[str, list[str]]:
    return {
        key: [_("Setting must be a primitive value")]
        for key, value in settings.items()
        if not _is_primitive(value)
    }


def check_style(style: Mapping[str, Any]) -> dict[str, list[str]]:
    return {
        key: [_("Style must be a string or a number")]
        for key, value in style.items()
        if isinstance(value, bool) or not isinstance(value, (str, int, float))
    }


def default_props(block_type: BlockType) -> dict[str, Any]:
    """Props of a freshly created block: field defaults, minimum items seeded."""
    props: dict[str, Any] = {}
    for field in block_type.fields:
        if field.is_repeatable and field.default is None:
            props[field.name] = [create_record(field) for _ in range(effective_min(field))]
        else:
            props[field.name] = initial_value(field)
    return props


class BlockManager:
    """Block use cases on top of a repository and a component registry."""

    def __init__(self, repository: BlockRepository, registry: ComponentRegistry):
        self.repository = repository
        self.registry = registry

    def _validate(self, block_type: BlockType, block: Block) -> None:
        errors = check_props(block.props)
        for key, messages in check_settings(block.settings).items():
            errors[f"settings.{key}"] = messages
        for key, messages in check_style(block.style).items():
            errors[f"style.{key}"] = messages
        if not errors:
            errors = validate(block.props, block_type.fields)
        if errors:
            raise BlockValidationError(errors)

    def get(self, block_id: str) -> Block:
        block = self.repository.get(block_id)
        if block is None:
            raise BlockNotFound(f"Block not found: {block_id}")
        return block

    def list(self, *, block_type: Optional[str] = None, parent: Optional[str] = None) -> list[Block]:
        blocks = self.repository.list()
        if block_type is not None:
            blocks = [b for b in blocks if b.type == block_type]
        if parent is not None:
            blocks = [b for b in blocks if b.parent == parent]
        return sorted(blocks, key=lambda b: (b.order, b.created_at))

    def children(self, block_id: str) -> list[Block]:
        return self.list(parent=block_id)

    def create(
        self,
        block_type: str,
        props: Optional[Mapping[str, Any]] = None,
        *,
        settings: Optional[Mapping[str, Any]] = None,
        style: Optional[Mapping[str, Any]] = None,
        parent: Optional[str] = None,
        order: Optional[int] = None,
        visible: bool = True,
        locked: bool = False,
    ) -> Block:
        component = self.registry.get(block_type)
        if parent is not None:
            self.get(parent)

        merged = default_props(component)
        merged.update(deep_clone(dict(props or {})))

        block = Block(
            type=block_type,
            props=merged,
            settings=deep_clone(dict(settings or {})),
            style=deep_clone(dict(style or {})),
            parent=parent,
            order=len(self.repository.list()) if order is None else order,
            visible=visible,
            locked=locked,
        )
        self._validate(component, block)

        self.repository.save(block)
        logger.info(f"Block created: {block.id} (type={block_type})")
        return block

    def update(
        self,
        block_id: str,
        *,
        props: Optional[Mapping[str, Any]] = None,
        settings: Optional[Mapping[str, Any]] = None,
        style: Optional[Mapping[str, Any]] = None,
        visible: Optional[bool] = None,
        locked: Optional[bool] = None,
        parent: Optional[str] = None,
        order: Optional[int] = None,
    ) -> Block:
        """Apply a partial update.

        Props, settings and style are merged key by key. A locked block only
        accepts ``locked=False``; anything else raises ``BlockLocked``.
        """
        block = self.get(block_id)

        changes_content = any(
            v is not None for v in (props, settings, style, visible, parent, order)
        )
        if block.locked and (changes_content or locked is not False):
            raise BlockLocked(f"Block is locked: {block_id}")

        updated = block.model_copy(deep=True)
        if props is not None:
            updated.props.update(deep_clone(dict(props)))
        if settings is not None:
            updated.settings.update(deep_clone(dict(settings)))
        if style is not None:
            updated.style.update(deep_clone(dict(style)))
        if visible is not None:
            updated.visible = visible
        if locked is not None:
            updated.locked = locked
        if parent is not None:
            if parent == block_id:
                raise BlockValidationError({"parent": [_("A block cannot be its own parent")]})
            if block_id in self._ancestors(parent):
                raise BlockValidationError(
                    {"parent": [_("A block cannot be moved under its own descendant")]}
                )
            updated.parent = parent
        if order is not None:
            updated.order = order

        self._validate(self.registry.get(block.type), updated)
        updated.touch()

        self.repository.save(updated)
        logger.info(f"Block updated: {block_id} (version={updated.version})")
        return updated

    def _ancestors(self, block_id: str) -> list[str]:
        """Ids from ``block_id`` up to its root, stopping at a repeated id."""
        chain: list[str] = []
        current: Optional[str] = block_id
        while current is not None and current not in chain:
            chain.append(current)
            current = self.get(current).parent
        return chain

    def set_locked(self, block_id: str, locked: bool) -> Block:
        return self.update(block_id, locked=locked)

    def set_visible(self, block_id: str, visible: bool) -> Block:
        return self.update(block_id, visible=visible)

    def subtree(self, block_id: str) -> list[Block]:
        """The block followed by all of its descendants, each listed once."""
        blocks = [self.get(block_id)]
        seen = {block_id}
        for block in blocks:
            for child in self.children(block.id):
                if child.id not in seen:
                    seen.add(child.id)
                    blocks.append(child)
        return blocks

    def delete(self, block_id: str) -> None:
        """Delete a block and its children.

        Nothing is deleted when any block of the subtree is locked.
        """
        blocks = self.subtree(block_id)
        locked = [block.id for block in blocks if block.locked]
        if locked:
            raise BlockLocked(f"Block is locked: {', '.join(locked)}")

        for block in reversed(blocks):
            self.repository.delete(block.id)
        logger.info(f"Block deleted: {block_id} ({len(blocks) - 1} descendants)")

    def duplicate(self, block_id: str) -> Block:
        """Copy a block and its children; the copy is unlocked at version 1."""
        block = self.get(block_id)
        copy = self._duplicate(block, block.parent, set())
        logger.info(f"Block duplicated: {block_id} -> {copy.id}")
        return copy

    def _duplicate(self, block: Block, parent: Optional[str], seen: set[str]) -> Block:
        seen.add(block.id)
        now = get_now()
        copy = block.model_copy(
            deep=True,
            update={
                "id": new_block_id(),
                "parent": parent,
                "locked": False,
                "created_at": now,
                "updated_at": now,
                "version": 1,
            },
        )
        self.repository.save(copy)

        for child in self.children(block.id):
            if child.id not in seen:
                self._duplicate(child, copy.id, seen)
        return copy

    def reorder(self, block_ids: list[str]) -> None:
        """Set ``order`` from the position of each id in ``block_ids``."""
        blocks = [self.get(block_id) for block_id in block_ids]
        for position, block in enumerate(blocks):
            if block.order != position:
                block.order = position
                block.touch()
                self.repository.save(block)

    def clear(self) -> None:
        self.repository.clear()
        logger.info("All blocks removed")
