"""Component registry: the block types an editor can create."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import tomlkit
from pydantic import BaseModel, ValidationError, field_validator

from .errors import ComponentNotFound, SchemaException
from .schema import FieldSchema, FormSchema

logger = logging.getLogger(__name__)


class BlockType(BaseModel):
    """A registered block type and the fields its props are edited with."""

    type: str
    title: str = ""
    icon: str = ""
    description: str = ""
    fields: list[FieldSchema] = []

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Block type cannot be empty")
        return v.strip()

    def form_schema(self) -> FormSchema:
        return FormSchema(
            title=self.title or self.type,
            description=self.description,
            fields=self.fields,
        )


class ComponentRegistry:
    def __init__(self, components: Optional[list[BlockType]] = None):
        self._components: dict[str, BlockType] = {}
        for component in components or []:
            self.register(component)

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[BlockType]:
        return iter(self._components.values())

    def __contains__(self, block_type: str) -> bool:
        return self.has(block_type)

    def register(self, component: BlockType) -> None:
        if component.type in self._components:
            logger.warning(f"Block type '{component.type}' re-registered")
        self._components[component.type] = component

    def get(self, block_type: str) -> BlockType:
        component = self._components.get(block_type)
        if component is None:
            raise ComponentNotFound(f"Block type not registered: {block_type}")
        return component

    def has(self, block_type: str) -> bool:
        return block_type in self._components

    def list(self) -> list[BlockType]:
        return sorted(self._components.values(), key=lambda c: c.type)

    def remove(self, block_type: str) -> bool:
        return self._components.pop(block_type, None) is not None

    def clear(self) -> None:
        self._components.clear()


def load_components(path: str | Path) -> ComponentRegistry:
    """Load block types from a TOML file of ``[[components]]`` tables.

    Args:
        path: Components file path

    Returns:
        Registry holding every component in file order

    Raises:
        SchemaException: File is missing, unparsable or a component is invalid
    """
    path = Path(path)
    if not path.exists():
        raise SchemaException(f"Components file not found: {path}")

    try:
        data = tomlkit.loads(path.read_text(encoding="utf-8")).unwrap()
    except (OSError, ValueError) as e:
        raise SchemaException(f"Failed to read components file {path}: {e}") from e

    registry = ComponentRegistry()
    for index, raw in enumerate(data.get("components", [])):
        try:
            registry.register(BlockType.model_validate(raw))
        except ValidationError as e:
            name = raw.get("type", f"#{index}") if isinstance(raw, dict) else f"#{index}"
            errors = "; ".join(
                f"{' -> '.join(str(item) for item in err.get('loc', []))}: {err.get('msg', '')}"
                for err in e.errors()
            )
            raise SchemaException(f"Invalid component {name}: {errors}") from e

    logger.info(f"Loaded {len(registry)} block types from {path}")
    return registry
