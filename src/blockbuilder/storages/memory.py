import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..blocks import Block

logger = logging.getLogger(__name__)


class MemoryBlockRepository:
    """Blocks kept in a dict; copies go in and out so callers cannot alias."""

    def __init__(self) -> None:
        self._blocks: dict[str, "Block"] = {}

    def get(self, block_id: str) -> Optional["Block"]:
        block = self._blocks.get(block_id)
        return block.model_copy(deep=True) if block is not None else None

    def list(self) -> list["Block"]:
        return [block.model_copy(deep=True) for block in self._blocks.values()]

    def save(self, block: "Block") -> None:
        self._blocks[block.id] = block.model_copy(deep=True)

    def delete(self, block_id: str) -> bool:
        return self._blocks.pop(block_id, None) is not None

    def clear(self) -> None:
        self._blocks.clear()
