from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from ..blocks import Block


class BlockRepository(Protocol):
    def get(self, block_id: str) -> Optional["Block"]: ...

    def list(self) -> list["Block"]: ...

    def save(self, block: "Block") -> None: ...

    def delete(self, block_id: str) -> bool: ...

    def clear(self) -> None: ...
