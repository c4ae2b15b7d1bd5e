import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..blocks import Block

logger = logging.getLogger(__name__)


class DBBlockRepository:
    """Blocks stored in the ``blocks`` table; the database must be initialized."""

    def _to_block(self, record) -> "Block":
        from ..blocks import Block

        return Block(
            id=record.id,
            type=record.type,
            props=record.props or {},
            settings=record.settings or {},
            style=record.style or {},
            visible=record.visible,
            locked=record.locked,
            parent=record.parent,
            order=record.order,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def get(self, block_id: str) -> Optional["Block"]:
        from ..models import BlockRecord

        record = BlockRecord.get_or_none(BlockRecord.id == block_id)
        return self._to_block(record) if record is not None else None

    def list(self) -> list["Block"]:
        from ..models import BlockRecord

        return [self._to_block(record) for record in BlockRecord.select()]

    def save(self, block: "Block") -> None:
        from ..models import BlockRecord, database_proxy

        data = block.model_dump(mode="json")
        with database_proxy.atomic():
            BlockRecord.replace(**data).execute()
        logger.debug(f"Block stored: {block.id} (version={block.version})")

    def delete(self, block_id: str) -> bool:
        from ..models import BlockRecord

        return BlockRecord.delete().where(BlockRecord.id == block_id).execute() > 0

    def clear(self) -> None:
        from ..models import BlockRecord

        BlockRecord.delete().execute()
