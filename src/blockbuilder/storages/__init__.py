from blockbuilder.config import Config, StorageType
from blockbuilder.errors import ConfigException

from .base import BlockRepository
from .db import DBBlockRepository
from .memory import MemoryBlockRepository


def get_repository(*, config: Config) -> BlockRepository:
    storage_type = config.storage.type

    if storage_type == StorageType.MEMORY:
        return MemoryBlockRepository()

    if storage_type == StorageType.DB:
        return DBBlockRepository()

    raise ConfigException(f"Unknown storage type: {storage_type}")


__all__ = [
    "BlockRepository",
    "DBBlockRepository",
    "MemoryBlockRepository",
    "get_repository",
]
