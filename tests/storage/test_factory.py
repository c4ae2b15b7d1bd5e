from unittest.mock import Mock

import pytest

from blockbuilder.config import StorageType
from blockbuilder.errors import ConfigException
from blockbuilder.storages import DBBlockRepository, MemoryBlockRepository, get_repository


def test_get_repository_memory():
    config = Mock()
    config.storage.type = StorageType.MEMORY

    assert isinstance(get_repository(config=config), MemoryBlockRepository)


def test_get_repository_db():
    config = Mock()
    config.storage.type = StorageType.DB

    assert isinstance(get_repository(config=config), DBBlockRepository)


def test_get_repository_unknown():
    config = Mock()
    config.storage.type = "redis"

    with pytest.raises(ConfigException):
        get_repository(config=config)
