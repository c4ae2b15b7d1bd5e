"""Peewee ORM model definitions"""

from peewee import (
    BooleanField,
    CharField,
    DatabaseProxy,
    IntegerField,
    Model,
)
from playhouse.shortcuts import ThreadSafeDatabaseMetadata
from playhouse.sqlite_ext import JSONField

# Use DatabaseProxy for deferred database binding
database_proxy = DatabaseProxy()


class BaseModel(Model):
    """Base model class - supports thread-safe metadata"""

    class Meta:
        database = database_proxy
        model_metadata_class = ThreadSafeDatabaseMetadata


class BlockRecord(BaseModel):
    """Stored block; props, settings and style are JSON columns.

    Timestamps are kept as ISO 8601 strings so the UTC offset survives.
    """

    id = CharField(primary_key=True, max_length=32)
    type = CharField(index=True)
    props = JSONField(default=dict)
    settings = JSONField(default=dict)
    style = JSONField(default=dict)
    visible = BooleanField(default=True)
    locked = BooleanField(default=False)
    parent = CharField(null=True, index=True)
    order = IntegerField(default=0)
    version = IntegerField(default=1)
    created_at = CharField()
    updated_at = CharField()

    class Meta:
        table_name = "blocks"
