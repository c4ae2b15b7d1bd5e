"""In-memory value of one repeatable field."""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Iterator, Optional

from .schema import Record
from .utils import deep_clone


def new_record_id() -> str:
    return uuid.uuid4().hex


class RecordStore:
    """Ordered records plus the UI-only collapsed set.

    Every record gets an opaque id when it enters the store. The collapsed
    set is keyed by that id, so reordering or removing records never moves a
    collapse flag onto a different record. Positions are only used at the
    edges (``index_of``/``id_at``) and invalid positions are ignored.
    """

    def __init__(self, records: Optional[Iterable[Record]] = None):
        self._records: list[Record] = []
        self._ids: list[str] = []
        self._collapsed: set[str] = set()
        self.replace(records or [])

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[tuple[str, Record]]:
        return iter(zip(list(self._ids), list(self._records)))

    def in_range(self, index: int) -> bool:
        return 0 <= index < len(self._records)

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def id_at(self, index: int) -> Optional[str]:
        if not self.in_range(index):
            return None
        return self._ids[index]

    def index_of(self, record_id: str) -> Optional[int]:
        try:
            return self._ids.index(record_id)
        except ValueError:
            return None

    def get(self, index: int) -> Optional[Record]:
        if not self.in_range(index):
            return None
        return self._records[index]

    def append(self, record: Record) -> str:
        record_id = new_record_id()
        self._records.append(record)
        self._ids.append(record_id)
        return record_id

    def remove(self, index: int) -> Optional[str]:
        if not self.in_range(index):
            return None
        self._records.pop(index)
        record_id = self._ids.pop(index)
        self._collapsed.discard(record_id)
        return record_id

    def move(self, from_index: int, to_index: int) -> bool:
        if not self.in_range(from_index) or not self.in_range(to_index):
            return False
        if from_index == to_index:
            return False
        record = self._records.pop(from_index)
        record_id = self._ids.pop(from_index)
        self._records.insert(to_index, record)
        self._ids.insert(to_index, record_id)
        return True

    def set_field(self, index: int, field_name: str, value: Any) -> bool:
        if not self.in_range(index):
            return False
        self._records[index][field_name] = value
        return True

    def replace(self, records: Iterable[Record]) -> None:
        self._records = [dict(r) for r in deep_clone(list(records)) if isinstance(r, dict)]
        self._ids = [new_record_id() for _ in self._records]
        self._collapsed.clear()

    def is_collapsed(self, index: int) -> bool:
        record_id = self.id_at(index)
        return record_id is not None and record_id in self._collapsed

    def collapse(self, index: int) -> bool:
        record_id = self.id_at(index)
        if record_id is None or record_id in self._collapsed:
            return False
        self._collapsed.add(record_id)
        return True

    def expand(self, index: int) -> bool:
        record_id = self.id_at(index)
        if record_id is None or record_id not in self._collapsed:
            return False
        self._collapsed.discard(record_id)
        return True

    def toggle(self, index: int) -> bool:
        if not self.in_range(index):
            return False
        if self.is_collapsed(index):
            return self.expand(index)
        return self.collapse(index)

    def collapsed_indices(self) -> set[int]:
        return {i for i, record_id in enumerate(self._ids) if record_id in self._collapsed}

    def to_list(self) -> list[Record]:
        return deep_clone(self._records)
