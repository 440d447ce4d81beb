"""In-memory item store with an ID index and a (type, name) index."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import IO, Iterator

from . import persistence
from .errors import DuplicateItemError, UnknownTypeError
from .storage_item import StorageItem
from .type_registry import MemberPolicy, TypeRegistry


class ItemView:
    """Restartable iterable over all items of a store, or the items of one type.

    The index is looked up on each ``iter()`` and copied as it is at that
    moment, so a view taken before its type was registered still fills in.
    """

    def __init__(self, storage: Storage, type_name: str | None = None):
        self._storage = storage
        self._type_name = type_name

    def _index(self) -> dict | None:
        if self._type_name is None:
            return self._storage._items_by_id
        return self._storage._items_by_type.get(self._type_name)

    def __iter__(self) -> Iterator[StorageItem]:
        index = self._index()
        if index is None:
            return iter(())
        return iter(list(index.values()))

    def __len__(self) -> int:
        index = self._index()
        return 0 if index is None else len(index)


class Storage:
    """Universal storage of registered record types.

    Not thread-safe. Callers sharing a store hold ``lock`` across any sequence
    of operations that must look atomic (check-then-create, read, clear).
    """

    def __init__(self, member_policy: MemberPolicy | str = MemberPolicy.SKIP) -> None:
        self._last_id = 0
        self._items_count = 0
        self._registry = TypeRegistry(member_policy)
        self._items_by_id: dict[int, StorageItem] = {}
        self._items_by_type: dict[str, dict[str, StorageItem]] = {}
        self.lock = threading.RLock()

    # -- Counters --

    @property
    def last_id(self) -> int:
        return self._last_id

    @property
    def items_count(self) -> int:
        return self._items_count

    def get_next_id(self) -> int:
        """Increment and return the last issued ID."""
        self._last_id += 1
        return self._last_id

    # -- Types --

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def type_names(self) -> list[str]:
        return list(self._registry.items())

    def register_type(self, type_name: str, cls: type[StorageItem]) -> bool:
        """Register an item class under a logical name.

        Returns False if the name or the class is already registered.
        """
        if not self._registry.register(type_name, cls):
            return False
        self._items_by_type[type_name] = {}
        return True

    def get_type_by_name(self, type_name: str) -> type[StorageItem] | None:
        return self._registry.get(type_name)

    # -- Items --

    def create_item(self, type_name: str, name: str) -> StorageItem:
        """Create a new item of a registered type with a fresh ID."""
        if type_name not in self._registry:
            raise UnknownTypeError(type_name, self)
        if not isinstance(name, str):
            raise TypeError(f"Item name must be str, got {type(name).__name__}")
        if self.get_item_by_name(type_name, name) is not None:
            raise DuplicateItemError(type_name, name, self)
        return self._create_item_impl(type_name, name, self.get_next_id())

    def _create_item_impl(self, type_name: str, name: str, item_id: int) -> StorageItem:
        if item_id in self._items_by_id:
            raise DuplicateItemError(
                type_name, name, self, item_id=item_id,
                message=f"Item with ID {item_id} already exists in storage",
            )
        bucket = self._items_by_type[type_name]
        if name in bucket:
            raise DuplicateItemError(type_name, name, self, item_id=item_id)
        item = self._registry.get(type_name)()
        item._init_storage_item(self, type_name, name, item_id)
        self._items_by_id[item_id] = item
        bucket[name] = item
        self._items_count += 1
        return item

    def get_item_by_id(self, item_id: int) -> StorageItem | None:
        return self._items_by_id.get(item_id)

    def get_item_by_name(self, type_name: str, name: str) -> StorageItem | None:
        bucket = self._items_by_type.get(type_name)
        if bucket is None:
            return None
        return bucket.get(name)

    def get_items(self, type_name: str | None = None) -> ItemView:
        """All items in ID order, or the items of one type; empty for unknown types."""
        return ItemView(self, type_name)

    def try_change_item_name(self, item: StorageItem, new_name: str) -> bool:
        """Move ``item`` to ``new_name`` in its type bucket.

        Returns False, changing nothing, if the name is taken in that type.
        """
        if not isinstance(new_name, str):
            raise TypeError(f"Item name must be str, got {type(new_name).__name__}")
        if item.storage is not self:
            return False
        if new_name == item.name:
            return True
        bucket = self._items_by_type[item.type_name]
        if new_name in bucket:
            return False
        del bucket[item.name]
        bucket[new_name] = item
        item._name = new_name
        return True

    def delete_item(self, item: StorageItem) -> None:
        """Remove ``item`` from both indices. No-op for items owned elsewhere."""
        if item.storage is not self:
            return
        del self._items_by_type[item.type_name][item.name]
        del self._items_by_id[item.id]
        self._items_count -= 1
        item._detach()

    def clear_items(self) -> None:
        """Drop every item and reset the ID counter. Registrations are kept."""
        for item in self._items_by_id.values():
            item._detach()
        self._items_by_id.clear()
        for bucket in self._items_by_type.values():
            bucket.clear()
        self._last_id = 0
        self._items_count = 0

    def __iter__(self) -> Iterator[StorageItem]:
        return iter(self.get_items())

    def __len__(self) -> int:
        return self._items_count

    # -- Persistence --

    def read_data(self, source: str | Path | IO) -> None:
        """Replace all items with those read from ``source``."""
        persistence.read_data(self, source)

    def write_data(self, sink: str | Path | IO) -> None:
        persistence.write_data(self, sink)

    def from_xml(self, text: str | bytes) -> None:
        persistence.from_xml(self, text)

    def to_xml(self) -> str:
        return persistence.to_xml(self)

    # -- Snapshot / restore for failed reads --

    def _snapshot(self) -> tuple:
        return (
            self._last_id,
            self._items_count,
            dict(self._items_by_id),
            {name: dict(bucket) for name, bucket in self._items_by_type.items()},
        )

    def _restore(self, snapshot: tuple) -> None:
        last_id, items_count, by_id, by_type = snapshot
        self.clear_items()
        self._items_by_id.update(by_id)
        for type_name, bucket in by_type.items():
            self._items_by_type[type_name].update(bucket)
        for item in by_id.values():
            item._storage = self
        self._last_id = last_id
        self._items_count = items_count

    def _set_last_id(self, last_id: int) -> None:
        self._last_id = last_id
