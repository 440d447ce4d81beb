"""Base record capability shared by every in-storage item.

Subclass ``StorageItem`` (usually as a ``@dataclass``) and register the class
with a ``Storage``; annotated attributes and settable properties of the
subclass become storable members::

    @dataclass
    class Worker(StorageItem):
        Age: int = 0
        Label: str = ""
        notes: Annotated[str, StorageIgnore] = ""
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import DuplicateItemError

if TYPE_CHECKING:
    from .storage import Storage

# dataclass ``field(metadata={IGNORE: True})`` opts a member out of persistence
IGNORE = "storage_ignore"


class StorageIgnore:
    """Marker excluding a member from persistence: ``Annotated[T, StorageIgnore]``."""


class StorageItem:
    """Base class for all in-storage items.

    Identity lives in underscore attributes, which are never storable, and is
    exposed through read-only ``id`` / ``type_name`` and the renaming ``name``.
    """

    # Unannotated so member discovery and dataclass field collection skip them.
    _storage = None
    _id = 0
    _name = ""
    _type_name = ""

    def _init_storage_item(self, storage: Storage, type_name: str, name: str, item_id: int) -> None:
        self._storage = storage
        self._type_name = type_name
        self._name = name
        self._id = item_id

    def _detach(self) -> None:
        self._storage = None

    # -- Identity --

    @property
    def storage(self) -> Storage | None:
        """Store owning this item; None once deleted."""
        return self._storage

    @property
    def id(self) -> int:
        return self._id

    @property
    def type_name(self) -> str:
        return self._type_name

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Item name must be str, got {type(value).__name__}")
        if value == "":
            return
        if self._storage is None:
            self._name = value
            return
        if not self._storage.try_change_item_name(self, value):
            raise DuplicateItemError(self._type_name, value, self._storage, item_id=self._id)

    # -- Store delegation --

    def get_item_type(self) -> type[StorageItem] | None:
        """Registered class of this item, or None when detached."""
        if self._storage is None:
            return None
        return self._storage.get_type_by_name(self._type_name)

    def delete_item(self) -> None:
        """Remove this item from its store."""
        if self._storage is not None:
            self._storage.delete_item(self)
