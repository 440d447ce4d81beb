"""Error types raised by the item store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .storage import Storage


class StorageError(Exception):
    """Base for every storage failure. Remembers the store that raised it."""

    def __init__(self, message: str, storage: Storage | None = None):
        super().__init__(message)
        self.storage = storage


class UnknownTypeError(StorageError, LookupError):
    """An operation referenced a logical type name that is not registered."""

    def __init__(self, type_name: str, storage: Storage | None = None, *, item_id: int | None = None):
        where = f" (item ID {item_id})" if item_id is not None else ""
        super().__init__(f"Type {type_name!r} is not registered in storage{where}", storage)
        self.type_name = type_name
        self.item_id = item_id


class DuplicateItemError(StorageError, ValueError):
    """An item with the same ID, or the same name within its type, already exists."""

    def __init__(
        self,
        type_name: str,
        name: str,
        storage: Storage | None = None,
        *,
        item_id: int | None = None,
        message: str | None = None,
    ):
        if message is None:
            message = f"Item {name!r} of type {type_name!r} already exists in storage"
        super().__init__(message, storage)
        self.type_name = type_name
        self.name = name
        self.item_id = item_id


class MalformedDataError(StorageError, ValueError):
    """The persisted document is structurally invalid."""

    def __init__(self, message: str, storage: Storage | None = None, *, item_id: int | None = None):
        super().__init__(message, storage)
        self.item_id = item_id


class UnparsableValueError(StorageError, ValueError):
    """Attribute text does not parse as the member's declared type."""

    def __init__(self, member: str, item_id: int, raw: str, reason: str = "",
                 storage: Storage | None = None):
        message = f"Can't parse member {member!r} of item with ID {item_id} from {raw!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message, storage)
        self.member = member
        self.item_id = item_id
        self.raw = raw


class UnsupportedMemberTypeError(StorageError, TypeError):
    """A storable member has a value type with no codec."""

    def __init__(self, member: str, value_type: Any, *, item_id: int | None = None,
                 storage: Storage | None = None):
        if item_id is None:
            message = f"Unsupported type {value_type!r} of member {member!r}"
        else:
            message = f"Unsupported type {value_type!r} of member {member!r} of item with ID {item_id}"
        super().__init__(message, storage)
        self.member = member
        self.value_type = value_type
        self.item_id = item_id


class InvalidValueError(StorageError, ValueError):
    """A member holds a value its declared type can't render."""

    def __init__(self, member: str, item_id: int, value: Any, reason: str = "",
                 storage: Storage | None = None):
        message = f"Can't write member {member!r} of item with ID {item_id}: invalid value {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, storage)
        self.member = member
        self.item_id = item_id
        self.value = value
