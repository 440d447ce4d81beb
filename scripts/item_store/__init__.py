"""In-memory item store persisted to XML through introspected record members."""

from .errors import (
    DuplicateItemError,
    InvalidValueError,
    MalformedDataError,
    StorageError,
    UnknownTypeError,
    UnparsableValueError,
    UnsupportedMemberTypeError,
)
from .storage import ItemView, Storage
from .storage_item import IGNORE, StorageIgnore, StorageItem
from .type_registry import MemberKind, MemberPolicy, StorableMember, TypeRegistry
from .value_codec import Int32, Int64, IntRange, ScalarCodec, UInt32, UInt64, register_scalar
