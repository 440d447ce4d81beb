"""Type registry: logical type names bound to record classes and their storable members."""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar, get_origin

from . import conf
from .errors import UnsupportedMemberTypeError
from .log import store_log
from .storage_item import IGNORE, StorageIgnore, StorageItem
from .value_codec import ScalarCodec, codec_for, unwrap_annotated

# Persisted base attributes plus the base capability's own attributes.
RESERVED_MEMBER_NAMES = frozenset({
    conf.TYPE_ATTR, conf.ID_ATTR, conf.NAME_ATTR,
    "id", "name", "type_name", "storage",
})

_INTERNAL_PREFIX = "_"


class MemberPolicy(StrEnum):
    """What registration does with a member whose type has no codec."""

    SKIP = "skip"        # leave it out of the member list
    DEFER = "defer"      # keep it; reads and writes of the type fail
    REJECT = "reject"    # fail the registration


class MemberKind(StrEnum):
    FIELD = "field"
    PROPERTY = "property"


@dataclass(frozen=True)
class StorableMember:
    """One persisted field or property of a registered class."""

    name: str
    value_type: Any
    codec: ScalarCodec | None
    declared_in: type
    kind: MemberKind = MemberKind.FIELD

    @property
    def supported(self) -> bool:
        return self.codec is not None

    def get(self, item: StorageItem) -> Any:
        return getattr(item, self.name)

    def set(self, item: StorageItem, value: Any) -> None:
        setattr(item, self.name, value)


def _is_ignored(hint: Any, field: dataclasses.Field | None) -> bool:
    if field is not None and field.metadata.get(IGNORE):
        return True
    _, metadata = unwrap_annotated(hint)
    return any(meta is StorageIgnore or isinstance(meta, StorageIgnore) for meta in metadata)


def _is_class_var(hint: Any) -> bool:
    if hint is ClassVar or get_origin(hint) is ClassVar:
        return True
    return isinstance(hint, dataclasses.InitVar)


def _own_members(klass: type, fields: dict[str, dataclasses.Field]) -> list[StorableMember]:
    """Candidate members declared directly on ``klass``, in declaration order."""
    found: list[StorableMember] = []
    for name, hint in inspect.get_annotations(klass, eval_str=True).items():
        if name.startswith(_INTERNAL_PREFIX) or _is_class_var(hint):
            continue
        if _is_ignored(hint, fields.get(name)):
            continue
        base, _ = unwrap_annotated(hint)
        found.append(StorableMember(name, base, codec_for(hint), klass, MemberKind.FIELD))

    for name, attr in vars(klass).items():
        if not isinstance(attr, property) or name.startswith(_INTERNAL_PREFIX):
            continue
        if attr.fget is None or attr.fset is None:
            continue
        hint = inspect.get_annotations(attr.fget, eval_str=True).get("return")
        if _is_ignored(hint, None):
            continue
        base, _ = unwrap_annotated(hint)
        codec = codec_for(hint) if hint is not None else None
        found.append(StorableMember(name, base, codec, klass, MemberKind.PROPERTY))
    return found


def discover_members(cls: type[StorageItem]) -> list[StorableMember]:
    """Walk ``cls`` and its bases down to ``StorageItem``; first declaration of a name wins."""
    fields = {f.name: f for f in dataclasses.fields(cls)} if dataclasses.is_dataclass(cls) else {}
    seen: set[str] = set()
    members: list[StorableMember] = []
    for klass in cls.__mro__:
        if klass is StorageItem:
            break
        for member in _own_members(klass, fields):
            if member.name in seen:
                continue
            seen.add(member.name)
            members.append(member)
    return members


def _constructible_without_args(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return True
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


class TypeRegistry:
    def __init__(self, member_policy: MemberPolicy | str = MemberPolicy.SKIP) -> None:
        self.member_policy = MemberPolicy(member_policy)
        self._types: dict[str, type[StorageItem]] = {}
        self._names: dict[type[StorageItem], str] = {}
        self._members: dict[str, tuple[StorableMember, ...]] = {}

    def register(self, type_name: str, cls: type[StorageItem]) -> bool:
        """Bind ``type_name`` to ``cls``. Returns False if either side is already bound
        or ``cls`` can't be stored."""
        if not isinstance(cls, type) or not issubclass(cls, StorageItem) or cls is StorageItem:
            store_log(f"Rejected type {type_name!r}: {cls!r} is not a StorageItem subclass")
            return False
        if not type_name or type_name in self._types or cls in self._names:
            return False
        if not _constructible_without_args(cls):
            store_log(f"Rejected type {type_name!r}: {cls.__name__} needs constructor arguments")
            return False

        members = discover_members(cls)
        reserved = [m.name for m in members if m.name in RESERVED_MEMBER_NAMES]
        if reserved:
            store_log(f"Rejected type {type_name!r}: reserved member names {reserved}")
            return False

        kept: list[StorableMember] = []
        for member in members:
            if member.supported:
                kept.append(member)
            elif self.member_policy is MemberPolicy.REJECT:
                raise UnsupportedMemberTypeError(member.name, member.value_type)
            elif self.member_policy is MemberPolicy.DEFER:
                kept.append(member)
            else:
                store_log(
                    f"Skipping member {cls.__name__}.{member.name}: "
                    f"unsupported type {member.value_type!r}"
                )

        store_log(f"Registered type {type_name!r} -> {cls.__name__} "
                  f"members={[m.name for m in kept]}")
        self._types[type_name] = cls
        self._names[cls] = type_name
        self._members[type_name] = tuple(kept)
        return True

    def get(self, type_name: str) -> type[StorageItem] | None:
        return self._types.get(type_name)

    def name_of(self, cls: type) -> str | None:
        return self._names.get(cls)

    def members_for(self, type_name: str) -> tuple[StorableMember, ...]:
        """Cached storable members of a registered type; empty for unknown names."""
        return self._members.get(type_name, ())

    def items(self) -> dict[str, type[StorageItem]]:
        return dict(self._types)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def __len__(self) -> int:
        return len(self._types)
