"""XML reader/writer for ``Storage``.

Document layout::

    <Storage xmlns:x="base64" LastID="3" ItemsCount="2">
    <Item Type="Worker" ID="1" Name="HasK" Age="24" Label="hello&#9;world" />
    <Item Type="Dept" ID="3" x:Name="AQA=" Title="R&amp;D" />
    </Storage>

Attribute values that aren't clean XML text go into ``x:<attr>`` as base64 of
their UTF-16-LE bytes (see ``value_codec.is_clean``).
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any
from xml.sax.saxutils import quoteattr

from pydantic import BaseModel, Field, NonNegativeInt, ValidationError, field_validator

from . import conf
from .errors import (
    InvalidValueError,
    MalformedDataError,
    UnknownTypeError,
    UnparsableValueError,
    UnsupportedMemberTypeError,
)
from .log import store_log
from .value_codec import INT, decode_text, encode_text, is_clean

if TYPE_CHECKING:
    from .storage import Storage
    from .storage_item import StorageItem
    from .type_registry import StorableMember


def _digits_only(value: Any) -> Any:
    # lax mode would take "1.0" or "1_000"; counters are plain decimal digits
    if isinstance(value, str):
        return INT.parse(value)
    return value


class StorageHeader(BaseModel):
    """Attributes of the root element."""

    last_id: NonNegativeInt = Field(alias=conf.LAST_ID_ATTR)
    items_count: NonNegativeInt = Field(alias=conf.ITEMS_COUNT_ATTR)

    @field_validator("last_id", "items_count", mode="before")
    @classmethod
    def check_counters(cls, value: Any) -> Any:
        return _digits_only(value)


class ItemHeader(BaseModel):
    """Base attributes every item element carries."""

    type_name: str = Field(alias=conf.TYPE_ATTR, min_length=1)
    id: NonNegativeInt = Field(alias=conf.ID_ATTR)
    name: str = Field(alias=conf.NAME_ATTR)

    @field_validator("id", mode="before")
    @classmethod
    def check_id(cls, value: Any) -> Any:
        return _digits_only(value)


def _encoded_key(attr: str) -> str:
    return f"{{{conf.ENCODED_NS}}}{attr}"


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


# =============================================================================
# WRITING
# =============================================================================

def _attr(name: str, value: str) -> str:
    if is_clean(value):
        # quoteattr turns TAB/LF/CR into character references so they survive parsing
        return f"{name}={quoteattr(value)}"
    return f"{conf.ENCODED_PREFIX}:{name}={quoteattr(encode_text(value))}"


def _render_member(storage: Storage, item: StorageItem, member: StorableMember) -> str:
    if member.codec is None:
        raise UnsupportedMemberTypeError(
            member.name, member.value_type, item_id=item.id, storage=storage
        )
    try:
        value = member.get(item)
    except AttributeError as exc:
        # annotated without a default and never assigned
        raise InvalidValueError(member.name, item.id, None, "no value set", storage) from exc
    try:
        return member.codec.render(value)
    except (TypeError, ValueError) as exc:
        raise InvalidValueError(member.name, item.id, value, str(exc), storage) from exc


def to_xml(storage: Storage) -> str:
    """Render every item of ``storage`` as one XML document."""
    lines = [
        f'<{conf.ROOT_TAG} xmlns:{conf.ENCODED_PREFIX}="{conf.ENCODED_NS}" '
        f"{_attr(conf.LAST_ID_ATTR, str(storage.last_id))} "
        f"{_attr(conf.ITEMS_COUNT_ATTR, str(storage.items_count))}>"
    ]
    for item in storage.get_items():
        attrs = [
            _attr(conf.TYPE_ATTR, item.type_name),
            _attr(conf.ID_ATTR, str(item.id)),
            _attr(conf.NAME_ATTR, item.name),
        ]
        for member in storage.registry.members_for(item.type_name):
            attrs.append(_attr(member.name, _render_member(storage, item, member)))
        lines.append(f"<{conf.ITEM_TAG} {' '.join(attrs)} />")
    lines.append(f"</{conf.ROOT_TAG}>")
    return "\n".join(lines) + "\n"


def write_data(storage: Storage, sink: str | Path | IO) -> None:
    """Write ``storage`` to a path or an open text/binary stream.

    The document is rendered in full before anything reaches ``sink``.
    """
    text = to_xml(storage)
    if isinstance(sink, (str, Path)):
        path = Path(sink)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    elif isinstance(sink, io.TextIOBase):
        sink.write(text)
    else:
        sink.write(text.encode("utf-8"))
    store_log(f"Wrote {storage.items_count} items (LastID={storage.last_id}) to {sink!r}")


# =============================================================================
# READING
# =============================================================================

def _get_text(element: ET.Element, attr: str) -> str | None:
    """Plain attribute value, or the decoded ``x:`` form; None when neither exists."""
    if attr in element.attrib:
        return element.attrib[attr]
    encoded = element.attrib.get(_encoded_key(attr))
    if encoded is None:
        return None
    return decode_text(encoded)


def _base_attrs(element: ET.Element, names: tuple[str, ...]) -> dict[str, str]:
    found: dict[str, str] = {}
    for attr in names:
        value = _get_text(element, attr)
        if value is not None:
            found[attr] = value
    return found


def _read_member(storage: Storage, item: StorageItem, member: StorableMember,
                 element: ET.Element) -> None:
    if member.codec is None:
        raise UnsupportedMemberTypeError(
            member.name, member.value_type, item_id=item.id, storage=storage
        )
    if member.name in element.attrib:
        text = element.attrib[member.name]
    elif _encoded_key(member.name) in element.attrib:
        raw = element.attrib[_encoded_key(member.name)]
        try:
            text = decode_text(raw)
        except ValueError as exc:
            raise UnparsableValueError(member.name, item.id, raw, str(exc), storage) from exc
    else:
        raise MalformedDataError(
            f"Can't find attribute {member.name!r} in storage item with ID {item.id}",
            storage, item_id=item.id,
        )
    try:
        member.set(item, member.codec.parse(text))
    except (AttributeError, TypeError, ValueError) as exc:
        raise UnparsableValueError(member.name, item.id, text, str(exc), storage) from exc


def _read_item(storage: Storage, header: StorageHeader, index: int, element: ET.Element) -> None:
    if element.tag != conf.ITEM_TAG:
        raise MalformedDataError(
            f"Unexpected element {element.tag!r} at #{index} in storage", storage
        )
    try:
        head = ItemHeader.model_validate(
            _base_attrs(element, (conf.TYPE_ATTR, conf.ID_ATTR, conf.NAME_ATTR))
        )
    except ValueError as exc:
        reason = _describe(exc) if isinstance(exc, ValidationError) else str(exc)
        raise MalformedDataError(f"Can't read #{index} storage item: {reason}", storage) from exc

    if storage.get_type_by_name(head.type_name) is None:
        raise UnknownTypeError(head.type_name, storage, item_id=head.id)
    if head.id > header.last_id:
        raise MalformedDataError(
            f"Storage item #{index} has ID {head.id} above LastID {header.last_id}",
            storage, item_id=head.id,
        )

    item = storage._create_item_impl(head.type_name, head.name, head.id)
    for member in storage.registry.members_for(head.type_name):
        _read_member(storage, item, member, element)


def _populate(storage: Storage, root: ET.Element) -> None:
    if root.tag != conf.ROOT_TAG:
        raise MalformedDataError(
            f"Can't read {conf.ROOT_TAG} node from input, found {root.tag!r}", storage
        )
    try:
        header = StorageHeader.model_validate(
            _base_attrs(root, (conf.LAST_ID_ATTR, conf.ITEMS_COUNT_ATTR))
        )
    except ValueError as exc:
        reason = _describe(exc) if isinstance(exc, ValidationError) else str(exc)
        raise MalformedDataError(f"{conf.ROOT_TAG} node has wrong attributes: {reason}", storage) from exc

    elements = list(root)
    if len(elements) != header.items_count:
        raise MalformedDataError(
            f"{conf.ROOT_TAG} node declares {header.items_count} items "
            f"but holds {len(elements)}", storage,
        )
    storage._set_last_id(header.last_id)
    for index, element in enumerate(elements):
        _read_item(storage, header, index, element)


def _load(storage: Storage, root: ET.Element) -> None:
    snapshot = storage._snapshot()
    storage.clear_items()
    try:
        _populate(storage, root)
    except Exception as exc:
        storage._restore(snapshot)
        store_log(f"Read failed, storage rolled back: {exc}")
        raise
    store_log(f"Read {storage.items_count} items (LastID={storage.last_id})")


def read_data(storage: Storage, source: str | Path | IO) -> None:
    """Replace every item of ``storage`` with those stored at ``source``.

    ``source`` is a path or an open stream. On any failure the store keeps
    the items it had before the call.
    """
    try:
        root = ET.parse(source).getroot()
    except ET.ParseError as exc:
        raise MalformedDataError(f"Can't parse storage document: {exc}", storage) from exc
    _load(storage, root)


def from_xml(storage: Storage, text: str | bytes) -> None:
    """Like ``read_data`` but from an in-memory document."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedDataError(f"Can't parse storage document: {exc}", storage) from exc
    _load(storage, root)
