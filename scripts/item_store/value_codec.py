"""Text codecs for storable member values, plus attribute escaping.

A member is storable when ``codec_for`` finds a ``ScalarCodec`` for its
declared type:

* ``bool``, ``str``, ``int``, ``float``
* the fixed-width integers ``Int32`` / ``UInt32`` / ``Int64`` / ``UInt64``
* ``Enum`` subclasses (persisted by member name)
* ``datetime`` (ISO 8601)
* any class exposing ``from_text(text)`` (classmethod) and ``to_text()``
* anything added with ``register_scalar``

No filesystem I/O here; see ``persistence`` for the document format.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Callable, get_args, get_origin

from . import conf


@dataclass(frozen=True)
class IntRange:
    """Bounds of a fixed-width integer kind, used as ``Annotated`` metadata."""

    bits: int
    signed: bool

    @property
    def low(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def high(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def __contains__(self, value: int) -> bool:
        return self.low <= value <= self.high


Int32 = Annotated[int, IntRange(32, signed=True)]
UInt32 = Annotated[int, IntRange(32, signed=False)]
Int64 = Annotated[int, IntRange(64, signed=True)]
UInt64 = Annotated[int, IntRange(64, signed=False)]


@dataclass(frozen=True)
class ScalarCodec:
    """Parse/render pair for one value kind. Both sides raise ``ValueError`` on bad input."""

    name: str
    parse: Callable[[str], Any]
    render: Callable[[Any], str]


# -- Built-in kinds --

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _render_bool(value: Any) -> str:
    if not isinstance(value, bool):
        raise ValueError(f"expected bool, got {type(value).__name__}")
    return "True" if value else "False"


def _parse_text(text: str) -> str:
    return text


def _render_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected str, got {type(value).__name__}")
    return value


def _parse_int(text: str) -> int:
    stripped = text.strip()
    if not _INT_RE.fullmatch(stripped):
        raise ValueError(f"not an integer: {text!r}")
    return int(stripped)


def _render_int(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected int, got {type(value).__name__}")
    return str(value)


def _parse_float(text: str) -> float:
    return float(text.strip())


def _render_float(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected float, got {type(value).__name__}")
    # repr is the shortest text that parses back to the same float
    return repr(float(value))


BOOL = ScalarCodec("bool", _parse_bool, _render_bool)
TEXT = ScalarCodec("str", _parse_text, _render_text)
INT = ScalarCodec("int", _parse_int, _render_int)
FLOAT = ScalarCodec("float", _parse_float, _render_float)


def _int_codec(bounds: IntRange) -> ScalarCodec:
    kind = f"{'' if bounds.signed else 'u'}int{bounds.bits}"

    def parse(text: str) -> int:
        value = _parse_int(text)
        if value not in bounds:
            raise ValueError(f"{value} out of range for {kind}")
        return value

    def render(value: Any) -> str:
        text = _render_int(value)
        if value not in bounds:
            raise ValueError(f"{value} out of range for {kind}")
        return text

    return ScalarCodec(kind, parse, render)


def _enum_codec(enum_cls: type[Enum]) -> ScalarCodec:
    def parse(text: str) -> Enum:
        try:
            return enum_cls[text]
        except KeyError:
            raise ValueError(f"{text!r} is not a member of {enum_cls.__name__}") from None

    def render(value: Any) -> str:
        if not isinstance(value, enum_cls):
            raise ValueError(f"expected {enum_cls.__name__}, got {type(value).__name__}")
        return value.name

    return ScalarCodec(enum_cls.__name__, parse, render)


def _text_scalar_codec(cls: type) -> ScalarCodec:
    def render(value: Any) -> str:
        if not isinstance(value, cls):
            raise ValueError(f"expected {cls.__name__}, got {type(value).__name__}")
        return value.to_text()

    return ScalarCodec(cls.__name__, cls.from_text, render)


def _render_datetime(value: Any) -> str:
    if not isinstance(value, datetime):
        raise ValueError(f"expected datetime, got {type(value).__name__}")
    return value.isoformat()


_SCALARS: dict[type, ScalarCodec] = {
    datetime: ScalarCodec("datetime", datetime.fromisoformat, _render_datetime),
}


def register_scalar(
    value_type: type,
    parse: Callable[[str], Any],
    render: Callable[[Any], str],
    name: str | None = None,
) -> ScalarCodec:
    """Make ``value_type`` storable. Affects types registered afterwards."""
    codec = ScalarCodec(name or value_type.__name__, parse, render)
    _SCALARS[value_type] = codec
    return codec


def unwrap_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``; other hints get empty metadata."""
    if get_origin(hint) is Annotated:
        base, *metadata = get_args(hint)
        return base, tuple(metadata)
    return hint, ()


def codec_for(hint: Any) -> ScalarCodec | None:
    """Return the codec for a declared member type, or None if it isn't storable."""
    base, metadata = unwrap_annotated(hint)
    for meta in metadata:
        if isinstance(meta, IntRange):
            return _int_codec(meta) if base is int else None

    if base is bool:
        return BOOL
    if base is str:
        return TEXT
    if base is int:
        return INT
    if base is float:
        return FLOAT
    if not isinstance(base, type):
        return None
    if base in _SCALARS:
        return _SCALARS[base]
    if issubclass(base, Enum):
        return _enum_codec(base)
    if callable(getattr(base, "from_text", None)) and callable(getattr(base, "to_text", None)):
        return _text_scalar_codec(base)
    return None


# -- Escaping --

def is_clean(text: str) -> bool:
    """True when every code point may appear literally in an XML attribute value."""
    for char in text:
        code = ord(char)
        if code in (0x9, 0xA, 0xD):
            continue
        if 0x20 <= code <= 0xD7FF or 0xE000 <= code <= 0xFFFD:
            continue
        return False
    return True


def encode_text(text: str) -> str:
    """Base64 of the UTF-16-LE form of ``text``. Lone surrogates survive."""
    raw = text.encode(conf.TEXT_ENCODING, "surrogatepass")
    return base64.b64encode(raw).decode("ascii")


def decode_text(data: str) -> str:
    """Inverse of ``encode_text``. Raises ValueError on malformed input."""
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64: {exc}") from exc
    try:
        return raw.decode(conf.TEXT_ENCODING, "surrogatepass")
    except UnicodeDecodeError as exc:
        raise ValueError(f"invalid {conf.TEXT_ENCODING} payload: {exc}") from exc
