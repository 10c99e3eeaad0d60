"""Decoder for Ruby's Marshal 4.8 binary format

The RubyGems index and the per-gem metadata are published as Marshal dumps.
This module reads them into plain Python values, no Ruby runtime needed:

    nil / true / false      None / True / False
    Fixnum, Bignum          int
    Float                   float
    String                  str if an encoding is attached, bytes otherwise
    Symbol                  Symbol (a str, one instance per name per stream)
    Array / Hash            list / dict
    anything else           Record

Objects may appear more than once in a stream through links. A link always
resolves to the object already materialized at that slot, so shared values
stay shared after decoding.
"""

import codecs
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import structlog

from .exceptions import (
    MalformedStreamError,
    MissingFieldError,
    UnsupportedVersionError,
)

log = structlog.get_logger(__name__)

MAJOR_VERSION = 4
MINOR_VERSION = 8

TYPE_NIL = ord("0")
TYPE_TRUE = ord("T")
TYPE_FALSE = ord("F")
TYPE_FIXNUM = ord("i")
TYPE_BIGNUM = ord("l")
TYPE_FLOAT = ord("f")
TYPE_STRING = ord('"')
TYPE_SYMBOL = ord(":")
TYPE_SYMLINK = ord(";")
TYPE_LINK = ord("@")
TYPE_IVAR = ord("I")
TYPE_EXTENDED = ord("e")
TYPE_ARRAY = ord("[")
TYPE_HASH = ord("{")
TYPE_HASH_DEF = ord("}")
TYPE_OBJECT = ord("o")
TYPE_STRUCT = ord("S")
TYPE_USERDEF = ord("u")
TYPE_USRMARSHAL = ord("U")
TYPE_CLASS = ord("c")
TYPE_MODULE = ord("m")
TYPE_REGEXP = ord("/")


class Symbol(str):
    """Ruby symbol"""

    __slots__ = ()

    def __repr__(self) -> str:
        return f":{str.__str__(self)}"


@dataclass(eq=False)
class Record:
    """A decoded Ruby object that has no native Python counterpart

    ``fields`` holds instance variables (``o``), struct members (``S``) and
    any instance variables attached through an ``I`` wrapper. ``data`` holds
    the payload of ``u`` (raw bytes) and ``U`` (decoded value) dumps, the
    name of a class or module reference, or the source of a regexp.
    """

    class_name: Symbol
    fields: Dict[Symbol, Any] = field(default_factory=dict)
    data: Any = None

    def _key(self, name: str) -> Optional[str]:
        if name in self.fields:
            return name
        if not name.startswith("@") and f"@{name}" in self.fields:
            return f"@{name}"
        return None

    def has(self, name: str) -> bool:
        return self._key(name) is not None

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a field by name, with or without the leading ``@``"""
        key = self._key(name)
        return self.fields[key] if key is not None else default

    def require(self, name: str) -> Any:
        """Look up a field that must be present

        Raises:
            MissingFieldError: If the record has no such field
        """
        key = self._key(name)
        if key is None:
            raise MissingFieldError(
                f"{self.class_name} record has no field '{name}'",
                details=f"fields: {', '.join(self.fields) or '(none)'}",
            )
        return self.fields[key]


class Unmarshaller:
    """Single forward pass over one Marshal stream"""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0
        self._symbols: List[Symbol] = []
        self._interned: Dict[str, Symbol] = {}
        self._objects: List[Any] = []
        self._readers: Dict[int, Callable[[], Any]] = {
            TYPE_NIL: lambda: None,
            TYPE_TRUE: lambda: True,
            TYPE_FALSE: lambda: False,
            TYPE_FIXNUM: self._read_long,
            TYPE_BIGNUM: self._read_bignum,
            TYPE_FLOAT: self._read_float,
            TYPE_STRING: self._read_string,
            TYPE_SYMBOL: self._read_symbol_body,
            TYPE_SYMLINK: self._read_symlink,
            TYPE_LINK: self._read_link,
            TYPE_IVAR: self._read_ivar_wrapped,
            TYPE_EXTENDED: self._read_extended,
            TYPE_ARRAY: self._read_array,
            TYPE_HASH: self._read_hash,
            TYPE_HASH_DEF: self._read_hash_with_default,
            TYPE_OBJECT: self._read_object,
            TYPE_STRUCT: self._read_struct,
            TYPE_USERDEF: self._read_userdef,
            TYPE_USRMARSHAL: self._read_usrmarshal,
            TYPE_CLASS: lambda: self._read_class_ref("Class"),
            TYPE_MODULE: lambda: self._read_class_ref("Module"),
            TYPE_REGEXP: self._read_regexp,
        }

    def load(self) -> Any:
        """Check the version header and decode the top-level value"""
        major = self._read_byte()
        minor = self._read_byte()
        if (major, minor) != (MAJOR_VERSION, MINOR_VERSION):
            raise UnsupportedVersionError(
                f"Unsupported Marshal format {major}.{minor}, "
                f"expected {MAJOR_VERSION}.{MINOR_VERSION}"
            )
        value = self._read_value()
        log.debug(
            "marshal.decoded",
            size=len(self._data),
            objects=len(self._objects),
            symbols=len(self._symbols),
        )
        return value

    # Primitive readers

    def _read_byte(self) -> int:
        if self._pos >= len(self._data):
            raise MalformedStreamError(
                f"Unexpected end of stream at offset {self._pos}"
            )
        byte = self._data[self._pos]
        self._pos += 1
        return byte

    def _read_bytes(self, count: int) -> bytes:
        end = self._pos + count
        if count < 0 or end > len(self._data):
            raise MalformedStreamError(
                f"Unexpected end of stream: need {count} bytes at offset "
                f"{self._pos}, {len(self._data) - self._pos} left"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def _read_long(self) -> int:
        """Ruby's packed integer: one size/value byte, then magnitude bytes"""
        c = self._read_byte()
        if c > 127:
            c -= 256
        if c == 0:
            return 0
        if c > 4:
            return c - 5
        if c < -4:
            return c + 5
        if c > 0:
            return int.from_bytes(self._read_bytes(c), "little")
        size = -c
        return int.from_bytes(self._read_bytes(size), "little") - (
            1 << (8 * size)
        )

    def _read_count(self) -> int:
        count = self._read_long()
        if count < 0:
            raise MalformedStreamError(
                f"Negative length {count} at offset {self._pos}"
            )
        return count

    def _read_raw_string(self) -> bytes:
        return self._read_bytes(self._read_count())

    # Tables

    def _register(self, value: Any) -> Any:
        self._objects.append(value)
        return value

    def _read_link(self) -> Any:
        index = self._read_long()
        if not 0 <= index < len(self._objects):
            raise MalformedStreamError(
                f"Object link {index} out of range "
                f"({len(self._objects)} objects materialized)"
            )
        return self._objects[index]

    def _read_symbol_body(self) -> Symbol:
        name = self._read_raw_string().decode("utf-8", "surrogateescape")
        symbol = self._interned.setdefault(name, Symbol(name))
        self._symbols.append(symbol)
        return symbol

    def _read_symlink(self) -> Symbol:
        index = self._read_long()
        if not 0 <= index < len(self._symbols):
            raise MalformedStreamError(
                f"Symbol link {index} out of range "
                f"({len(self._symbols)} symbols materialized)"
            )
        return self._symbols[index]

    def _read_symbol(self) -> Symbol:
        """Read a value that must be a symbol (class names, field names)"""
        tag = self._read_byte()
        if tag == TYPE_SYMBOL:
            return self._read_symbol_body()
        if tag == TYPE_SYMLINK:
            return self._read_symlink()
        if tag == TYPE_IVAR:
            # Non-ASCII symbols carry their encoding as instance variables
            symbol = self._read_symbol()
            self._read_ivars()
            return symbol
        raise MalformedStreamError(
            f"Expected a symbol at offset {self._pos - 1}, "
            f"found type byte {tag:#04x}"
        )

    def _read_ivars(self) -> Dict[Symbol, Any]:
        ivars = {}
        for _ in range(self._read_count()):
            name = self._read_symbol()
            ivars[name] = self._read_value()
        return ivars

    # Values

    def _read_value(self) -> Any:
        tag = self._read_byte()
        reader = self._readers.get(tag)
        if reader is None:
            raise MalformedStreamError(
                f"Unsupported type byte {tag:#04x} at offset {self._pos - 1}"
            )
        return reader()

    def _read_bignum(self) -> int:
        sign = self._read_byte()
        if sign not in (ord("+"), ord("-")):
            raise MalformedStreamError(f"Invalid bignum sign byte {sign:#04x}")
        magnitude = int.from_bytes(
            self._read_bytes(self._read_count() * 2), "little"
        )
        return self._register(-magnitude if sign == ord("-") else magnitude)

    def _read_float(self) -> float:
        text = self._read_raw_string().split(b"\0", 1)[0]
        try:
            value = float(text.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedStreamError(f"Invalid float literal {text!r}") from e
        return self._register(value)

    def _read_string(self) -> bytes:
        return self._register(self._read_raw_string())

    def _read_ivar_wrapped(self) -> Any:
        slot = len(self._objects)
        value = self._read_value()
        ivars = self._read_ivars()
        if isinstance(value, bytes):
            text = _apply_encoding(value, ivars)
            if slot < len(self._objects) and self._objects[slot] is value:
                self._objects[slot] = text
            return text
        if isinstance(value, Record):
            value.fields.update(ivars)
        return value

    def _read_extended(self) -> Any:
        self._read_symbol()
        return self._read_value()

    def _read_array(self) -> List[Any]:
        count = self._read_count()
        items = self._register([])
        for _ in range(count):
            items.append(self._read_value())
        return items

    def _read_hash(self) -> Dict[Any, Any]:
        count = self._read_count()
        mapping = self._register({})
        for _ in range(count):
            key = self._read_value()
            try:
                mapping[key] = self._read_value()
            except TypeError as e:
                raise MalformedStreamError(
                    f"Unhashable hash key of type {type(key).__name__}"
                ) from e
        return mapping

    def _read_hash_with_default(self) -> Dict[Any, Any]:
        mapping = self._read_hash()
        self._read_value()
        return mapping

    def _read_object(self) -> Record:
        record = self._register(Record(self._read_symbol()))
        record.fields.update(self._read_ivars())
        return record

    def _read_struct(self) -> Record:
        record = self._register(Record(self._read_symbol()))
        record.fields.update(self._read_ivars())
        return record

    def _read_userdef(self) -> Record:
        class_name = self._read_symbol()
        return self._register(Record(class_name, data=self._read_raw_string()))

    def _read_usrmarshal(self) -> Record:
        record = self._register(Record(self._read_symbol()))
        record.data = self._read_value()
        return record

    def _read_class_ref(self, kind: str) -> Record:
        name = self._read_raw_string().decode("utf-8", "surrogateescape")
        return self._register(Record(Symbol(kind), data=name))

    def _read_regexp(self) -> Record:
        source = self._read_raw_string()
        options = self._read_byte()
        return self._register(
            Record(
                Symbol("Regexp"),
                fields={Symbol("options"): options},
                data=source,
            )
        )


def _apply_encoding(raw: bytes, ivars: Dict[Symbol, Any]) -> Any:
    """Turn a byte string into text when its encoding is known"""
    if "E" in ivars:
        encoding = "utf-8" if ivars["E"] else "ascii"
    elif "encoding" in ivars:
        name = ivars["encoding"]
        if isinstance(name, bytes):
            name = name.decode("ascii", "replace")
        encoding = str(name)
        try:
            codecs.lookup(encoding)
        except LookupError:
            return raw
    else:
        return raw
    return raw.decode(encoding, "surrogateescape")


def decode(data: bytes) -> Any:
    """Decode a complete Marshal stream

    Args:
        data: Raw stream, starting with the two version bytes

    Returns:
        The decoded top-level value

    Raises:
        UnsupportedVersionError: If the header is not 4.8
        MalformedStreamError: On truncated input, unknown type bytes or
            out-of-range links
    """
    return Unmarshaller(data).load()
