"""Value tree produced by the decoder and consumed by the encoder.

Every value carries a name. Leaves carry their payload directly; objects and
arrays carry an ordered tuple of child values.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar


class TypeCode(StrEnum):
    """3-letter type codes as they appear on the wire."""

    STR = "str"
    INT = "int"
    FLT = "flt"
    BLN = "bln"
    NUL = "nul"
    BIN = "bin"
    OBJ = "obj"
    ARR = "arr"

    @property
    def is_container(self) -> bool:
        return self in (TypeCode.OBJ, TypeCode.ARR)


@dataclass(frozen=True, slots=True)
class Value:
    """Base of every value case."""

    type_code: ClassVar[TypeCode]

    name: str


@dataclass(frozen=True, slots=True)
class String(Value):
    type_code: ClassVar[TypeCode] = TypeCode.STR

    value: str


@dataclass(frozen=True, slots=True)
class Integer(Value):
    """Signed 64-bit integer."""

    type_code: ClassVar[TypeCode] = TypeCode.INT

    value: int


@dataclass(frozen=True, slots=True)
class Float(Value):
    type_code: ClassVar[TypeCode] = TypeCode.FLT

    value: float


@dataclass(frozen=True, slots=True)
class Boolean(Value):
    type_code: ClassVar[TypeCode] = TypeCode.BLN

    value: bool


@dataclass(frozen=True, slots=True)
class Null(Value):
    type_code: ClassVar[TypeCode] = TypeCode.NUL


@dataclass(frozen=True, slots=True)
class Binary(Value):
    type_code: ClassVar[TypeCode] = TypeCode.BIN

    value: bytes


_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class Object(Value):
    """Ordered fields keyed by their own names.

    Keys need not be unique. Lookup by key returns the first match; use
    get_all() to see every field sharing a name.
    """

    type_code: ClassVar[TypeCode] = TypeCode.OBJ

    fields: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))

    def get(self, key: str, default: Any = None) -> Any:
        for field in self.fields:
            if field.name == key:
                return field
        return default

    def get_all(self, key: str) -> list[Value]:
        return [field for field in self.fields if field.name == key]

    def keys(self) -> list[str]:
        return [field.name for field in self.fields]

    def __getitem__(self, key: str) -> Value:
        found = self.get(key, _MISSING)
        if found is _MISSING:
            raise KeyError(key)
        return found

    def __contains__(self, key: object) -> bool:
        return any(field.name == key for field in self.fields)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True, slots=True)
class Array(Value):
    """Ordered elements addressed by position; element names are kept but unused."""

    type_code: ClassVar[TypeCode] = TypeCode.ARR

    elements: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.elements, tuple):
            object.__setattr__(self, "elements", tuple(self.elements))

    def __getitem__(self, index: int) -> Value:
        return self.elements[index]

    def __iter__(self) -> Iterator[Value]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


VALUE_TYPES: dict[TypeCode, type[Value]] = {
    TypeCode.STR: String,
    TypeCode.INT: Integer,
    TypeCode.FLT: Float,
    TypeCode.BLN: Boolean,
    TypeCode.NUL: Null,
    TypeCode.BIN: Binary,
    TypeCode.OBJ: Object,
    TypeCode.ARR: Array,
}


def children(value: Value) -> tuple[Value, ...]:
    """Return the immediate children of a container, or () for a leaf."""
    if isinstance(value, Object):
        return value.fields
    if isinstance(value, Array):
        return value.elements
    return ()


def make_container(code: TypeCode, name: str, items: Iterable[Value]) -> Value:
    """Build an Object or Array from its type code."""
    if code == TypeCode.OBJ:
        return Object(name, tuple(items))
    if code == TypeCode.ARR:
        return Array(name, tuple(items))
    raise ValueError(f"{code} is not a container type")
