"""Lenpack - self-describing, length-prefixed serialization."""

from importlib.metadata import PackageNotFoundError, version

from .codec import (
    DEFAULT_BOUNDS,
    Array,
    Binary,
    Boolean,
    BoundsConfig,
    CodecError,
    EncodeError,
    ErrorKind,
    Float,
    Integer,
    Null,
    Object,
    ParseError,
    StreamDecoder,
    String,
    TypeCode,
    Value,
    decode,
    decode_prefix,
    encode,
    iter_decode,
    read_values,
)

try:
    __version__ = version("lenpack")
except PackageNotFoundError:
    __version__ = "(local)"
