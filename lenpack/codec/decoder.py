"""Decoder from lenpack bytes to a Value tree.

Containers are decoded with an explicit stack of open frames rather than
native recursion, so the Python call stack stays flat however deeply the
input nests. The nesting itself is bounded by max_nesting_depth.
"""

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from structlog import get_logger

from .bounds import DEFAULT_BOUNDS, BoundsConfig, BoundsGuard
from .errors import ErrorKind, ParseError
from .header import Header, read_header, scan_digits
from .values import (
    Binary,
    Boolean,
    Float,
    Integer,
    Null,
    String,
    TypeCode,
    Value,
    make_container,
)

logger = get_logger()

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_RE = re.compile(rb"-?[0-9]+")
# Longest canonical int64 literal, "-9223372036854775808"
_INT_MAX_CHARS = 20
_FLOAT_RE = re.compile(rb"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

Buffer = bytes | bytearray | memoryview


@dataclass
class _Frame:
    """An open container whose children are still being read."""

    header: Header
    name: str
    content_start: int
    count_end: int
    count: int
    children: list[Value] = field(default_factory=list)

    @property
    def content_end(self) -> int:
        return self.content_start + self.header.content_length


def _decode_utf8(raw: bytes, offset: int, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(ErrorKind.INVALID_UTF8, offset + e.start, f"invalid utf-8 in {what}") from e


def _parse_int(raw: bytes, offset: int) -> int:
    if not _INT_RE.fullmatch(raw):
        raise ParseError(ErrorKind.INVALID_NUMBER, offset, f"invalid integer {raw[:32]!r}")
    # int() refuses very long digit strings, so bound the significant digits first
    sign = b"-" if raw.startswith(b"-") else b""
    digits = raw.lstrip(b"-").lstrip(b"0") or b"0"
    if len(digits) > _INT_MAX_CHARS:
        raise ParseError(ErrorKind.INVALID_NUMBER, offset, f"integer of {len(raw)} characters outside int64 range")
    value = int(sign + digits)
    if value < INT64_MIN or value > INT64_MAX:
        raise ParseError(ErrorKind.INVALID_NUMBER, offset, "integer outside int64 range")
    return value


def _parse_float(raw: bytes, offset: int) -> float:
    if not _FLOAT_RE.fullmatch(raw):
        raise ParseError(ErrorKind.INVALID_NUMBER, offset, f"invalid float {raw[:32]!r}")
    value = float(raw)
    if not math.isfinite(value):
        # Literal too large for a double, e.g. 1e999
        raise ParseError(ErrorKind.INVALID_NUMBER, offset, "float literal out of range")
    return value


def _parse_bool(raw: bytes, offset: int) -> bool:
    if raw == b"true":
        return True
    if raw == b"false":
        return False
    raise ParseError(ErrorKind.INVALID_BOOLEAN, offset, f"expected true or false, got {raw[:32]!r}")


class _Decoder:
    """Single-use decoding state: one cursor, one depth counter, one guard."""

    def __init__(self, data: bytes, config: BoundsConfig, *, final: bool = True) -> None:
        self._data = data
        self._config = config
        self._guard = BoundsGuard(config)
        self._final = final

    def _read(self, offset: int, size: int, what: str) -> bytes:
        self._guard.allocate(size, offset)
        end = offset + size
        if end > len(self._data):
            raise ParseError(
                ErrorKind.TRUNCATED_INPUT,
                len(self._data),
                f"{what} needs {size} bytes at offset {offset}, input ends at {len(self._data)}",
            )
        return self._data[offset:end]

    def _read_leaf(self, header: Header, name: str, offset: int) -> Value:
        code = header.type
        if code == TypeCode.NUL:
            if header.content_length != 0:
                raise ParseError(
                    ErrorKind.INVALID_NULL, offset, f"null content length must be 0, got {header.content_length}"
                )
            return Null(name)

        raw = self._read(offset, header.content_length, "content")
        if code == TypeCode.STR:
            return String(name, _decode_utf8(raw, offset, "string content"))
        if code == TypeCode.INT:
            return Integer(name, _parse_int(raw, offset))
        if code == TypeCode.FLT:
            return Float(name, _parse_float(raw, offset))
        if code == TypeCode.BLN:
            return Boolean(name, _parse_bool(raw, offset))
        if code == TypeCode.BIN:
            return Binary(name, raw)
        raise AssertionError(f"unhandled leaf type {code}")

    def _open(self, header: Header, name: str, content_start: int, depth: int) -> _Frame:
        self._guard.enter(depth, header.offset)

        end = scan_digits(self._data, content_start, content_start + self._config.max_length_digits + 1)
        digits = end - content_start
        if digits == 0:
            if content_start >= len(self._data):
                raise ParseError(ErrorKind.TRUNCATED_INPUT, content_start, "input ends before child count")
            raise ParseError(ErrorKind.INVALID_NUMBER, content_start, "container content must start with a count")
        if digits > self._config.max_length_digits:
            raise ParseError(
                ErrorKind.LENGTH_OVERFLOW,
                content_start,
                f"child count has more than max_length_digits {self._config.max_length_digits} digits",
            )
        if digits > header.content_length:
            raise ParseError(
                ErrorKind.BOUNDARY_OVERFLOW,
                content_start + header.content_length,
                "child count runs past the declared content length",
            )
        if not self._final and end >= len(self._data):
            raise ParseError(ErrorKind.TRUNCATED_INPUT, end, "child count may continue past buffered input")

        count = int(self._read(content_start, digits, "child count"))
        return _Frame(header, name, content_start, end, count)

    def _next_child_fits(self, frame: _Frame, offset: int) -> bool:
        """True if a complete value header lies inside frame's remaining span."""
        span = self._data[: frame.content_end]
        try:
            header = read_header(span, offset, self._config)
        except ParseError:
            return False
        return header.end + header.name_length + header.content_length <= frame.content_end

    def _check_progress(self, frame: _Frame, offset: int) -> None:
        """Validate a frame that still expects children after one was added."""
        consumed = offset - frame.content_start
        if consumed == frame.header.content_length:
            raise ParseError(
                ErrorKind.MISMATCHED_COUNT,
                offset,
                f"content span used up after {len(frame.children)} of {frame.count} children",
            )
        if offset >= len(self._data):
            raise ParseError(
                ErrorKind.TRUNCATED_INPUT,
                offset,
                f"input ends after {len(frame.children)} of {frame.count} children",
            )
        if consumed > frame.header.content_length:
            raise ParseError(
                ErrorKind.BOUNDARY_OVERFLOW,
                frame.content_end,
                f"children run {consumed - frame.header.content_length} bytes past the declared content length",
            )

    def _close(self, frame: _Frame, offset: int) -> Value:
        """Validate a frame holding exactly `count` children and build its value."""
        consumed = offset - frame.content_start
        if consumed != frame.header.content_length:
            if consumed < frame.header.content_length and self._next_child_fits(frame, offset):
                raise ParseError(
                    ErrorKind.MISMATCHED_COUNT,
                    offset,
                    f"count {frame.count} is smaller than the children in the content span",
                )
            raise ParseError(
                ErrorKind.MISMATCHED_LENGTH,
                offset,
                f"declared content length {frame.header.content_length}, actual {consumed}",
            )
        return make_container(frame.header.type, frame.name, frame.children)

    def run(self, offset: int) -> tuple[Value, int]:
        stack: list[_Frame] = []
        pos = offset

        while True:
            header = read_header(self._data, pos, self._config, final=self._final)
            name_start = header.end
            name = _decode_utf8(self._read(name_start, header.name_length, "name"), name_start, "name")
            content_start = name_start + header.name_length

            if header.type.is_container:
                frame = self._open(header, name, content_start, len(stack) + 1)
                pos = frame.count_end
                if frame.count > 0:
                    stack.append(frame)
                    self._check_progress(frame, pos)
                    continue
                value = self._close(frame, pos)
            else:
                value = self._read_leaf(header, name, content_start)
                pos = content_start + header.content_length

            # Hand the finished value to its parent, closing every parent it completes.
            while stack:
                frame = stack[-1]
                frame.children.append(value)
                if len(frame.children) < frame.count:
                    self._check_progress(frame, pos)
                    break
                stack.pop()
                value = self._close(frame, pos)
            else:
                return value, pos


def _as_bytes(data: Buffer) -> bytes:
    return data if isinstance(data, bytes) else bytes(data)


def decode_prefix(data: Buffer, config: BoundsConfig | None = None, offset: int = 0) -> tuple[Value, int]:
    """Decode one value starting at offset.

    Args:
        data: The input buffer.
        config: Resource limits, DEFAULT_BOUNDS if omitted.
        offset: Offset of the value's first header byte.

    Returns:
        Tuple of (value, offset just past the value).
    """
    data = _as_bytes(data)
    config = config or DEFAULT_BOUNDS
    BoundsGuard(config).check_input_size(len(data) - offset, offset)
    return _Decoder(data, config).run(offset)


def decode_buffered(data: bytes, config: BoundsConfig, offset: int = 0) -> tuple[Value, int]:
    """Decode one value from a buffer that more bytes may still be appended to.

    Raises TRUNCATED_INPUT whenever the value might continue past the buffered
    bytes, including a trailing length digit run.
    """
    return _Decoder(data, config, final=False).run(offset)


def decode(data: Buffer, config: BoundsConfig | None = None) -> Value:
    """Decode a buffer holding exactly one value."""
    data = _as_bytes(data)
    try:
        value, end = decode_prefix(data, config)
        if end != len(data):
            raise ParseError(ErrorKind.TRAILING_DATA, end, f"{len(data) - end} bytes after the root value")
    except ParseError as e:
        logger.debug("decode failed", kind=str(e.kind), offset=e.offset, size=len(data))
        raise
    return value


def iter_decode(data: Buffer, config: BoundsConfig | None = None) -> Iterator[Value]:
    """Yield each value of a buffer holding zero or more concatenated values."""
    data = _as_bytes(data)
    offset = 0
    while offset < len(data):
        value, offset = decode_prefix(data, config, offset)
        yield value
