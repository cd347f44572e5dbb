"""Reader for the TYPE.NAMELEN:CONTENTLEN token that precedes every value."""

from dataclasses import dataclass

from .bounds import BoundsConfig
from .errors import ErrorKind, ParseError
from .values import TypeCode

TYPE_CODE_SIZE = 3

_TYPE_CODES: dict[bytes, TypeCode] = {code.value.encode("ascii"): code for code in TypeCode}


@dataclass(frozen=True, slots=True)
class Header:
    """A parsed header. `offset + size` is the first name byte."""

    type: TypeCode
    name_length: int
    content_length: int
    offset: int
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size


def is_digit(byte: int) -> bool:
    return 0x30 <= byte <= 0x39


def scan_digits(data: bytes, offset: int, limit: int | None = None) -> int:
    """Return the end of the run of ASCII digits starting at offset."""
    end = len(data) if limit is None else min(limit, len(data))
    pos = offset
    while pos < end and is_digit(data[pos]):
        pos += 1
    return pos


def _read_length(data: bytes, offset: int, config: BoundsConfig, field: str) -> tuple[int, int]:
    end = scan_digits(data, offset, offset + config.max_length_digits + 1)
    digits = end - offset
    if digits == 0:
        if offset >= len(data):
            raise ParseError(ErrorKind.TRUNCATED_INPUT, offset, f"input ends before {field}")
        raise ParseError(ErrorKind.HEADER_MALFORMED, offset, f"{field} has no digits")
    if digits > config.max_length_digits:
        raise ParseError(
            ErrorKind.LENGTH_OVERFLOW,
            offset,
            f"{field} has {digits} digits, more than max_length_digits {config.max_length_digits}",
        )
    return int(data[offset:end]), end


def _expect(data: bytes, offset: int, separator: bytes, what: str) -> None:
    if offset >= len(data):
        raise ParseError(ErrorKind.TRUNCATED_INPUT, offset, f"input ends before {what}")
    if data[offset] != separator[0]:
        raise ParseError(ErrorKind.HEADER_MALFORMED, offset, f"expected {separator!r} {what}")


def read_type(data: bytes, offset: int) -> TypeCode:
    raw = bytes(data[offset : offset + TYPE_CODE_SIZE])
    code = _TYPE_CODES.get(raw)
    if code is not None:
        return code
    if len(raw) < TYPE_CODE_SIZE and any(known.startswith(raw) for known in _TYPE_CODES):
        raise ParseError(ErrorKind.TRUNCATED_INPUT, offset, "input ends inside type code")
    raise ParseError(ErrorKind.UNKNOWN_TYPE, offset, f"unknown type code {raw!r}")


def read_header(data: bytes, offset: int, config: BoundsConfig, *, final: bool = True) -> Header:
    """Read one header starting at offset.

    Args:
        data: The input buffer.
        offset: Offset of the first type code byte.
        config: Limits applied to the length fields.
        final: True when `data` holds the whole input. When False, a content
            length that runs into the end of the buffer may still grow, so it
            is reported as truncated input.

    Returns:
        The parsed header. Nothing past the content length digits is read.
    """
    code = read_type(data, offset)
    pos = offset + TYPE_CODE_SIZE
    _expect(data, pos, b".", "after type code")
    name_length, pos = _read_length(data, pos + 1, config, "name length")
    _expect(data, pos, b":", "after name length")
    content_length, pos = _read_length(data, pos + 1, config, "content length")
    if not final and pos >= len(data):
        raise ParseError(ErrorKind.TRUNCATED_INPUT, pos, "content length may continue past buffered input")

    if name_length > config.max_name_length:
        raise ParseError(
            ErrorKind.LENGTH_OVERFLOW,
            offset,
            f"name length {name_length} exceeds max_name_length {config.max_name_length}",
        )
    if content_length > config.max_content_length:
        raise ParseError(
            ErrorKind.LENGTH_OVERFLOW,
            offset,
            f"content length {content_length} exceeds max_content_length {config.max_content_length}",
        )
    if final and name_length + content_length > len(data) - pos:
        raise ParseError(
            ErrorKind.LENGTH_OVERFLOW,
            offset,
            f"declared {name_length + content_length} bytes but only {len(data) - pos} remain",
        )

    return Header(code, name_length, content_length, offset, pos - offset)
