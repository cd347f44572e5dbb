"""Canonical encoder from a Value tree to lenpack bytes."""

import math
from dataclasses import dataclass, field

from .bounds import DEFAULT_BOUNDS, BoundsConfig
from .errors import EncodeError, ErrorKind
from .values import Array, Binary, Boolean, Float, Integer, Null, Object, String, Value

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _utf8(text: object, what: str) -> bytes:
    if not isinstance(text, str):
        raise EncodeError(ErrorKind.UNSUPPORTED_VALUE, f"{what} must be str, got {type(text).__name__}")
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodeError(ErrorKind.INVALID_UTF8, f"{what} is not encodable as utf-8: {e.reason}") from e


def _unsupported(value: Value, expected: str) -> EncodeError:
    payload = type(getattr(value, "value", None)).__name__
    return EncodeError(
        ErrorKind.UNSUPPORTED_VALUE,
        f"{type(value).__name__} {value.name!r} needs a {expected} payload, got {payload}",
    )


def render_int(value: int) -> bytes:
    if value < INT64_MIN or value > INT64_MAX:
        raise EncodeError(ErrorKind.INTEGER_OUT_OF_RANGE, f"{value} is outside the int64 range")
    return str(value).encode("ascii")


def render_float(value: float) -> bytes:
    if not math.isfinite(value):
        raise EncodeError(ErrorKind.NON_FINITE_FLOAT, f"{value!r} has no canonical encoding")
    # repr() is the shortest string that round-trips to the same double
    return repr(value).encode("ascii")


def leaf_content(value: Value) -> bytes:
    """Render the canonical content bytes of a leaf value."""
    if isinstance(value, String):
        return _utf8(value.value, "string value")

    # bool is a subclass of int: Integer and Float payloads must reject it explicitly
    if isinstance(value, Boolean):
        if not isinstance(value.value, bool):
            raise _unsupported(value, "bool")
        return b"true" if value.value else b"false"

    if isinstance(value, Integer):
        if isinstance(value.value, bool) or not isinstance(value.value, int):
            raise _unsupported(value, "int")
        return render_int(value.value)

    if isinstance(value, Float):
        if isinstance(value.value, bool) or not isinstance(value.value, (int, float)):
            raise _unsupported(value, "float")
        return render_float(float(value.value))

    if isinstance(value, Null):
        return b""

    if isinstance(value, Binary):
        if not isinstance(value.value, (bytes, bytearray, memoryview)):
            raise _unsupported(value, "bytes")
        return bytes(value.value)

    raise EncodeError(ErrorKind.UNSUPPORTED_VALUE, f"cannot encode {type(value).__name__}")


@dataclass
class _Frame:
    """A container whose children are being encoded."""

    value: Value
    children: tuple[Value, ...]
    parts: list[bytes] = field(default_factory=list)

    @property
    def done(self) -> int:
        return len(self.parts)


class _Encoder:
    def __init__(self, config: BoundsConfig) -> None:
        self._config = config

    def _emit(self, value: Value, content: bytes) -> bytes:
        name = _utf8(value.name, "name")
        # A digit right after the header would be read as part of the content length
        first = name[:1] or content[:1]
        if first.isdigit():
            raise EncodeError(
                ErrorKind.AMBIGUOUS_NAME,
                f"{value.type_code} {value.name!r}: name must not start with a digit, "
                "and an empty name cannot precede content starting with a digit",
            )
        if len(name) > self._config.max_name_length:
            raise EncodeError(
                ErrorKind.NAME_TOO_LONG,
                f"name of {len(name)} bytes exceeds max_name_length {self._config.max_name_length}",
            )
        if len(content) > self._config.max_content_length:
            raise EncodeError(
                ErrorKind.CONTENT_TOO_LONG,
                f"{value.type_code} {value.name!r} content of {len(content)} bytes exceeds "
                f"max_content_length {self._config.max_content_length}",
            )
        header = f"{value.type_code}.{len(name)}:{len(content)}".encode("ascii")
        return b"".join((header, name, content))

    @staticmethod
    def _children(value: object) -> tuple[Value, ...] | None:
        """Return a container's children, or None for a leaf."""
        if not isinstance(value, Value):
            raise EncodeError(ErrorKind.UNSUPPORTED_VALUE, f"cannot encode {type(value).__name__}")
        if isinstance(value, Object):
            return value.fields
        if isinstance(value, Array):
            return value.elements
        return None

    def run(self, root: Value) -> bytes:
        stack: list[_Frame] = []
        pending: Value = root

        while True:
            kids = self._children(pending)
            if kids:
                stack.append(_Frame(pending, kids))
                pending = kids[0]
                continue
            if kids is None:
                encoded = self._emit(pending, leaf_content(pending))
            else:
                encoded = self._emit(pending, b"0")

            while stack:
                frame = stack[-1]
                frame.parts.append(encoded)
                if frame.done < len(frame.children):
                    pending = frame.children[frame.done]
                    break
                stack.pop()
                count = str(len(frame.children)).encode("ascii")
                encoded = self._emit(frame.value, count + b"".join(frame.parts))
            else:
                return encoded


def encode(value: Value, config: BoundsConfig | None = None) -> bytes:
    """Encode a value tree to its canonical bytes.

    Lengths are computed from the encoded children, so the output always
    satisfies the decoder's exact length and count checks.
    """
    return _Encoder(config or DEFAULT_BOUNDS).run(value)
