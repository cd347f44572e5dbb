"""Error taxonomy for lenpack encoding and decoding."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Why a decode or encode call was aborted."""

    HEADER_MALFORMED = "HeaderMalformed"
    UNKNOWN_TYPE = "UnknownType"
    LENGTH_OVERFLOW = "LengthOverflow"
    RESOURCE_LIMIT_EXCEEDED = "ResourceLimitExceeded"
    DEPTH_EXCEEDED = "DepthExceeded"
    TRUNCATED_INPUT = "TruncatedInput"
    BOUNDARY_OVERFLOW = "BoundaryOverflow"
    MISMATCHED_COUNT = "MismatchedCount"
    MISMATCHED_LENGTH = "MismatchedLength"
    INVALID_UTF8 = "InvalidUtf8"
    INVALID_NUMBER = "InvalidNumber"
    INVALID_BOOLEAN = "InvalidBoolean"
    INVALID_NULL = "InvalidNull"
    TRAILING_DATA = "TrailingData"

    # Encoder only
    NAME_TOO_LONG = "NameTooLong"
    CONTENT_TOO_LONG = "ContentTooLong"
    NON_FINITE_FLOAT = "NonFiniteFloat"
    INTEGER_OUT_OF_RANGE = "IntegerOutOfRange"
    UNSUPPORTED_VALUE = "UnsupportedValue"
    AMBIGUOUS_NAME = "AmbiguousName"


class CodecError(RuntimeError):
    """Base exception for lenpack errors.

    The `.kind` attribute is the ErrorKind that aborted the call.
    """

    def __init__(self, kind: ErrorKind, msg: str = "") -> None:
        super().__init__(msg or str(kind))
        self.kind = kind


class ParseError(CodecError):
    """Raised when decoding fails.

    `.offset` is the byte offset in the input where the violation was detected.
    """

    def __init__(self, kind: ErrorKind, offset: int, msg: str = "") -> None:
        super().__init__(kind, f"{kind} at offset {offset}: {msg}" if msg else f"{kind} at offset {offset}")
        self.offset = offset


class EncodeError(CodecError):
    """Raised when a value cannot be encoded."""
