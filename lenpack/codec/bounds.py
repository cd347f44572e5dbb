"""Resource limits for decoding untrusted input."""

from dataclasses import dataclass, field, fields

from dataclasses_json import DataClassJsonMixin

from .errors import ErrorKind, ParseError

KiB = 1024
MiB = 1024 * KiB


@dataclass(frozen=True)
class BoundsConfig(DataClassJsonMixin):
    """Declarative limits applied by the decoder and encoder.

    Length limits are per field; the total limits span a whole decode call.
    Depth counts nested containers, so 0 only admits a leaf at the root.
    """

    max_name_length: int = 64 * KiB - 1
    max_content_length: int = 16 * MiB
    max_total_input_size: int = 64 * MiB
    max_nesting_depth: int = 64
    max_total_allocated_bytes: int = 64 * MiB
    max_length_digits: int = 20

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{f.name} must be a non-negative integer, got {value!r}")


DEFAULT_BOUNDS = BoundsConfig()


@dataclass
class BoundsGuard:
    """Live counters for a single decode call.

    A guard must not be shared between calls; each decode creates its own.
    """

    config: BoundsConfig = DEFAULT_BOUNDS
    allocated: int = field(default=0, init=False)

    def check_input_size(self, size: int, offset: int = 0) -> None:
        if size > self.config.max_total_input_size:
            raise ParseError(
                ErrorKind.RESOURCE_LIMIT_EXCEEDED,
                offset,
                f"input of {size} bytes exceeds max_total_input_size {self.config.max_total_input_size}",
            )

    def enter(self, depth: int, offset: int) -> None:
        """Check the depth of a container about to be entered."""
        if depth > self.config.max_nesting_depth:
            raise ParseError(
                ErrorKind.DEPTH_EXCEEDED,
                offset,
                f"nesting depth {depth} exceeds max_nesting_depth {self.config.max_nesting_depth}",
            )

    def allocate(self, size: int, offset: int) -> None:
        """Account for a buffer of `size` bytes before it is materialized."""
        total = self.allocated + size
        if total > self.config.max_total_allocated_bytes:
            raise ParseError(
                ErrorKind.RESOURCE_LIMIT_EXCEEDED,
                offset,
                f"allocating {size} bytes exceeds max_total_allocated_bytes "
                f"{self.config.max_total_allocated_bytes}",
            )
        self.allocated = total
