"""Incremental decoding of values arriving in chunks."""

from asyncio import StreamReader
from collections.abc import AsyncIterator, Iterator

from structlog import get_logger

from .bounds import DEFAULT_BOUNDS, BoundsConfig, BoundsGuard
from .decoder import decode_buffered, iter_decode
from .errors import ErrorKind, ParseError
from .values import Value

logger = get_logger()

READ_CHUNK_SIZE = 4096


class StreamDecoder:
    """Buffers incoming bytes and yields each value once it is complete.

    A value is only decoded once every byte it declares is buffered. If it is
    not, decoding is retried from the value's first byte after more data is
    appended, so no partially decoded state is ever kept.

    Example:
        decoder = StreamDecoder()
        for chunk in chunks:
            decoder.append_buffer(chunk)
            for value in decoder.values():
                handle(value)
        decoder.close()
    """

    def __init__(self, config: BoundsConfig | None = None) -> None:
        self._config = config or DEFAULT_BOUNDS
        self._guard = BoundsGuard(self._config)
        self._buffer = bytearray()
        self._waiting = False
        self.log = logger.new()

    @property
    def buffered(self) -> int:
        """Number of bytes buffered but not yet decoded."""
        return len(self._buffer)

    def append_buffer(self, data: bytes) -> None:
        """Append data to the receive buffer."""
        if data:
            self._buffer.extend(data)
            self._waiting = False

    def clear_buffer(self) -> None:
        """Drop all buffered bytes, including any partially received value."""
        self._buffer.clear()
        self._waiting = False

    def decode_value(self) -> Value | None:
        """Decode the next complete value, or return None if more data is needed."""
        if not self._buffer or self._waiting:
            return None

        data = bytes(self._buffer)
        try:
            value, end = decode_buffered(data, self._config)
        except ParseError as e:
            if e.kind != ErrorKind.TRUNCATED_INPUT:
                self.log.debug("stream decode failed", kind=str(e.kind), offset=e.offset)
                raise
            self._check_buffered(len(data))
            self._waiting = True
            return None

        del self._buffer[:end]
        return value

    def values(self) -> Iterator[Value]:
        """Yield every complete value currently buffered."""
        while (value := self.decode_value()) is not None:
            yield value

    def close(self) -> list[Value]:
        """Finish the stream and return every value still buffered.

        The buffer is decoded as complete input, so a trailing value whose last
        bytes are a length digit run is accepted. Raises ParseError if the
        remaining bytes do not form complete values.
        """
        remaining = list(self.values())
        if self._buffer:
            data = bytes(self._buffer)
            self._buffer.clear()
            remaining.extend(iter_decode(data, self._config))
        return remaining

    def _check_buffered(self, size: int) -> None:
        try:
            self._guard.check_input_size(size)
        except ParseError:
            self.log.warning("incomplete value exceeds input limit", buffered=size)
            raise


async def read_values(reader: StreamReader, config: BoundsConfig | None = None) -> AsyncIterator[Value]:
    """Yield values from an asyncio stream until it reaches EOF.

    Example:
        reader, writer = await asyncio.open_connection(host, port)
        async for value in read_values(reader):
            await handle(value)
    """
    decoder = StreamDecoder(config)
    while True:
        data = await reader.read(READ_CHUNK_SIZE)
        if not data:
            break
        decoder.append_buffer(data)
        for value in decoder.values():
            yield value

    for value in decoder.close():
        yield value
