"""Tests for incremental decoding"""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import asyncio

from pytest import raises

from lenpack.codec import BoundsConfig, ErrorKind, ParseError, StreamDecoder, read_values
from lenpack.codec.values import Array, Boolean, Integer, Null, Object, String

USER = b"obj.4:28user2str.4:4nameJohnint.3:2age25"
ITEMS = b"arr.5:45items3str.5:5hellohelloint.3:2num42bln.4:4flagtrue"


def feed_bytes(decoder, data):
    values = []
    for i in range(len(data)):
        decoder.append_buffer(data[i : i + 1])
        values.extend(decoder.values())
    return values


def describe_stream_decoder():
    def decodes_complete_value(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER)
        expect(decoder.decode_value()) == Object("user", [String("name", "John"), Integer("age", 25)])
        expect(decoder.decode_value()) == None
        expect(decoder.buffered) == 0

    def waits_for_missing_bytes(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER[:20])
        expect(decoder.decode_value()) == None
        expect(decoder.buffered) == 20

        decoder.append_buffer(USER[20:])
        expect(decoder.decode_value()["age"]) == Integer("age", 25)

    def one_byte_at_a_time(expect):
        decoder = StreamDecoder()
        values = feed_bytes(decoder, USER + ITEMS + b"int.3:2age25")
        expect(len(values)) == 3
        expect(values[1]) == Array("items", [String("hello", "hello"), Integer("num", 42), Boolean("flag", True)])
        expect(values[2]) == Integer("age", 25)
        expect(decoder.close()) == []

    def several_values_in_one_chunk(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER + ITEMS + USER[:5])
        expect(len(list(decoder.values()))) == 2
        expect(decoder.buffered) == 5

    def trailing_length_digits_wait_for_close(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(b"nul.0:0")
        # the content length might still be "0" followed by more digits
        expect(list(decoder.values())) == []
        expect(decoder.close()) == [Null("")]
        expect(decoder.buffered) == 0

    def more_digits_extend_the_length(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(b"str.1:1")
        expect(decoder.decode_value()) == None
        decoder.append_buffer(b"2x" + b"a" * 12)
        expect(decoder.decode_value()) == String("x", "a" * 12)

    def close_rejects_incomplete_value(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER[:-1])
        expect(list(decoder.values())) == []
        with raises(ParseError) as exinfo:
            decoder.close()
        expect(exinfo.value.kind) == ErrorKind.LENGTH_OVERFLOW
        expect(exinfo.value.offset) == 0

    def close_rejects_cut_header(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER + b"obj.4")
        expect(len(list(decoder.values()))) == 1
        with raises(ParseError) as exinfo:
            decoder.close()
        expect(exinfo.value.kind) == ErrorKind.TRUNCATED_INPUT
        expect(exinfo.value.offset) == 5

    def malformed_input_raises_immediately(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(b"xyz.1:1ab")
        with raises(ParseError) as exinfo:
            decoder.decode_value()
        expect(exinfo.value.kind) == ErrorKind.UNKNOWN_TYPE

    def incomplete_value_over_input_limit(expect):
        decoder = StreamDecoder(BoundsConfig(max_total_input_size=10))
        decoder.append_buffer(b"str.1:50x" + b"a" * 10)
        with raises(ParseError) as exinfo:
            decoder.decode_value()
        expect(exinfo.value.kind) == ErrorKind.RESOURCE_LIMIT_EXCEEDED

    def clear_buffer_drops_partial_value(expect):
        decoder = StreamDecoder()
        decoder.append_buffer(USER[:10])
        decoder.clear_buffer()
        expect(decoder.buffered) == 0
        decoder.append_buffer(b"int.3:2age25")
        expect(decoder.decode_value()) == Integer("age", 25)


def describe_read_values():
    def reads_until_eof(expect):
        async def collect(chunks):
            reader = asyncio.StreamReader()
            for chunk in chunks:
                reader.feed_data(chunk)
            reader.feed_eof()
            return [value async for value in read_values(reader)]

        data = USER + ITEMS + b"nul.0:0"
        chunks = [data[i : i + 7] for i in range(0, len(data), 7)]
        values = asyncio.run(collect(chunks))
        expect(len(values)) == 3
        expect(values[0]["name"]) == String("name", "John")
        expect(values[2]) == Null("")

    def raises_on_truncated_stream(expect):
        async def collect():
            reader = asyncio.StreamReader()
            reader.feed_data(ITEMS[:-3])
            reader.feed_eof()
            return [value async for value in read_values(reader)]

        with raises(ParseError) as exinfo:
            asyncio.run(collect())
        expect(exinfo.value.kind) == ErrorKind.LENGTH_OVERFLOW
