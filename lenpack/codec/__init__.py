"""Encoding and decoding of lenpack values."""

from .bounds import DEFAULT_BOUNDS as DEFAULT_BOUNDS
from .bounds import BoundsConfig as BoundsConfig
from .bounds import BoundsGuard as BoundsGuard
from .decoder import decode as decode
from .decoder import decode_prefix as decode_prefix
from .decoder import iter_decode as iter_decode
from .encoder import encode as encode
from .errors import CodecError as CodecError
from .errors import EncodeError as EncodeError
from .errors import ErrorKind as ErrorKind
from .errors import ParseError as ParseError
from .header import Header as Header
from .header import read_header as read_header
from .stream import StreamDecoder as StreamDecoder
from .stream import read_values as read_values
from .values import *
