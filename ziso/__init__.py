from .container import ZisoHeader, compress_stream
from .convert import compress_file, convert, decompress_file
from .errors import (BlockEncodingFailure, ConfigurationInvalid, IndexOverflowError,
                     InputUnavailable, InvalidContainer, OutputUnavailable, ZisoError)
from .options import ZisoOptions
from .reader import ZisoReader, decompress_stream

__all__ = [
    "ZisoHeader", "ZisoOptions", "ZisoReader",
    "compress_stream", "decompress_stream",
    "compress_file", "decompress_file", "convert",
    "ZisoError", "InputUnavailable", "OutputUnavailable", "BlockEncodingFailure",
    "IndexOverflowError", "ConfigurationInvalid", "InvalidContainer",
]
