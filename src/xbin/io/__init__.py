from .cursor import Endianness, StreamReader, StreamWriter
from .patching import PatchMode, PatchRecord, PatchWriter
from .interner import StringInterner
from .strings import (
    read_hal_string,
    write_hal_string,
    read_unicode_hal_string,
    write_unicode_hal_string,
    read_string_offset,
)

__all__ = [
    "Endianness",
    "StreamReader",
    "StreamWriter",
    "PatchMode",
    "PatchRecord",
    "PatchWriter",
    "StringInterner",
    "read_hal_string",
    "write_hal_string",
    "read_unicode_hal_string",
    "write_unicode_hal_string",
    "read_string_offset",
]
