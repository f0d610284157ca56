"""HAL string codec.

A HAL string is a 32-bit length, the encoded payload, a terminator and zero
padding up to the next 4-byte boundary. The UTF-8 flavour stores the length in
bytes and a one-byte terminator; the unicode flavour (used by filter tables)
stores the length in UTF-16 code units and a two-byte terminator. Code units
follow the stream's byte order.
"""

from __future__ import annotations

from .cursor import Endianness, StreamReader, StreamWriter
from ..errors import E_BAD_STRING, format_error

__all__ = [
    "read_hal_string",
    "write_hal_string",
    "read_unicode_hal_string",
    "write_unicode_hal_string",
    "read_string_offset",
    "resolve_offset",
]


def _utf16_codec(endianness: Endianness) -> str:
    return "utf-16-le" if endianness is Endianness.LITTLE else "utf-16-be"


def _read_length(reader: StreamReader) -> int:
    start = reader.tell()
    length = reader.read_i32()
    if length < 0:
        raise format_error(
            E_BAD_STRING,
            f"Negative string length {length}",
            {"position": start},
        )
    return length


def read_hal_string(reader: StreamReader) -> str:
    start = reader.tell()
    raw = reader.read_bytes(_read_length(reader))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise format_error(
            E_BAD_STRING, f"Invalid UTF-8 string: {exc}", {"position": start}
        ) from exc


def write_hal_string(writer: StreamWriter, text: str) -> None:
    encoded = text.encode("utf-8")
    writer.write_i32(len(encoded))
    writer.write_bytes(encoded)
    writer.write_u8(0)
    writer.align()


def read_unicode_hal_string(reader: StreamReader) -> str:
    start = reader.tell()
    raw = reader.read_bytes(_read_length(reader) * 2)
    try:
        return raw.decode(_utf16_codec(reader.endianness))
    except UnicodeDecodeError as exc:
        raise format_error(
            E_BAD_STRING, f"Invalid UTF-16 string: {exc}", {"position": start}
        ) from exc


def write_unicode_hal_string(writer: StreamWriter, text: str) -> None:
    encoded = text.encode(_utf16_codec(writer.endianness))
    writer.write_i32(len(encoded) // 2)
    writer.write_bytes(encoded)
    writer.write_u16(0)
    writer.align()


def resolve_offset(reader: StreamReader, relative: bool = False) -> int:
    """Read a 4-byte reference and return the absolute position it names.

    Relative references count from the position of the reference field itself.
    """
    field = reader.tell()
    value = reader.read_u32()
    if relative:
        return (field + value) & 0xFFFFFFFF
    return value


def read_string_offset(reader: StreamReader, relative: bool = False) -> str:
    """Follow a string reference; the cursor ends just past the reference."""
    target = resolve_offset(reader, relative)
    with reader.at(target):
        return read_hal_string(reader)
