"""Seekable byte cursors with a runtime-selected byte order.

``StreamReader`` wraps an immutable buffer and never grows; any access past
the end raises :class:`~xbin.errors.RangeError`. ``StreamWriter`` owns a
growable ``bytearray``. Both keep ``0 <= position <= len(buffer)``.

The byte order of a document is only known once its header has been read, so
``endianness`` is a mutable attribute rather than a constructor constant.
"""

from __future__ import annotations

import struct
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from ..errors import range_error

__all__ = ["Endianness", "StreamReader", "StreamWriter", "DEFAULT_ALIGNMENT"]

DEFAULT_ALIGNMENT = 4


class Endianness(Enum):
    LITTLE = "<"
    BIG = ">"

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> Endianness:
        try:
            return cls[label.upper()]
        except KeyError:
            raise ValueError(f"Unknown byte order: {label!r}") from None


class StreamReader:
    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        endianness: Endianness = Endianness.LITTLE,
    ) -> None:
        self._data = data if isinstance(data, bytes) else memoryview(data)
        self._pos = 0
        self.endianness = endianness

    def __len__(self) -> int:
        return len(self._data)

    def tell(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._data):
            raise range_error(
                f"Seek to {position} outside buffer of {len(self._data)} bytes",
                {"position": position, "size": len(self._data)},
            )
        self._pos = position

    def skip(self, count: int) -> None:
        self.seek(self._pos + count)

    def align(self, alignment: int = DEFAULT_ALIGNMENT) -> None:
        pad = (alignment - (self._pos % alignment)) % alignment
        if pad:
            self.skip(pad)

    @contextmanager
    def at(self, position: int) -> Iterator[StreamReader]:
        """Temporarily move to ``position``; the cursor is restored on exit."""
        saved = self._pos
        self.seek(position)
        try:
            yield self
        finally:
            self._pos = saved

    def sub_reader(self, offset: int) -> StreamReader:
        """Reader over ``[offset:]`` whose positions are relative to ``offset``."""
        if offset < 0 or offset > len(self._data):
            raise range_error(
                f"Sub-reader offset {offset} outside buffer of {len(self._data)} bytes",
                {"offset": offset, "size": len(self._data)},
            )
        return StreamReader(memoryview(self._data)[offset:], self.endianness)

    def _check(self, size: int, label: str) -> None:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise range_error(
                f"Out of range read for {label}: {self._pos}+{size}>{len(self._data)}",
                {"position": self._pos, "size": size, "length": len(self._data)},
            )

    def _unpack(self, fmt: str, size: int):
        self._check(size, fmt)
        value = struct.unpack_from(self.endianness.value + fmt, self._data, self._pos)[0]
        self._pos += size
        return value

    def read_bytes(self, count: int) -> bytes:
        self._check(count, "bytes")
        raw = bytes(self._data[self._pos : self._pos + count])
        self._pos += count
        return raw

    def read_u8(self) -> int:
        return self._unpack("B", 1)

    def read_i8(self) -> int:
        return self._unpack("b", 1)

    def read_u16(self) -> int:
        return self._unpack("H", 2)

    def read_i16(self) -> int:
        return self._unpack("h", 2)

    def read_u32(self) -> int:
        return self._unpack("I", 4)

    def read_i32(self) -> int:
        return self._unpack("i", 4)

    def read_u64(self) -> int:
        return self._unpack("Q", 8)

    def read_i64(self) -> int:
        return self._unpack("q", 8)

    def read_f32(self) -> float:
        return self._unpack("f", 4)


class StreamWriter:
    def __init__(self, endianness: Endianness = Endianness.LITTLE) -> None:
        self._buf = bytearray()
        self._pos = 0
        self.endianness = endianness

    def __len__(self) -> int:
        return len(self._buf)

    def tell(self) -> int:
        return self._pos

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._buf):
            raise range_error(
                f"Seek to {position} outside buffer of {len(self._buf)} bytes",
                {"position": position, "size": len(self._buf)},
            )
        self._pos = position

    def seek_end(self) -> None:
        self._pos = len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_bytes(self, data: bytes | bytearray) -> None:
        end = self._pos + len(data)
        self._buf[self._pos : end] = data
        self._pos = end

    def _pack(self, fmt: str, value) -> None:
        self.write_bytes(struct.pack(self.endianness.value + fmt, value))

    def write_u8(self, value: int) -> None:
        self._pack("B", value)

    def write_i8(self, value: int) -> None:
        self._pack("b", value)

    def write_u16(self, value: int) -> None:
        self._pack("H", value)

    def write_i16(self, value: int) -> None:
        self._pack("h", value)

    def write_u32(self, value: int) -> None:
        self._pack("I", value)

    def write_i32(self, value: int) -> None:
        self._pack("i", value)

    def write_u64(self, value: int) -> None:
        self._pack("Q", value)

    def write_i64(self, value: int) -> None:
        self._pack("q", value)

    def write_f32(self, value: float) -> None:
        self._pack("f", value)

    def put_u32_at(self, position: int, value: int) -> None:
        """Overwrite an already emitted 4-byte field without moving the cursor."""
        if position < 0 or position + 4 > len(self._buf):
            raise range_error(
                f"Patch at {position} outside buffer of {len(self._buf)} bytes",
                {"position": position, "size": len(self._buf)},
            )
        struct.pack_into(self.endianness.value + "I", self._buf, position, value)

    def align(self, alignment: int = DEFAULT_ALIGNMENT) -> None:
        """Zero-pad until the cursor sits on an ``alignment`` boundary."""
        pad = (alignment - (self._pos % alignment)) % alignment
        if pad:
            self.write_bytes(b"\x00" * pad)

