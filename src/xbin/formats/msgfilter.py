"""Font filter tables: which glyphs each font loads.

After the XData header comes a count and one absolute offset per entry. An
entry is an absolute reference to the font name (a UTF-8 HAL string stored
after all entries) followed inline by the characters as a UTF-16 HAL string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ..io.cursor import StreamReader, StreamWriter
from ..io.interner import StringInterner
from ..io.patching import PatchWriter
from ..io.strings import (
    read_string_offset,
    read_unicode_hal_string,
    write_unicode_hal_string,
)
from ..logging import get_logger
from .xdata import XDataHeader

__all__ = ["FontFilter", "MsgFilter"]


@dataclass(slots=True)
class FontFilter:
    font: str
    characters: str


@dataclass
class MsgFilter:
    filters: List[FontFilter] = field(default_factory=list)
    header: XDataHeader = field(default_factory=XDataHeader)

    @classmethod
    def from_reader(cls, reader: StreamReader) -> MsgFilter:
        header = XDataHeader.read(reader)
        list_start = reader.tell()
        count = reader.read_u32()
        filters: List[FontFilter] = []
        for i in range(count):
            reader.seek(list_start + 4 + i * 4)
            reader.seek(reader.read_u32())
            font = read_string_offset(reader)
            filters.append(FontFilter(font, read_unicode_hal_string(reader)))
        get_logger().debug("Decoded font filter table: %d entries", count)
        return cls(filters=filters, header=header)

    @classmethod
    def from_bytes(cls, data: bytes) -> MsgFilter:
        return cls.from_reader(StreamReader(data))

    @classmethod
    def read(cls, path: str | Path) -> MsgFilter:
        return cls.from_bytes(Path(path).read_bytes())

    def to_bytes(self) -> bytes:
        writer = StreamWriter(self.header.endianness)
        patcher = PatchWriter(writer)
        interner = StringInterner()
        slots = self.header.write_header(writer, patcher)

        writer.write_u32(len(self.filters))
        entries = [patcher.reserve() for _ in self.filters]
        for entry, item in zip(entries, self.filters):
            patcher.resolve(entry)
            interner.intern(patcher.reserve(), item.font)
            write_unicode_hal_string(writer, item.characters)

        interner.flush_all(patcher)
        self.header.write_trailer(writer, patcher, slots)
        patcher.finalize()
        return writer.getvalue()

    def write(self, path: str | Path) -> int:
        data = self.to_bytes()
        Path(path).write_bytes(data)
        return len(data)

    def fonts(self) -> List[str]:
        return [f.font for f in self.filters]
