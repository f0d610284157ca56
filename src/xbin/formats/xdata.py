"""XData header shared by every document of the family.

Layout (offsets in bytes)::

    0x00  magic "XBIN"
    0x04  byte-order mark 0x1234, written in the document's byte order
    0x06  version (major, minor), one byte each
    0x08  content length, patched once all content is written
    0x0C  format constant, observed as 65001
    0x10  footer address, only when major > 2

Documents with a footer end with a 4-byte aligned ``RLOC`` block followed by
two reserved 32-bit words. The stored length covers everything before the
footer padding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import E_BAD_HEADER, E_BAD_MAGIC, format_error
from ..io.cursor import Endianness, StreamReader, StreamWriter
from ..io.patching import PatchRecord, PatchWriter
from ..logging import get_logger
from .version import FormatVersion

__all__ = [
    "XDATA_MAGIC",
    "RLOC_MAGIC",
    "BYTE_ORDER_MARK",
    "HEADER_CONSTANT",
    "HeaderSlots",
    "XDataHeader",
]

XDATA_MAGIC = b"XBIN"
RLOC_MAGIC = b"RLOC"
BYTE_ORDER_MARK = 0x1234
HEADER_CONSTANT = 65001

_BASE_HEADER_SIZE = 16
_FOOTER_ADDRESS_SIZE = 4


@dataclass(slots=True)
class HeaderSlots:
    length: PatchRecord
    footer: Optional[PatchRecord] = None


@dataclass(slots=True)
class XDataHeader:
    endianness: Endianness = Endianness.LITTLE
    version: Tuple[int, int] = (2, 0)
    constant: int = HEADER_CONSTANT
    footer_reserved: Tuple[int, int] = (0, 0)
    # Values as found on disk; recomputed on write.
    file_length: int = 0
    footer_offset: int = 0

    @property
    def major(self) -> int:
        return self.version[0]

    @property
    def capabilities(self) -> FormatVersion:
        return FormatVersion.for_header(self.major)

    @property
    def size(self) -> int:
        if self.capabilities.has_footer:
            return _BASE_HEADER_SIZE + _FOOTER_ADDRESS_SIZE
        return _BASE_HEADER_SIZE

    @classmethod
    def read(cls, reader: StreamReader) -> XDataHeader:
        """Parse the header and switch ``reader`` to the document's byte order."""
        logger = get_logger()
        magic = reader.read_bytes(4)
        if magic != XDATA_MAGIC:
            raise format_error(
                E_BAD_MAGIC,
                f"XData magic {XDATA_MAGIC!r} not found (got {magic!r})",
            )
        bom = int.from_bytes(reader.read_bytes(2), "little")
        if bom == BYTE_ORDER_MARK:
            endianness = Endianness.LITTLE
        else:
            endianness = Endianness.BIG
            if bom != 0x3412:
                logger.warning(
                    "Unexpected byte-order mark 0x%04x, assuming big-endian", bom
                )
        reader.endianness = endianness
        major, minor = reader.read_bytes(2)
        header = cls(endianness=endianness, version=(major, minor))
        header.file_length = reader.read_u32()
        header.constant = reader.read_u32()
        if header.constant != HEADER_CONSTANT:
            logger.warning(
                "XData constant is %d (expected %d); kept as-is",
                header.constant,
                HEADER_CONSTANT,
            )
        if header.capabilities.has_footer:
            header.footer_offset = reader.read_u32()
            header.footer_reserved = _read_footer(reader, header.footer_offset)
        if header.file_length > len(reader):
            logger.warning(
                "XData length field %d exceeds buffer size %d",
                header.file_length,
                len(reader),
            )
        return header

    def write_header(self, writer: StreamWriter, patcher: PatchWriter) -> HeaderSlots:
        """Emit the header; length and footer address stay pending in ``patcher``."""
        if not all(0 <= v <= 0xFF for v in self.version):
            raise format_error(
                E_BAD_HEADER,
                f"XData version components must fit one byte: {self.version}",
            )
        writer.endianness = self.endianness
        writer.write_bytes(XDATA_MAGIC)
        writer.write_u16(BYTE_ORDER_MARK)
        writer.write_bytes(bytes(self.version))
        slots = HeaderSlots(length=patcher.reserve())
        writer.write_u32(self.constant)
        if self.capabilities.has_footer:
            slots.footer = patcher.reserve()
        return slots

    def write_trailer(
        self, writer: StreamWriter, patcher: PatchWriter, slots: HeaderSlots
    ) -> None:
        """Bind the length field and append the footer when the version has one."""
        writer.seek_end()
        patcher.resolve(slots.length)
        if slots.footer is None:
            return
        writer.align()
        patcher.resolve(slots.footer)
        writer.write_bytes(RLOC_MAGIC)
        writer.write_u32(self.footer_reserved[0])
        writer.write_u32(self.footer_reserved[1])


def _read_footer(reader: StreamReader, offset: int) -> Tuple[int, int]:
    logger = get_logger()
    with reader.at(offset):
        magic = reader.read_bytes(4)
        if magic != RLOC_MAGIC:
            raise format_error(
                E_BAD_MAGIC,
                f"Footer magic {RLOC_MAGIC!r} not found at {offset} (got {magic!r})",
                {"offset": offset},
            )
        reserved = (reader.read_u32(), reader.read_u32())
    if any(reserved):
        logger.warning(
            "Footer reserved words are non-zero (0x%08x, 0x%08x); kept as-is",
            *reserved,
        )
    return reserved
