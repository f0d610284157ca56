"""Standalone binary tree ("YAML") documents.

A document is an XData header, the magic ``YAML``, a 32-bit tree version and
the root node. Strings are stored once, after the root. Fixed-layout formats
embed whole documents through tree sections (a count plus absolute offsets),
each document keeping its own header and its own offset space.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from ..errors import E_BAD_MAGIC, format_error
from ..formats.version import FormatVersion
from ..formats.xdata import XDataHeader
from ..io.cursor import StreamReader, StreamWriter
from ..io.interner import StringInterner
from ..io.patching import PatchWriter
from ..logging import get_logger
from .codec import TreeWriter, read_node
from .node import Node

__all__ = [
    "TREE_MAGIC",
    "DEFAULT_TREE_VERSION",
    "EncodeStats",
    "TreeDocument",
    "read_tree_section",
    "write_tree_section",
]

TREE_MAGIC = b"YAML"
DEFAULT_TREE_VERSION = 5


@dataclass(slots=True)
class EncodeStats:
    nodes: int
    strings: int
    patches: int
    bytes: int


@dataclass
class TreeDocument:
    root: Node = field(default_factory=Node.new_map)
    version: int = DEFAULT_TREE_VERSION
    header: XDataHeader = field(default_factory=XDataHeader)

    @property
    def capabilities(self) -> FormatVersion:
        return FormatVersion.for_tree(self.version, self.header.major)

    @classmethod
    def from_reader(cls, reader: StreamReader) -> TreeDocument:
        header = XDataHeader.read(reader)
        magic = reader.read_bytes(4)
        if magic != TREE_MAGIC:
            raise format_error(
                E_BAD_MAGIC,
                f"Tree magic {TREE_MAGIC!r} not found (got {magic!r})",
                {"position": reader.tell() - 4},
            )
        version = reader.read_u32()
        caps = FormatVersion.for_tree(version, header.major)
        root = read_node(reader, caps)
        get_logger().debug(
            "Decoded tree v%d (%s-endian, xdata %d.%d): root=%s children=%d",
            version,
            header.endianness.label,
            header.version[0],
            header.version[1],
            root.type.name,
            root.length,
        )
        return cls(root=root, version=version, header=header)

    @classmethod
    def from_bytes(cls, data: bytes) -> TreeDocument:
        return cls.from_reader(StreamReader(data))

    @classmethod
    def read(cls, path: str | Path) -> TreeDocument:
        return cls.from_bytes(Path(path).read_bytes())

    def encode(self) -> Tuple[bytes, EncodeStats]:
        """Encode the document and report what went into it."""
        writer = StreamWriter(self.header.endianness)
        patcher = PatchWriter(writer)
        interner = StringInterner()
        slots = self.header.write_header(writer, patcher)
        writer.write_bytes(TREE_MAGIC)
        writer.write_u32(self.version)
        tree = TreeWriter(patcher, interner, self.capabilities)
        tree.write(self.root)
        strings = interner.flush_all(patcher)
        self.header.write_trailer(writer, patcher, slots)
        stats = EncodeStats(
            nodes=tree.nodes_written,
            strings=strings,
            patches=patcher.finalize(),
            bytes=len(writer),
        )
        get_logger().debug(
            "Encoded tree v%d: nodes=%d strings=%d patches=%d bytes=%d",
            self.version,
            stats.nodes,
            stats.strings,
            stats.patches,
            stats.bytes,
        )
        return writer.getvalue(), stats

    def to_bytes(self) -> bytes:
        return self.encode()[0]

    def write(self, path: str | Path) -> int:
        data = self.to_bytes()
        Path(path).write_bytes(data)
        return len(data)

    def __str__(self) -> str:
        return str(self.root)


def read_tree_section(reader: StreamReader) -> List[TreeDocument]:
    """Read a count followed by absolute offsets to embedded documents."""
    section_start = reader.tell()
    count = reader.read_u32()
    documents: List[TreeDocument] = []
    for i in range(count):
        reader.seek(section_start + 4 + i * 4)
        offset = reader.read_u32()
        documents.append(TreeDocument.from_reader(reader.sub_reader(offset)))
    reader.seek(section_start + 4 + count * 4)
    return documents


def write_tree_section(
    writer: StreamWriter, patcher: PatchWriter, documents: List[TreeDocument]
) -> None:
    writer.write_u32(len(documents))
    slots = [patcher.reserve() for _ in documents]
    for slot, document in zip(slots, documents):
        patcher.resolve(slot)
        writer.write_bytes(document.to_bytes())
