"""Binary node tree codec.

Every node starts with a 4-byte signed type tag. Scalars carry a 4-byte
payload inline; strings, maps and arrays use 4-byte references whose meaning
(absolute position, or distance from the reference field) depends on the tree
version::

    String  tag=4  ref -> HAL string (interned, stored after the tree)
    Map     tag=5  count, count x (name ref, data ref), [count x i32 perm]
    Array   tag=6  count, count x data ref

Children are emitted after their parent's reference table, in disk order.
"""

from __future__ import annotations

from typing import Dict

from ..errors import (
    E_BAD_COUNT,
    E_DEPTH,
    E_DUP_KEY,
    E_UNKNOWN_TAG,
    format_error,
)
from ..formats.version import FormatVersion
from ..io.cursor import StreamReader, StreamWriter
from ..io.interner import StringInterner
from ..io.patching import PatchWriter
from ..io.strings import read_string_offset, resolve_offset
from .node import Node, NodeType
from .ordering import check_permutation, disk_indices, write_order

__all__ = ["read_node", "TreeWriter", "encode_node", "MAX_DEPTH"]

MAX_DEPTH = 256
_PAIR_SIZE = 8
_REF_SIZE = 4


def read_node(reader: StreamReader, caps: FormatVersion, depth: int = 0) -> Node:
    """Decode the node at the cursor.

    Scalars and strings leave the cursor after their payload; containers leave
    it after their reference tables.
    """
    if depth > MAX_DEPTH:
        raise format_error(
            E_DEPTH,
            f"Tree nesting exceeds {MAX_DEPTH} levels",
            {"position": reader.tell()},
        )
    position = reader.tell()
    tag = reader.read_i32()
    try:
        node_type = NodeType(tag)
    except ValueError:
        raise format_error(
            E_UNKNOWN_TAG,
            f"Unknown node type tag {tag}",
            {"position": position, "tag": tag},
        ) from None

    if node_type is NodeType.INVALID:
        return Node()
    if node_type is NodeType.INT:
        return Node.from_int(reader.read_i32())
    if node_type is NodeType.FLOAT:
        return Node.from_float(reader.read_f32())
    if node_type is NodeType.BOOL:
        return Node.from_bool(reader.read_i32() != 0)
    if node_type is NodeType.STRING:
        return Node.from_str(read_string_offset(reader, caps.offsets_are_relative))
    if node_type is NodeType.MAP:
        return _read_map(reader, caps, depth)
    return _read_array(reader, caps, depth)


def _read_count(reader: StreamReader, entry_size: int) -> int:
    position = reader.tell()
    count = reader.read_i32()
    if count < 0:
        raise format_error(
            E_BAD_COUNT, f"Negative child count {count}", {"position": position}
        )
    # The reference table alone must fit in what is left of the buffer.
    if count * entry_size > reader.remaining:
        raise format_error(
            E_BAD_COUNT,
            f"Child count {count} exceeds the {reader.remaining} bytes left",
            {"position": position, "count": count},
        )
    return count


def _read_map(reader: StreamReader, caps: FormatVersion, depth: int) -> Node:
    count = _read_count(reader, _PAIR_SIZE)
    list_start = reader.tell()
    table_end = list_start + count * _PAIR_SIZE
    if caps.has_key_permutation_table:
        reader.seek(table_end)
        order = check_permutation([reader.read_i32() for _ in range(count)])
        end = reader.tell()
    else:
        order = list(range(count))
        end = table_end

    entries: Dict[str, Node] = {}
    for slot in order:
        reader.seek(list_start + slot * _PAIR_SIZE)
        name = read_string_offset(reader, caps.offsets_are_relative)
        data = resolve_offset(reader, caps.offsets_are_relative)
        if name in entries:
            raise format_error(
                E_DUP_KEY,
                f"Duplicate map key {name!r}",
                {"position": list_start + slot * _PAIR_SIZE},
            )
        reader.seek(data)
        entries[name] = read_node(reader, caps, depth + 1)

    reader.seek(end)
    return Node.new_map(entries.items())


def _read_array(reader: StreamReader, caps: FormatVersion, depth: int) -> Node:
    count = _read_count(reader, _REF_SIZE)
    list_start = reader.tell()
    children = []
    for i in range(count):
        reader.seek(list_start + i * _REF_SIZE)
        reader.seek(resolve_offset(reader, caps.offsets_are_relative))
        children.append(read_node(reader, caps, depth + 1))
    reader.seek(list_start + count * _REF_SIZE)
    return Node.new_array(children)


class TreeWriter:
    """Emit nodes into ``patcher.writer`` sharing one string interner.

    Strings are only registered here; the owner flushes ``interner`` once the
    whole tree (and anything else that references strings) has been written.
    """

    def __init__(
        self,
        patcher: PatchWriter,
        interner: StringInterner,
        caps: FormatVersion,
    ) -> None:
        self.patcher = patcher
        self.interner = interner
        self.caps = caps
        self.nodes_written = 0

    @property
    def writer(self) -> StreamWriter:
        return self.patcher.writer

    def write(self, node: Node, depth: int = 0) -> None:
        if depth > MAX_DEPTH:
            raise format_error(
                E_DEPTH,
                f"Tree nesting exceeds {MAX_DEPTH} levels",
                {"position": self.writer.tell()},
            )
        self.nodes_written += 1
        writer = self.writer
        node_type = node.type
        writer.write_i32(int(node_type))
        if node_type is NodeType.INVALID:
            return
        if node_type is NodeType.INT:
            writer.write_i32(node.to_int())
        elif node_type is NodeType.FLOAT:
            writer.write_f32(node.to_float())
        elif node_type is NodeType.BOOL:
            writer.write_i32(1 if node.to_bool() else 0)
        elif node_type is NodeType.STRING:
            record = self.patcher.reserve(self.caps.offset_mode)
            self.interner.intern(record, node.to_str())
        elif node_type is NodeType.MAP:
            self._write_map(node, depth)
        else:
            self._write_array(node, depth)

    def _write_map(self, node: Node, depth: int) -> None:
        writer = self.writer
        mode = self.caps.offset_mode
        keys = node.keys()
        order = write_order(keys)
        writer.write_i32(len(keys))
        slots = [
            (self.patcher.reserve(mode), self.patcher.reserve(mode)) for _ in order
        ]
        if self.caps.has_key_permutation_table:
            for index in disk_indices(keys, order):
                writer.write_i32(index)
        for (name_slot, data_slot), key in zip(slots, order):
            self.interner.intern(name_slot, key)
            self.patcher.resolve(data_slot)
            self.write(node[key], depth + 1)

    def _write_array(self, node: Node, depth: int) -> None:
        children = node.to_list()
        self.writer.write_i32(len(children))
        slots = [self.patcher.reserve(self.caps.offset_mode) for _ in children]
        for slot, child in zip(slots, children):
            self.patcher.resolve(slot)
            self.write(child, depth + 1)


def encode_node(
    node: Node, caps: FormatVersion, writer: StreamWriter | None = None
) -> bytes:
    """Encode a bare node followed by its string region."""
    if writer is None:
        writer = StreamWriter()
    patcher = PatchWriter(writer)
    interner = StringInterner()
    TreeWriter(patcher, interner, caps).write(node)
    interner.flush_all(patcher)
    patcher.finalize()
    return writer.getvalue()
