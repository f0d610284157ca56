import struct

import pytest

from xbin.errors import (
    E_BAD_COUNT,
    E_BAD_PERMUTATION,
    E_DEPTH,
    E_UNKNOWN_TAG,
    FormatError,
    RangeError,
)
from xbin.formats.version import FormatVersion
from xbin.io.cursor import StreamReader
from xbin.tree.codec import MAX_DEPTH, encode_node, read_node
from xbin.tree.document import TreeDocument
from xbin.tree.node import Node, NodeType

V3 = FormatVersion.for_tree(3)
V4 = FormatVersion.for_tree(4)
V5 = FormatVersion.for_tree(5)

GOLDEN_A1 = bytes.fromhex(
    "5842494E 34120200 3C000000 E9FD0000"
    "59414D4C 05000000"
    "05000000 01000000 14000000 08000000 00000000"
    "01000000 01000000"
    "01000000 61000000"
)


def _decode(data: bytes, caps: FormatVersion) -> Node:
    return read_node(StreamReader(data), caps)


def test_golden_single_entry_document():
    doc = TreeDocument(root=Node.from_python({"a": 1}), version=5)
    assert doc.to_bytes() == GOLDEN_A1
    back = TreeDocument.from_bytes(GOLDEN_A1)
    assert back.version == 5
    assert back.root == doc.root


def test_mixed_map_scenario():
    root = Node.from_python({"Zebra": 1, "apple": 2.5, "Banana": [True, "x"]})
    data = TreeDocument(root=root, version=5).to_bytes()
    assert struct.unpack_from("<2i", data, 24) == (5, 3)
    assert struct.unpack_from("<3i", data, 56) == (1, 2, 0)
    disk_names = []
    for slot in range(3):
        field = 32 + slot * 8
        target = field + struct.unpack_from("<I", data, field)[0]
        length = struct.unpack_from("<i", data, target)[0]
        disk_names.append(data[target + 4 : target + 4 + length].decode())
    assert disk_names == ["Banana", "Zebra", "apple"]

    back = TreeDocument.from_bytes(data).root
    assert back.keys() == ["Zebra", "apple", "Banana"]
    assert back == root


def test_repeated_strings_are_interned():
    data = encode_node(Node.from_python(["Kirby", "Kirby", {"Kirby": "Kirby"}]), V5)
    assert data.count(b"Kirby") == 1
    assert _decode(data, V5).to_python() == ["Kirby", "Kirby", {"Kirby": "Kirby"}]


@pytest.mark.parametrize("empty", [Node.new_map(), Node.new_array()])
def test_empty_containers(empty):
    data = encode_node(empty, V5)
    assert len(data) == 8
    assert struct.unpack("<2i", data) == (empty.type_tag(), 0)
    assert _decode(data, V5) == empty


def test_scalar_payloads():
    assert encode_node(Node(), V5) == b"\x00\x00\x00\x00"
    assert encode_node(Node.from_int(-2), V5) == struct.pack("<2i", 1, -2)
    assert encode_node(Node.from_float(2.5), V5) == struct.pack("<if", 2, 2.5)
    assert encode_node(Node.from_bool(True), V5) == struct.pack("<2i", 3, 1)


def test_any_nonzero_bool_decodes_true():
    assert _decode(struct.pack("<2i", 3, 7), V5).to_bool() is True
    assert _decode(struct.pack("<2i", 3, 0), V5).to_bool() is False


def test_offset_mode_follows_version():
    string = Node.from_str("hi")
    absolute = encode_node(string, V3)
    relative = encode_node(string, V5)
    assert struct.unpack_from("<I", absolute, 4)[0] == 8
    assert struct.unpack_from("<I", relative, 4)[0] == 4
    assert absolute[8:] == relative[8:]
    assert _decode(absolute, V3).to_str() == "hi"
    assert _decode(relative, V5).to_str() == "hi"


def test_permutation_table_only_from_version_4():
    root = Node.from_python({"b": 1, "A": 2})
    v3 = encode_node(root, V3)
    v4 = encode_node(root, V4)
    assert len(v4) == len(v3) + 8
    assert struct.unpack_from("<2i", v4, 24) == (1, 0)
    assert _decode(v4, V4).keys() == ["b", "A"]
    # Without a table the stored order is the only order there is.
    assert _decode(v3, V3).keys() == ["A", "b"]


def test_map_reader_ends_after_tables():
    root = Node.from_python({"k": 5})
    data = encode_node(root, V4)
    reader = StreamReader(data)
    read_node(reader, V4)
    assert reader.tell() == 8 + 8 + 4


def test_unknown_tag():
    with pytest.raises(FormatError) as exc:
        _decode(struct.pack("<i", 7), V5)
    assert exc.value.code == E_UNKNOWN_TAG


def test_negative_count():
    with pytest.raises(FormatError) as exc:
        _decode(struct.pack("<2i", 6, -1), V5)
    assert exc.value.code == E_BAD_COUNT


@pytest.mark.parametrize("tag", [5, 6])
@pytest.mark.parametrize("caps", [V3, V5])
def test_count_larger_than_buffer_fails_fast(tag, caps):
    with pytest.raises(FormatError) as exc:
        _decode(struct.pack("<2i", tag, 0x7FFFFFFF), caps)
    assert exc.value.code == E_BAD_COUNT
    assert exc.value.context["count"] == 0x7FFFFFFF


def test_corrupt_permutation_table():
    data = bytearray(encode_node(Node.from_python({"a": 1, "b": 2}), V4))
    struct.pack_into("<2i", data, 24, 0, 0)
    with pytest.raises(FormatError) as exc:
        _decode(bytes(data), V4)
    assert exc.value.code == E_BAD_PERMUTATION


def test_truncated_document():
    with pytest.raises(RangeError):
        TreeDocument.from_bytes(GOLDEN_A1[:30])


def test_nesting_limit():
    node = Node.new_array()
    for _ in range(300):
        node = Node.new_array([node])
    with pytest.raises(FormatError) as exc:
        encode_node(node, V5)
    assert exc.value.code == E_DEPTH
    with pytest.raises(FormatError) as exc:
        TreeDocument(root=node).to_bytes()
    assert exc.value.code == E_DEPTH

    # 300 one-element arrays, each pointing at the next, then an Invalid leaf.
    deep = b"".join(struct.pack("<3i", 6, 1, 12 * (i + 1)) for i in range(300))
    with pytest.raises(FormatError) as exc:
        _decode(deep + struct.pack("<i", 0), V3)
    assert exc.value.code == E_DEPTH


def test_deepest_accepted_tree_round_trips():
    node = Node.new_array()
    for _ in range(MAX_DEPTH):
        node = Node.new_array([node])
    assert _decode(encode_node(node, V5), V5) == node


def test_nested_round_trip_all_versions():
    value = {
        "Stage": {"id": 3, "scale": 0.5, "Objects": [{"Kind": "Waddle"}, {"Kind": "Gordo"}]},
        "flags": [True, False, None],
        "": "empty key",
    }
    root = Node.from_python(value)
    for version in (2, 3, 4, 5):
        caps = FormatVersion.for_tree(version)
        back = _decode(encode_node(root, caps), caps)
        if caps.has_key_permutation_table:
            assert back == root
        assert back.to_python() == value
        assert back["Stage"]["Objects"][1]["Kind"].type is NodeType.STRING


def _reference_fields(data: bytes, pos: int, relative: bool, fields: list) -> object:
    """Rebuild a value by following stored references, recording each field."""

    def target(field: int) -> int:
        stored = struct.unpack_from("<I", data, field)[0]
        fields.append((field, stored))
        return (field + stored) & 0xFFFFFFFF if relative else stored

    def text(field: int) -> str:
        start = target(field)
        length = struct.unpack_from("<i", data, start)[0]
        return data[start + 4 : start + 4 + length].decode()

    tag, payload = struct.unpack_from("<2i", data, pos)
    if tag == 1:
        return payload
    if tag == 4:
        return text(pos + 4)
    if tag == 5:
        entries = {}
        for i in range(payload):
            field = pos + 8 + i * 8
            entries[text(field)] = _reference_fields(
                data, target(field + 4), relative, fields
            )
        return entries
    assert tag == 6
    return [
        _reference_fields(data, target(pos + 8 + i * 4), relative, fields)
        for i in range(payload)
    ]


def test_every_reference_follows_offset_mode():
    value = {"list": [1, "s", {"k": 2}], "m": {"x": [3, "list"]}}
    root = Node.from_python(value)

    absolute_fields: list = []
    v3 = encode_node(root, V3)
    assert _reference_fields(v3, 0, False, absolute_fields) == value

    relative_fields: list = []
    v5 = encode_node(root, V5)
    assert _reference_fields(v5, 0, True, relative_fields) == value

    # Same layout (both carry permutation tables), different reference mode.
    v4_fields: list = []
    v4 = encode_node(root, V4)
    assert _reference_fields(v4, 0, False, v4_fields) == value
    assert len(v4) == len(v5)
    assert [f for f, _ in v4_fields] == [f for f, _ in relative_fields]
    for (field, absolute), (_, relative) in zip(v4_fields, relative_fields):
        assert field + relative == absolute
