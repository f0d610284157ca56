import pytest

from xbin.errors import E_BAD_MAGIC, FormatError
from xbin.formats.xdata import XDataHeader
from xbin.io.cursor import Endianness, StreamReader, StreamWriter
from xbin.io.patching import PatchWriter
from xbin.tree.document import TreeDocument, read_tree_section, write_tree_section
from xbin.tree.node import Node

SAMPLE = {
    "Name": "Float Islands",
    "Areas": [
        {"Id": 1, "Music": "bgm_float", "Scale": 1.25},
        {"Id": 2, "Music": "bgm_float", "Hidden": True},
    ],
    "Version": 3,
}


@pytest.mark.parametrize("version", [2, 3, 4, 5])
@pytest.mark.parametrize("endianness", [Endianness.LITTLE, Endianness.BIG])
def test_decode_encode_is_byte_exact(version, endianness):
    doc = TreeDocument(
        root=Node.from_python(SAMPLE),
        version=version,
        header=XDataHeader(endianness=endianness, version=(4, 0)),
    )
    first = doc.to_bytes()
    assert TreeDocument.from_bytes(first).to_bytes() == first


def test_encoding_is_deterministic():
    a = TreeDocument(root=Node.from_python(SAMPLE)).to_bytes()
    b = TreeDocument(root=Node.from_python(SAMPLE)).to_bytes()
    assert a == b


def test_read_write_files(tmp_path):
    doc = TreeDocument(root=Node.from_python(SAMPLE))
    path = tmp_path / "stage.bin"
    written = doc.write(path)
    assert written == path.stat().st_size
    back = TreeDocument.read(path)
    assert back.root == doc.root
    assert str(back) == str(doc.root)


def test_missing_tree_magic():
    data = bytearray(TreeDocument().to_bytes())
    data[16:20] = b"JSON"
    with pytest.raises(FormatError) as exc:
        TreeDocument.from_bytes(bytes(data))
    assert exc.value.code == E_BAD_MAGIC


def test_tree_section_round_trip():
    docs = [
        TreeDocument(root=Node.from_python({"Index": i, "Tag": f"t{i}"}))
        for i in range(3)
    ]
    writer = StreamWriter()
    patcher = PatchWriter(writer)
    writer.write_u32(0xAABBCCDD)
    write_tree_section(writer, patcher, docs)
    patcher.finalize()

    reader = StreamReader(writer.getvalue())
    reader.skip(4)
    back = read_tree_section(reader)
    assert [d.root for d in back] == [d.root for d in docs]
    assert reader.tell() == 4 + 4 + 3 * 4
    # Each embedded document keeps its own offset space.
    assert back[1].to_bytes() == docs[1].to_bytes()
