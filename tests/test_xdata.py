import logging
import struct

import pytest

from xbin.errors import E_BAD_HEADER, E_BAD_MAGIC, FormatError
from xbin.formats.xdata import XDataHeader
from xbin.io.cursor import Endianness, StreamReader
from xbin.tree.document import TreeDocument
from xbin.tree.node import Node


def _doc(**header_kwargs) -> TreeDocument:
    return TreeDocument(
        root=Node.from_python({"a": 1}), header=XDataHeader(**header_kwargs)
    )


def test_big_endian_document():
    data = _doc(endianness=Endianness.BIG).to_bytes()
    assert data[:8] == b"XBIN\x12\x34\x02\x00"
    assert struct.unpack_from(">I", data, 8)[0] == len(data)
    assert struct.unpack_from(">I", data, 12)[0] == 65001
    back = TreeDocument.from_bytes(data)
    assert back.header.endianness is Endianness.BIG
    assert back.root.to_python() == {"a": 1}


def test_little_endian_bom_detection():
    reader = StreamReader(_doc().to_bytes(), Endianness.BIG)
    header = XDataHeader.read(reader)
    assert header.endianness is Endianness.LITTLE
    assert reader.endianness is Endianness.LITTLE
    assert header.version == (2, 0)
    assert reader.tell() == 16


def test_footer_for_major_above_two():
    data = _doc(version=(4, 0)).to_bytes()
    assert len(data) == 76
    assert struct.unpack_from("<I", data, 8)[0] == 64
    assert struct.unpack_from("<I", data, 16)[0] == 64
    assert data[64:] == b"RLOC" + b"\x00" * 8
    back = TreeDocument.from_bytes(data)
    assert back.header.size == 20
    assert back.header.footer_offset == 64
    assert back.header.file_length == 64
    assert back.to_bytes() == data


def test_footer_reserved_words_are_kept(caplog):
    data = _doc(version=(4, 0), footer_reserved=(1, 2)).to_bytes()
    with caplog.at_level(logging.WARNING, logger="xbin"):
        back = TreeDocument.from_bytes(data)
    assert back.header.footer_reserved == (1, 2)
    assert "reserved" in caplog.text
    assert back.to_bytes() == data


def test_odd_constant_warns_and_round_trips(caplog):
    data = bytearray(_doc().to_bytes())
    struct.pack_into("<I", data, 12, 1234)
    with caplog.at_level(logging.WARNING, logger="xbin"):
        back = TreeDocument.from_bytes(bytes(data))
    assert back.header.constant == 1234
    assert "constant" in caplog.text
    assert back.to_bytes() == bytes(data)


def test_bad_magic():
    data = b"XBIX" + _doc().to_bytes()[4:]
    with pytest.raises(FormatError) as exc:
        TreeDocument.from_bytes(data)
    assert exc.value.code == E_BAD_MAGIC


def test_bad_footer_magic():
    data = bytearray(_doc(version=(4, 0)).to_bytes())
    data[64:68] = b"NOPE"
    with pytest.raises(FormatError) as exc:
        TreeDocument.from_bytes(bytes(data))
    assert exc.value.code == E_BAD_MAGIC


def test_version_components_must_fit_a_byte():
    with pytest.raises(FormatError) as exc:
        _doc(version=(256, 0)).to_bytes()
    assert exc.value.code == E_BAD_HEADER
