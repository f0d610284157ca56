import pytest

from xbin.errors import RangeError
from xbin.io.cursor import Endianness, StreamReader, StreamWriter


def test_writer_byte_order():
    le = StreamWriter()
    le.write_u32(0x01020304)
    be = StreamWriter(Endianness.BIG)
    be.write_u32(0x01020304)
    assert le.getvalue() == b"\x04\x03\x02\x01"
    assert be.getvalue() == b"\x01\x02\x03\x04"


def test_reader_follows_runtime_endianness():
    r = StreamReader(b"\x00\x00\x00\x2a\x2a\x00\x00\x00")
    r.endianness = Endianness.BIG
    assert r.read_u32() == 42
    r.endianness = Endianness.LITTLE
    assert r.read_u32() == 42
    assert r.remaining == 0


def test_scalar_round_trip():
    w = StreamWriter()
    w.write_i32(-5)
    w.write_f32(2.5)
    w.write_u16(0xBEEF)
    w.write_i64(-(2**40))
    w.write_i8(-3)
    w.write_i16(-300)
    w.write_u64(2**63)
    r = StreamReader(w.getvalue())
    assert r.read_i32() == -5
    assert r.read_f32() == 2.5
    assert r.read_u16() == 0xBEEF
    assert r.read_i64() == -(2**40)
    assert r.read_i8() == -3
    assert r.read_i16() == -300
    assert r.read_u64() == 2**63


def test_read_past_end_raises_and_keeps_position():
    r = StreamReader(b"\x01\x02")
    with pytest.raises(RangeError):
        r.read_u32()
    assert r.tell() == 0
    assert r.read_u16() == 0x0201


def test_seek_outside_buffer():
    r = StreamReader(b"abcd")
    r.seek(4)
    with pytest.raises(RangeError):
        r.seek(5)
    with pytest.raises(RangeError):
        r.seek(-1)


def test_at_restores_position():
    r = StreamReader(b"\x01\x00\x00\x00\x02\x00\x00\x00")
    r.seek(4)
    with r.at(0):
        assert r.read_u32() == 1
    assert r.tell() == 4


def test_sub_reader_positions_are_relative():
    r = StreamReader(b"\xff\xff\x07\x00\x00\x00", Endianness.LITTLE)
    sub = r.sub_reader(2)
    assert sub.tell() == 0
    assert len(sub) == 4
    assert sub.read_u32() == 7
    with pytest.raises(RangeError):
        r.sub_reader(7)


def test_align_pads_with_zeros():
    w = StreamWriter()
    w.write_u8(1)
    w.align()
    assert w.getvalue() == b"\x01\x00\x00\x00"
    w.align()
    assert len(w) == 4

    r = StreamReader(w.getvalue())
    r.read_u8()
    r.align()
    assert r.tell() == 4


def test_put_u32_at_does_not_move_cursor():
    w = StreamWriter(Endianness.BIG)
    w.write_u32(0)
    w.write_u32(0)
    w.put_u32_at(0, 9)
    assert w.tell() == 8
    assert w.getvalue()[:4] == b"\x00\x00\x00\x09"
    with pytest.raises(RangeError):
        w.put_u32_at(6, 1)


def test_writer_overwrites_after_seek():
    w = StreamWriter()
    w.write_bytes(b"abcdef")
    w.seek(2)
    w.write_bytes(b"XY")
    assert w.tell() == 4
    w.seek_end()
    assert w.tell() == 6
    assert w.getvalue() == b"abXYef"


def test_endianness_labels():
    assert Endianness.from_label("big") is Endianness.BIG
    assert Endianness.LITTLE.label == "little"
    with pytest.raises(ValueError):
        Endianness.from_label("middle")
