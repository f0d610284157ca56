import struct

import pytest

from xbin.errors import E_PATCH_TWICE, E_UNRESOLVED_PATCH, PatchError
from xbin.io.cursor import StreamWriter
from xbin.io.patching import PLACEHOLDER, PatchMode, PatchWriter


def _u32s(data: bytes):
    return list(struct.unpack(f"<{len(data) // 4}I", data))


def test_reserve_writes_placeholder():
    w = StreamWriter()
    p = PatchWriter(w)
    rec = p.reserve()
    assert rec.position == 0
    assert _u32s(w.getvalue()) == [PLACEHOLDER]
    assert p.pending == [rec]


def test_absolute_and_relative_resolution():
    w = StreamWriter()
    p = PatchWriter(w)
    w.write_u32(0)
    absolute = p.reserve()
    relative = p.reserve(PatchMode.RELATIVE)
    w.write_u32(0)
    p.resolve(absolute)
    p.resolve(relative)
    w.write_u32(0x55)
    assert p.finalize() == 2
    assert _u32s(w.getvalue()) == [0, 16, 8, 0, 0x55]
    assert w.tell() == 20


def test_explicit_target():
    w = StreamWriter()
    p = PatchWriter(w)
    rec = p.reserve()
    p.resolve(rec, 0x40)
    p.finalize()
    assert _u32s(w.getvalue()) == [0x40]


def test_unresolved_patch_fails_finalize():
    w = StreamWriter()
    p = PatchWriter(w)
    p.reserve()
    resolved = p.reserve()
    p.resolve(resolved)
    with pytest.raises(PatchError) as exc:
        p.finalize()
    assert exc.value.code == E_UNRESOLVED_PATCH
    assert exc.value.context == {"positions": [0]}


def test_double_resolution_is_rejected():
    p = PatchWriter(StreamWriter())
    rec = p.reserve()
    p.resolve(rec)
    with pytest.raises(PatchError) as exc:
        p.resolve(rec)
    assert exc.value.code == E_PATCH_TWICE


def test_foreign_record_is_rejected():
    a = PatchWriter(StreamWriter())
    b = PatchWriter(StreamWriter())
    rec = a.reserve()
    with pytest.raises(PatchError):
        b.resolve(rec)


def test_finalize_clears_records():
    p = PatchWriter(StreamWriter())
    p.resolve(p.reserve())
    assert len(p) == 1
    p.finalize()
    assert len(p) == 0
    assert p.finalize() == 0
