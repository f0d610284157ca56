import logging
import struct

import pytest

from xbin.errors import (
    E_INDEX_OUT_OF_RANGE,
    E_INVALID_REFERENCE,
    FormatError,
    UnresolvedReferenceError,
)
from xbin.formats.scene_preload import FDG_MAGIC, Scene, ScenePreload, fnv1a_64


def _sample(version: int = 2) -> ScenePreload:
    return ScenePreload(
        scenes=[
            Scene("A", [], ["x", "y"]),
            Scene("B", ["A"], ["y", "z"]),
        ],
        files=["w", "x"],
        version=version,
    )


def test_fnv1a_64_reference_values():
    assert fnv1a_64(b"") == 0xCBF29CE484222325
    assert fnv1a_64(b"a") == 0xAF63DC4C8601EC8C


def test_string_table_first_seen_order():
    assert _sample().string_table() == {"x": 0, "y": 1, "A": 2, "z": 3, "w": 4}


@pytest.mark.parametrize("version", [2, 3])
def test_round_trip(version):
    doc = _sample(version)
    data = doc.to_bytes()
    assert struct.unpack_from("<Ii", data, 16) == (FDG_MAGIC, version)
    back = ScenePreload.from_bytes(data)
    assert back.version == version
    assert back.files == doc.files
    assert back.scenes == doc.scenes
    assert back.scene("B").dependencies == ["A"]
    assert back.to_bytes() == data


def test_hashed_string_entries():
    data = _sample(3).to_bytes()
    strings_at = struct.unpack_from("<I", data, 32)[0]
    count, reserved, first_hash = struct.unpack_from("<IIQ", data, strings_at)
    assert count == 5
    assert reserved == 0
    assert first_hash == fnv1a_64(b"x")
    v2 = _sample(2).to_bytes()
    assert len(data) - len(v2) == 5 * 12


def test_hash_mismatch_warns(caplog):
    data = bytearray(_sample(3).to_bytes())
    strings_at = struct.unpack_from("<I", data, 32)[0]
    struct.pack_into("<Q", data, strings_at + 8, 1)
    with caplog.at_level(logging.WARNING, logger="xbin"):
        back = ScenePreload.from_bytes(bytes(data))
    assert back.scenes == _sample(3).scenes
    assert "hash" in caplog.text


def test_missing_dependency_is_rejected():
    doc = ScenePreload(scenes=[Scene("A", ["Ghost"], [])])
    with pytest.raises(UnresolvedReferenceError) as exc:
        doc.to_bytes()
    assert exc.value.code == E_INVALID_REFERENCE


def test_index_outside_string_table():
    data = bytearray(_sample().to_bytes())
    files_at = struct.unpack_from("<I", data, 24)[0]
    struct.pack_into("<i", data, files_at + 4, 99)
    with pytest.raises(UnresolvedReferenceError) as exc:
        ScenePreload.from_bytes(bytes(data))
    assert exc.value.code == E_INDEX_OUT_OF_RANGE


def test_bad_magic():
    data = bytearray(_sample().to_bytes())
    data[16:20] = b"\x00\x00\x00\x00"
    with pytest.raises(FormatError):
        ScenePreload.from_bytes(bytes(data))


def test_unknown_scene_lookup():
    with pytest.raises(KeyError):
        _sample().scene("Nope")
