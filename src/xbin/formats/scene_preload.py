"""Scene preload tables ("FDGH").

Layout after the XData header::

    u32 magic 0x46444748
    i32 version (2, or 3 for hashed string entries)
    u32 files section offset
    u32 scenes section offset
    u32 strings section offset

The files section lists string-table indexes. Each scene entry holds three
absolute offsets: its name (an inline HAL string), its dependency list
(indexes into the scene table) and its asset list (string-table indexes).
String-table entries are a single string offset in version 2 and
``reserved, fnv1a64(utf8), offset`` in version 3.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from ..errors import (
    E_BAD_MAGIC,
    E_INDEX_OUT_OF_RANGE,
    E_INVALID_REFERENCE,
    UnresolvedReferenceError,
    format_error,
)
from ..io.cursor import StreamReader, StreamWriter
from ..io.interner import StringInterner
from ..io.patching import PatchWriter
from ..io.strings import read_string_offset, write_hal_string
from ..logging import get_logger
from .xdata import XDataHeader

__all__ = [
    "FDG_MAGIC",
    "HASHED_STRINGS_SINCE",
    "Scene",
    "ScenePreload",
    "fnv1a_64",
]

FDG_MAGIC = 0x46444748
HASHED_STRINGS_SINCE = 3

_FNV_OFFSET_BASIS = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_SCENE_ENTRY_SIZE = 12


def fnv1a_64(data: bytes) -> int:
    h = _FNV_OFFSET_BASIS
    for b in data:
        h ^= b
        h = (h * _FNV_PRIME) & 0xFFFFFFFFFFFFFFFF
    return h


@dataclass(slots=True)
class Scene:
    name: str
    dependencies: List[str] = field(default_factory=list)
    assets: List[str] = field(default_factory=list)


def _lookup(table: List[str], index: int, what: str) -> str:
    if not 0 <= index < len(table):
        raise UnresolvedReferenceError(
            code=E_INDEX_OUT_OF_RANGE,
            message=f"{what} index {index} outside table of {len(table)}",
            context={"index": index, "size": len(table)},
        )
    return table[index]


def _read_index_list(reader: StreamReader, offset: int) -> List[int]:
    reader.seek(offset)
    count = reader.read_u32()
    return [reader.read_i32() for _ in range(count)]


@dataclass
class ScenePreload:
    scenes: List[Scene] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    version: int = 2
    header: XDataHeader = field(default_factory=XDataHeader)

    @property
    def hashed_strings(self) -> bool:
        return self.version >= HASHED_STRINGS_SINCE

    # Reading ---------------------------------------------------------------
    @classmethod
    def from_reader(cls, reader: StreamReader) -> ScenePreload:
        header = XDataHeader.read(reader)
        magic = reader.read_u32()
        if magic != FDG_MAGIC:
            raise format_error(
                E_BAD_MAGIC,
                f"Scene preload magic 0x{FDG_MAGIC:08x} not found (got 0x{magic:08x})",
                {"position": reader.tell() - 4},
            )
        version = reader.read_i32()
        files_at = reader.read_u32()
        scenes_at = reader.read_u32()
        strings_at = reader.read_u32()
        doc = cls(version=version, header=header)

        strings = doc._read_strings(reader, strings_at)
        doc.files = [
            _lookup(strings, i, "File") for i in _read_index_list(reader, files_at)
        ]

        reader.seek(scenes_at)
        entries: List[Tuple[str, int, int]] = []
        for _ in range(reader.read_u32()):
            name = read_string_offset(reader)
            entries.append((name, reader.read_u32(), reader.read_u32()))
        names = [name for name, _, _ in entries]
        for name, deps_at, assets_at in entries:
            deps = [_lookup(names, i, "Scene") for i in _read_index_list(reader, deps_at)]
            assets = [
                _lookup(strings, i, "Asset") for i in _read_index_list(reader, assets_at)
            ]
            doc.scenes.append(Scene(name, deps, assets))

        get_logger().debug(
            "Decoded scene preload v%d: scenes=%d files=%d strings=%d",
            version,
            len(doc.scenes),
            len(doc.files),
            len(strings),
        )
        return doc

    def _read_strings(self, reader: StreamReader, offset: int) -> List[str]:
        logger = get_logger()
        reader.seek(offset)
        count = reader.read_u32()
        strings: List[str] = []
        for _ in range(count):
            if not self.hashed_strings:
                strings.append(read_string_offset(reader))
                continue
            reserved = reader.read_u32()
            stored_hash = reader.read_u64()
            text = read_string_offset(reader)
            if reserved:
                logger.warning(
                    "String entry %r has non-zero reserved word 0x%08x", text, reserved
                )
            if stored_hash != fnv1a_64(text.encode("utf-8")):
                logger.warning(
                    "String entry %r hash 0x%016x does not match its contents",
                    text,
                    stored_hash,
                )
            strings.append(text)
        return strings

    @classmethod
    def from_bytes(cls, data: bytes) -> ScenePreload:
        return cls.from_reader(StreamReader(data))

    @classmethod
    def read(cls, path: str | Path) -> ScenePreload:
        return cls.from_bytes(Path(path).read_bytes())

    # Writing ---------------------------------------------------------------
    def string_table(self) -> Dict[str, int]:
        """Shared strings in first-seen order: scene deps and assets, then files."""
        table: Dict[str, int] = {}
        for scene in self.scenes:
            for text in scene.dependencies + scene.assets:
                table.setdefault(text, len(table))
        for text in self.files:
            table.setdefault(text, len(table))
        return table

    def to_bytes(self) -> bytes:
        writer = StreamWriter(self.header.endianness)
        patcher = PatchWriter(writer)
        interner = StringInterner()
        slots = self.header.write_header(writer, patcher)

        writer.write_u32(FDG_MAGIC)
        writer.write_i32(self.version)
        files_slot = patcher.reserve()
        scenes_slot = patcher.reserve()
        strings_slot = patcher.reserve()

        table = self.string_table()
        scene_index: Dict[str, int] = {}
        for i, scene in enumerate(self.scenes):
            scene_index.setdefault(scene.name, i)

        patcher.resolve(files_slot)
        writer.write_u32(len(self.files))
        for text in self.files:
            writer.write_i32(table[text])

        patcher.resolve(scenes_slot)
        writer.write_u32(len(self.scenes))
        entry_slots = [
            [patcher.reserve() for _ in range(_SCENE_ENTRY_SIZE // 4)]
            for _ in self.scenes
        ]
        for scene, (name_slot, deps_slot, assets_slot) in zip(self.scenes, entry_slots):
            patcher.resolve(name_slot)
            write_hal_string(writer, scene.name)

            patcher.resolve(deps_slot)
            writer.write_u32(len(scene.dependencies))
            for dep in scene.dependencies:
                index = scene_index.get(dep)
                if index is None:
                    raise UnresolvedReferenceError(
                        code=E_INVALID_REFERENCE,
                        message=(
                            f"Scene {scene.name!r} depends on scene {dep!r}, "
                            "which does not exist"
                        ),
                        context={"scene": scene.name, "dependency": dep},
                    )
                writer.write_i32(index)

            patcher.resolve(assets_slot)
            writer.write_u32(len(scene.assets))
            for asset in scene.assets:
                writer.write_i32(table[asset])

        patcher.resolve(strings_slot)
        writer.write_u32(len(table))
        for text in table:
            if self.hashed_strings:
                writer.write_u32(0)
                writer.write_u64(fnv1a_64(text.encode("utf-8")))
            interner.intern(patcher.reserve(), text)

        interner.flush_all(patcher)
        self.header.write_trailer(writer, patcher, slots)
        patcher.finalize()
        return writer.getvalue()

    def write(self, path: str | Path) -> int:
        data = self.to_bytes()
        Path(path).write_bytes(data)
        return len(data)

    def scene(self, name: str) -> Scene:
        for s in self.scenes:
            if s.name == name:
                return s
        raise KeyError(name)
