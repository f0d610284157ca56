"""String interning for forward string references.

Each distinct string is stored once, after the structure that references it.
Entries are flushed in first-seen order so identical logical documents always
encode to identical bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from .patching import PatchRecord, PatchWriter
from .strings import write_hal_string

__all__ = ["InternedString", "StringInterner"]


@dataclass(slots=True)
class InternedString:
    text: str
    sites: List[PatchRecord] = field(default_factory=list)


class StringInterner:
    def __init__(self) -> None:
        self._entries: Dict[str, InternedString] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __iter__(self) -> Iterator[InternedString]:
        return iter(self._entries.values())

    def intern(self, record: PatchRecord, text: str) -> InternedString:
        entry = self._entries.get(text)
        if entry is None:
            entry = InternedString(text)
            self._entries[text] = entry
        entry.sites.append(record)
        return entry

    def flush_all(self, patcher: PatchWriter) -> int:
        """Emit every string and bind all of its references; returns the count."""
        writer = patcher.writer
        count = len(self._entries)
        for entry in self._entries.values():
            target = writer.tell()
            for site in entry.sites:
                patcher.resolve(site, target)
            write_hal_string(writer, entry.text)
        self._entries.clear()
        return count
