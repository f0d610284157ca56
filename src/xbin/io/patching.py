"""Deferred-offset ("patch and backfill") writing.

Forward-referencing structures are emitted with 4-byte placeholders whose
values are only known once the referenced content has been written. The
workflow is:

1. ``reserve()`` emits the placeholder and returns a :class:`PatchRecord`.
2. ``resolve(record)`` binds the record to its target, normally the current
   write position captured right before the referenced content is emitted.
3. ``finalize()`` writes every bound value back into the buffer in one pass.

The write cursor never moves backwards. Records live in an arena keyed by
placeholder position so pending work can be audited (``pending``) and a
forgotten resolution fails loudly at finalization instead of leaving a
sentinel in the output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .cursor import StreamWriter
from ..errors import E_PATCH_TWICE, E_UNRESOLVED_PATCH, PatchError

__all__ = ["PatchMode", "PatchRecord", "PatchWriter", "PLACEHOLDER"]

PLACEHOLDER = 0xFFFFFFFF


class PatchMode(Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(slots=True, eq=False)
class PatchRecord:
    position: int
    mode: PatchMode = PatchMode.ABSOLUTE
    target: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.target is not None

    def encoded(self) -> int:
        if self.target is None:
            raise PatchError(
                E_UNRESOLVED_PATCH,
                f"Patch at {self.position} has no target",
                {"position": self.position},
            )
        if self.mode is PatchMode.RELATIVE:
            return (self.target - self.position) & 0xFFFFFFFF
        return self.target & 0xFFFFFFFF


class PatchWriter:
    def __init__(self, writer: StreamWriter) -> None:
        self.writer = writer
        self._records: Dict[int, PatchRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def reserve(self, mode: PatchMode = PatchMode.ABSOLUTE) -> PatchRecord:
        position = self.writer.tell()
        if position in self._records:
            raise PatchError(
                E_PATCH_TWICE,
                f"Placeholder already reserved at {position}",
                {"position": position},
            )
        self.writer.write_u32(PLACEHOLDER)
        record = PatchRecord(position, mode)
        self._records[position] = record
        return record

    def resolve(self, record: PatchRecord, target: Optional[int] = None) -> None:
        """Bind ``record`` to ``target`` (default: the current write position)."""
        if record.resolved:
            raise PatchError(
                E_PATCH_TWICE,
                f"Patch at {record.position} resolved twice",
                {"position": record.position, "target": record.target},
            )
        if self._records.get(record.position) is not record:
            raise PatchError(
                E_UNRESOLVED_PATCH,
                f"Patch at {record.position} was not reserved by this writer",
                {"position": record.position},
            )
        record.target = self.writer.tell() if target is None else target

    @property
    def pending(self) -> List[PatchRecord]:
        return [r for r in self._records.values() if not r.resolved]

    def finalize(self) -> int:
        """Backfill every record; returns the number of fields written."""
        pending = self.pending
        if pending:
            raise PatchError(
                E_UNRESOLVED_PATCH,
                f"{len(pending)} placeholder(s) never resolved",
                {"positions": [r.position for r in pending]},
            )
        for record in self._records.values():
            self.writer.put_u32_at(record.position, record.encoded())
        count = len(self._records)
        self._records.clear()
        return count
