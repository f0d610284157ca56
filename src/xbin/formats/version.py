"""Version-dependent format policy.

Callers never branch on raw version numbers; they receive a
:class:`FormatVersion` built once per document and ask it what to do.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..io.patching import PatchMode

__all__ = [
    "FormatVersion",
    "RELATIVE_OFFSETS_SINCE",
    "KEY_PERMUTATION_SINCE",
    "FOOTER_AFTER_MAJOR",
]

# Tree versions from which node references count from the reference field.
RELATIVE_OFFSETS_SINCE = 5
# Tree versions from which maps carry an insertion-order permutation table.
KEY_PERMUTATION_SINCE = 4
# XData major versions above this carry a footer address and an RLOC footer.
FOOTER_AFTER_MAJOR = 2


@dataclass(frozen=True, slots=True)
class FormatVersion:
    offsets_are_relative: bool = False
    has_key_permutation_table: bool = False
    has_footer: bool = False

    @classmethod
    def for_tree(cls, version: int, header_major: int = 0) -> FormatVersion:
        return cls(
            offsets_are_relative=version >= RELATIVE_OFFSETS_SINCE,
            has_key_permutation_table=version >= KEY_PERMUTATION_SINCE,
            has_footer=header_major > FOOTER_AFTER_MAJOR,
        )

    @classmethod
    def for_header(cls, major: int) -> FormatVersion:
        return cls(has_footer=major > FOOTER_AFTER_MAJOR)

    @property
    def offset_mode(self) -> PatchMode:
        if self.offsets_are_relative:
            return PatchMode.RELATIVE
        return PatchMode.ABSOLUTE
