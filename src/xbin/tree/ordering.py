"""On-disk ordering of map keys.

Maps are stored sorted by :func:`hal_key_compare`: a key whose first character
is upper case sorts before a key whose first character is lower case, and
everything else falls back to code point order. The target loader rejects maps
stored in any other order, so this comparator is part of the format and must
not be replaced by plain ``sorted()`` semantics.

From tree version 4 on, a map also stores a permutation table: entry ``i`` is
the disk slot holding the ``i``-th inserted key. Readers use it to restore
insertion order; writers derive it from the sorted write order.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import List, Sequence

from ..errors import E_BAD_PERMUTATION, format_error

__all__ = [
    "hal_key_compare",
    "write_order",
    "disk_indices",
    "check_permutation",
]


def _is_upper(key: str) -> bool:
    return bool(key) and key[0].isupper()


def _is_lower(key: str) -> bool:
    return bool(key) and key[0].islower()


def hal_key_compare(a: str, b: str) -> int:
    if _is_upper(a) and _is_lower(b):
        return -1
    if _is_upper(b) and _is_lower(a):
        return 1
    return (a > b) - (a < b)


_HAL_KEY = cmp_to_key(hal_key_compare)


def write_order(keys: Sequence[str]) -> List[str]:
    """Keys in the order they are physically stored."""
    return sorted(keys, key=_HAL_KEY)


def disk_indices(keys: Sequence[str], order: Sequence[str]) -> List[int]:
    """For each key in insertion order, its slot in ``order``."""
    slot = {key: i for i, key in enumerate(order)}
    return [slot[key] for key in keys]


def check_permutation(table: Sequence[int]) -> List[int]:
    """Validate a decoded permutation table; returns it as a list."""
    count = len(table)
    if sorted(table) != list(range(count)):
        raise format_error(
            E_BAD_PERMUTATION,
            f"Key permutation table is not a permutation of 0..{count - 1}",
            {"table": list(table)},
        )
    return list(table)
