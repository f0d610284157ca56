"""Structured diff of node trees and tree documents.

Entries are JSON-serializable dictionaries with a stable shape::

    {"path": "$.stage[2].name", "kind": "value", "left": "a", "right": "b"}

``kind`` is one of ``type``, ``value``, ``added``, ``removed`` or ``order``.
An ``order`` entry is reported for a map whose shared keys appear in a
different insertion order; its ``left``/``right`` hold the two key orders.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .tree.document import TreeDocument
from .tree.node import Node, NodeType

__all__ = ["diff_nodes", "diff_documents", "format_diff"]

DiffEntry = Dict[str, Any]


def _entry(path: str, kind: str, left: Any, right: Any) -> DiffEntry:
    return {"path": path, "kind": kind, "left": left, "right": right}


def _key_path(path: str, key: str) -> str:
    if key.isidentifier():
        return f"{path}.{key}"
    return f"{path}[{key!r}]"


def diff_nodes(left: Node, right: Node, path: str = "$") -> List[DiffEntry]:
    diffs: List[DiffEntry] = []
    _diff_into(diffs, left, right, path)
    return diffs


def _diff_into(out: List[DiffEntry], left: Node, right: Node, path: str) -> None:
    if left.type is not right.type:
        out.append(_entry(path, "type", left.type.name, right.type.name))
        return
    if left.type is NodeType.MAP:
        left_keys = left.keys()
        right_keys = right.keys()
        right_set = set(right_keys)
        left_set = set(left_keys)
        for key in left_keys:
            if key not in right_set:
                out.append(_entry(_key_path(path, key), "removed", left[key].to_python(), None))
        for key in right_keys:
            if key not in left_set:
                out.append(_entry(_key_path(path, key), "added", None, right[key].to_python()))
        shared_left = [k for k in left_keys if k in right_set]
        shared_right = [k for k in right_keys if k in left_set]
        if shared_left != shared_right:
            out.append(_entry(path, "order", shared_left, shared_right))
        for key in shared_left:
            _diff_into(out, left[key], right[key], _key_path(path, key))
        return
    if left.type is NodeType.ARRAY:
        for i in range(max(left.length, right.length)):
            item_path = f"{path}[{i}]"
            if i >= right.length:
                out.append(_entry(item_path, "removed", left[i].to_python(), None))
            elif i >= left.length:
                out.append(_entry(item_path, "added", None, right[i].to_python()))
            else:
                _diff_into(out, left[i], right[i], item_path)
        return
    if left.to_python() != right.to_python():
        out.append(_entry(path, "value", left.to_python(), right.to_python()))


def diff_documents(left: TreeDocument, right: TreeDocument) -> List[DiffEntry]:
    """Header fields and tree version first, then the node trees."""
    diffs: List[DiffEntry] = []
    pairs = [
        ("header.endian", left.header.endianness.label, right.header.endianness.label),
        ("header.version", list(left.header.version), list(right.header.version)),
        ("header.constant", left.header.constant, right.header.constant),
        ("version", left.version, right.version),
    ]
    for path, a, b in pairs:
        if a != b:
            diffs.append(_entry(path, "value", a, b))
    diffs.extend(diff_nodes(left.root, right.root))
    return diffs


def format_diff(entry: DiffEntry) -> str:
    kind = entry["kind"]
    if kind == "added":
        return f"+ {entry['path']}: {entry['right']!r}"
    if kind == "removed":
        return f"- {entry['path']}: {entry['left']!r}"
    return f"~ {entry['path']} ({kind}): {entry['left']!r} -> {entry['right']!r}"
