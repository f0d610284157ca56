"""Binary tree document inspection.

Public functions:
- inspect_tree_file(path) -> dict
- inspect_tree_bytes(data) -> dict
- validate_tree_info(info) -> list[str]

The info dictionary is JSON-serializable so the CLI can print it as-is.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Set

from .formats.xdata import HEADER_CONSTANT
from .io.cursor import DEFAULT_ALIGNMENT
from .tree.document import TreeDocument
from .tree.node import Node, NodeType

__all__ = [
    "inspect_tree_file",
    "inspect_tree_bytes",
    "validate_tree_info",
    "tree_stats",
]


def _align(value: int) -> int:
    return (value + DEFAULT_ALIGNMENT - 1) // DEFAULT_ALIGNMENT * DEFAULT_ALIGNMENT


def tree_stats(root: Node) -> Dict[str, Any]:
    """Node counts per type, maximum depth and distinct string count."""
    counts: Counter[str] = Counter()
    strings: Set[str] = set()
    max_depth = 0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        max_depth = max(max_depth, depth)
        counts[node.type.name] += 1
        if node.type is NodeType.STRING:
            strings.add(node.to_str())
        elif node.type is NodeType.MAP:
            strings.update(node.keys())
        stack.extend((child, depth + 1) for child in node.children())
    return {
        "nodes": sum(counts.values()),
        "node_counts": {t.name: counts[t.name] for t in NodeType if counts[t.name]},
        "max_depth": max_depth,
        "unique_strings": len(strings),
    }


def inspect_tree_bytes(data: bytes) -> Dict[str, Any]:
    document = TreeDocument.from_bytes(data)
    header = document.header
    info: Dict[str, Any] = {
        "file_size": len(data),
        "header": {
            "endian": header.endianness.label,
            "version": list(header.version),
            "size": header.size,
            "file_length": header.file_length,
            "constant": header.constant,
        },
        "footer": None,
        "tree_version": document.version,
        "capabilities": asdict(document.capabilities),
        "root_type": document.root.type.name,
    }
    if header.capabilities.has_footer:
        info["footer"] = {
            "offset": header.footer_offset,
            "reserved": list(header.footer_reserved),
        }
    info.update(tree_stats(document.root))
    return info


def inspect_tree_file(path: str | Path) -> Dict[str, Any]:
    info = inspect_tree_bytes(Path(path).read_bytes())
    info["path"] = str(path)
    return info


def validate_tree_info(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    header = info["header"]
    footer = info.get("footer")
    length = header["file_length"]
    if footer is None:
        if length != info["file_size"]:
            issues.append(
                f"Length field {length} does not match file size {info['file_size']}"
            )
    elif _align(length) != footer["offset"]:
        issues.append(
            f"Length field {length} does not end at footer offset {footer['offset']}"
        )
    if header["constant"] != HEADER_CONSTANT:
        issues.append(
            f"Header constant {header['constant']} (expected {HEADER_CONSTANT})"
        )
    if footer is not None and any(footer["reserved"]):
        issues.append(f"Footer reserved words are non-zero: {footer['reserved']}")
    return issues
