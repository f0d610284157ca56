"""Text (YAML/JSON) views of tree documents.

The dumped form is a mapping with three keys::

    header:  {endian: little|big, version: [major, minor], constant: 65001,
              footer_reserved: [a, b]}  (footer_reserved only when major > 2)
    version: tree version
    root:    the node tree as plain data

Maps keep their insertion order in both directions, so packing a dump
reproduces the bytes it was taken from.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .formats.xdata import HEADER_CONSTANT, XDataHeader
from .io.cursor import Endianness
from .tree.document import DEFAULT_TREE_VERSION, TreeDocument
from .tree.node import Node

__all__ = [
    "TEXT_FORMATS",
    "node_to_plain",
    "plain_to_node",
    "document_to_dict",
    "document_from_dict",
    "dump_text",
    "load_text",
    "format_for_path",
]

TEXT_FORMATS = ("yaml", "json")


def node_to_plain(node: Node) -> Any:
    return node.to_python()


def plain_to_node(value: Any) -> Node:
    return Node.from_python(value)


def document_to_dict(document: TreeDocument) -> Dict[str, Any]:
    header = document.header
    raw_header: Dict[str, Any] = {
        "endian": header.endianness.label,
        "version": list(header.version),
        "constant": header.constant,
    }
    if header.capabilities.has_footer:
        raw_header["footer_reserved"] = list(header.footer_reserved)
    return {
        "header": raw_header,
        "version": document.version,
        "root": node_to_plain(document.root),
    }


def _pair(raw_header: Dict[str, Any], name: str, default: Any) -> Tuple[int, int]:
    value = raw_header.get(name, default)
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Header {name} must be a two-item list, got {value!r}")
    return int(value[0]), int(value[1])


def document_from_dict(data: Any) -> TreeDocument:
    if not isinstance(data, dict):
        raise ValueError("Root of a text document must be a mapping")
    raw_header = data.get("header") or {}
    if not isinstance(raw_header, dict):
        raise ValueError("'header' must be a mapping")
    header = XDataHeader(
        endianness=Endianness.from_label(str(raw_header.get("endian", "little"))),
        version=_pair(raw_header, "version", [2, 0]),
        constant=int(raw_header.get("constant", HEADER_CONSTANT)),
        footer_reserved=_pair(raw_header, "footer_reserved", [0, 0]),
    )
    return TreeDocument(
        root=plain_to_node(data.get("root")),
        version=int(data.get("version", DEFAULT_TREE_VERSION)),
        header=header,
    )


def dump_text(document: TreeDocument, fmt: str = "yaml") -> str:
    data = document_to_dict(document)
    if fmt == "yaml":
        return yaml.safe_dump(
            data, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    raise ValueError(f"Unknown text format: {fmt!r}")


def load_text(text: str, fmt: str = "yaml") -> TreeDocument:
    if fmt == "yaml":
        data: Any = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unknown text format: {fmt!r}")
    return document_from_dict(data)


def format_for_path(path: str | Path, default: str = "yaml") -> str:
    suffix = Path(path).suffix.lower()
    if suffix in {".yaml", ".yml"}:
        return "yaml"
    if suffix == ".json":
        return "json"
    return default
