"""High-level API for xbin.

Thin, reporter-aware wrappers over the document, text and inspection
modules; the CLI is built on these.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .diff import diff_documents as _diff_documents_impl
from .diff import diff_nodes
from .inspector import (
    inspect_tree_file as _inspect_impl,
    tree_stats,
    validate_tree_info as _validate_impl,
)
from .io.cursor import Endianness
from .logging import get_logger
from .reporting import get_reporter, task
from .textconv import dump_text, format_for_path, load_text
from .tree.document import TreeDocument

__all__ = [
    "PackOptions",
    "RoundTripResult",
    "load_document",
    "save_document",
    "unpack_to_text",
    "pack_text",
    "roundtrip_check",
    "roundtrip_files",
    "inspect_document",
    "validate_document",
    "diff_documents",
]


@dataclass(slots=True)
class PackOptions:
    input_text: Path
    output_path: Path
    # None means: take it from the text file, or from the file suffix.
    fmt: Optional[str] = None
    tree_version: Optional[int] = None
    header_version: Optional[Tuple[int, int]] = None
    endianness: Optional[Endianness] = None


@dataclass(slots=True)
class RoundTripResult:
    byte_exact: bool
    size_in: int
    size_out: int
    first_mismatch: Optional[int] = None
    differences: List[Dict[str, Any]] = field(default_factory=list)


def load_document(path: str | Path) -> TreeDocument:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    with task("load", f"Decode {p.name}") as stats:
        document = TreeDocument.read(p)
        counts = tree_stats(document.root)
        stats["documents"] = 1
        stats["nodes"] = counts["nodes"]
        stats["strings"] = counts["unique_strings"]
        stats["bytes"] = p.stat().st_size
    return document


def save_document(document: TreeDocument, path: str | Path) -> int:
    p = Path(path)
    with task("save", f"Encode {p.name}") as stats:
        data, encoded = document.encode()
        p.write_bytes(data)
        stats["nodes"] = encoded.nodes
        stats["strings"] = encoded.strings
        stats["patches"] = encoded.patches
        stats["bytes"] = encoded.bytes
    get_logger().info("Wrote %s (%d bytes)", p.name, encoded.bytes)
    return encoded.bytes


def unpack_to_text(
    path: str | Path, output: str | Path | None = None, fmt: str | None = None
) -> str:
    """Decode a binary document to text; writes ``output`` when given."""
    if fmt is None:
        fmt = format_for_path(output) if output is not None else "yaml"
    document = load_document(path)
    text = dump_text(document, fmt)
    if output is not None:
        Path(output).write_text(text, encoding="utf-8")
        get_logger().info("Unpacked %s -> %s", Path(path).name, Path(output).name)
    return text


def pack_text(options: PackOptions) -> int:
    src = Path(options.input_text)
    fmt = options.fmt or format_for_path(src)
    document = load_text(src.read_text(encoding="utf-8"), fmt)
    if options.tree_version is not None:
        document.version = options.tree_version
    if options.header_version is not None:
        document.header.version = options.header_version
    if options.endianness is not None:
        document.header.endianness = options.endianness
    get_reporter().status(
        f"Pack summary: tree v{document.version} "
        f"xdata {document.header.version[0]}.{document.header.version[1]} "
        f"{document.header.endianness.label}-endian"
    )
    return save_document(document, options.output_path)


def roundtrip_check(path: str | Path) -> RoundTripResult:
    """Decode and re-encode a file, reporting whether the bytes survive."""
    original = Path(path).read_bytes()
    document = TreeDocument.from_bytes(original)
    encoded = document.to_bytes()
    result = RoundTripResult(
        byte_exact=encoded == original,
        size_in=len(original),
        size_out=len(encoded),
    )
    if not result.byte_exact:
        result.first_mismatch = next(
            (i for i, (a, b) in enumerate(zip(original, encoded)) if a != b),
            min(len(original), len(encoded)),
        )
        reread = TreeDocument.from_bytes(encoded)
        result.differences = diff_nodes(document.root, reread.root)
        get_logger().warning(
            "Round trip of %s differs at byte %d (%d -> %d bytes)",
            Path(path).name,
            result.first_mismatch,
            result.size_in,
            result.size_out,
        )
    return result


def roundtrip_files(paths: Sequence[str | Path]) -> List[RoundTripResult]:
    """Round-trip several files as one counted task."""
    results: List[RoundTripResult] = []
    rep = get_reporter()
    with task("roundtrip", "Round trip", total=len(paths)) as stats:
        for path in paths:
            results.append(roundtrip_check(path))
            rep.advance("roundtrip", current=Path(path).name)
        stats["documents"] = len(results)
        stats["bytes"] = sum(r.size_out for r in results)
    return results


def inspect_document(path: str | Path) -> dict:
    return _inspect_impl(path)


def validate_document(path: str | Path) -> list[str]:
    info = _inspect_impl(path)
    return _validate_impl(info)


def diff_documents(left: str | Path, right: str | Path) -> List[Dict[str, Any]]:
    return _diff_documents_impl(load_document(left), load_document(right))
