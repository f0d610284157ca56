"""Command line interface for xbin."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Tuple

from .api import (
    PackOptions,
    diff_documents,
    inspect_document,
    pack_text,
    roundtrip_files,
    unpack_to_text,
)
from .diff import format_diff
from .errors import XBinError
from .inspector import validate_tree_info
from .io.cursor import Endianness
from .logging import configure_logging, section, step
from .reporting import (
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)
from .textconv import TEXT_FORMATS


def _header_version(text: str) -> Tuple[int, int]:
    try:
        major, minor = (int(part) for part in text.split("."))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected MAJOR.MINOR, got {text!r}"
        ) from None
    return major, minor


def _inspect_cmd(args: argparse.Namespace) -> int:
    step(f"inspecting {args.file.name}")
    info = inspect_document(args.file)
    issues = validate_tree_info(info)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps({**info, "issues": issues}, indent=2, sort_keys=True))
        return 0
    header = info["header"]
    rep.status(
        f"Header: {header['endian']}-endian xdata "
        f"{header['version'][0]}.{header['version'][1]} length={header['file_length']}"
    )
    rep.status(
        f"Tree: v{info['tree_version']} root={info['root_type']} "
        f"nodes={info['nodes']} depth={info['max_depth']} "
        f"strings={info['unique_strings']}"
    )
    for issue in issues:
        rep.warning(issue)
    return 0


def _unpack_cmd(args: argparse.Namespace) -> int:
    text = unpack_to_text(args.file, args.output, args.format)
    if args.output is None:
        get_reporter().flush()
        sys.stdout.write(text)
    return 0


def _pack_cmd(args: argparse.Namespace) -> int:
    opts = PackOptions(
        input_text=args.text,
        output_path=args.output,
        fmt=args.format,
        tree_version=args.tree_version,
        header_version=args.header_version,
        endianness=Endianness.from_label(args.endian) if args.endian else None,
    )
    pack_text(opts)
    return 0


def _roundtrip_cmd(args: argparse.Namespace) -> int:
    results = roundtrip_files(args.files)
    rep = get_reporter()
    exact = True
    for path, result in zip(args.files, results):
        rep.status(
            f"Round trip {path.name}: byte_exact={result.byte_exact} "
            f"in={result.size_in} out={result.size_out}"
        )
        for entry in result.differences:
            rep.verbose(format_diff(entry))
        exact = exact and result.byte_exact
    return 0 if exact else 1


def _diff_cmd(args: argparse.Namespace) -> int:
    step("diffing tree documents")
    diffs = diff_documents(args.left, args.right)
    rep = get_reporter()
    with section("Diff results"):
        rep.status(
            f"Diff summary: count={len(diffs)} left={args.left.name} right={args.right.name}"
        )
    rep.flush()
    for entry in diffs:
        print(format_diff(entry))
    return 1 if diffs else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="xbin", description="Inspect and convert XBIN binary tree documents"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("inspect", help="Summarize a binary tree document")
    i.add_argument("file", type=Path)
    i.add_argument("--json", action="store_true", help="Emit the full info as JSON")
    i.set_defaults(func=_inspect_cmd)

    u = sub.add_parser("unpack", help="Convert a binary document to YAML/JSON")
    u.add_argument("file", type=Path)
    u.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    u.add_argument("--format", choices=TEXT_FORMATS)
    u.set_defaults(func=_unpack_cmd)

    k = sub.add_parser("pack", help="Convert YAML/JSON to a binary document")
    k.add_argument("text", type=Path)
    k.add_argument("output", type=Path)
    k.add_argument("--format", choices=TEXT_FORMATS)
    k.add_argument("--tree-version", dest="tree_version", type=int)
    k.add_argument(
        "--header-version",
        dest="header_version",
        type=_header_version,
        help="XData version as MAJOR.MINOR",
    )
    k.add_argument("--endian", choices=["little", "big"])
    k.set_defaults(func=_pack_cmd)

    t = sub.add_parser("roundtrip", help="Check that files re-encode byte-exactly")
    t.add_argument("files", type=Path, nargs="+")
    t.set_defaults(func=_roundtrip_cmd)

    d = sub.add_parser("diff", help="Diff two binary tree documents")
    d.add_argument("left", type=Path)
    d.add_argument("right", type=Path)
    d.set_defaults(func=_diff_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except XBinError as exc:
        get_reporter().error(str(exc))
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
