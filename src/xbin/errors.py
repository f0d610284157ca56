"""Error definitions for xbin.

Every decode failure is fatal for the document being processed; there is no
partial recovery. Codes are stable strings so reporters and JSON output can
match on them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_BAD_MAGIC = "E_BAD_MAGIC"
E_BAD_HEADER = "E_BAD_HEADER"
E_UNKNOWN_TAG = "E_UNKNOWN_TAG"
E_BAD_COUNT = "E_BAD_COUNT"
E_BAD_STRING = "E_BAD_STRING"
E_BAD_PERMUTATION = "E_BAD_PERMUTATION"
E_DUP_KEY = "E_DUP_KEY"
E_DEPTH = "E_DEPTH"
E_OUT_OF_RANGE = "E_OUT_OF_RANGE"
E_INVALID_REFERENCE = "E_INVALID_REFERENCE"
E_INDEX_OUT_OF_RANGE = "E_INDEX_OUT_OF_RANGE"
E_UNRESOLVED_PATCH = "E_UNRESOLVED_PATCH"
E_PATCH_TWICE = "E_PATCH_TWICE"


@dataclass
class XBinError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class FormatError(XBinError):
    pass


class RangeError(XBinError):
    pass


class UnresolvedReferenceError(XBinError):
    pass


class PatchError(XBinError):
    pass


class NodeTypeError(TypeError):
    """Strict cast or container operation on a node of the wrong type."""


def format_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> FormatError:
    return FormatError(code=code, message=message, context=context)


def range_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> RangeError:
    return RangeError(code=E_OUT_OF_RANGE, message=message, context=context)


__all__ = [
    "XBinError",
    "FormatError",
    "RangeError",
    "UnresolvedReferenceError",
    "PatchError",
    "NodeTypeError",
    "format_error",
    "range_error",
    "E_BAD_MAGIC",
    "E_BAD_HEADER",
    "E_UNKNOWN_TAG",
    "E_BAD_COUNT",
    "E_BAD_STRING",
    "E_BAD_PERMUTATION",
    "E_DUP_KEY",
    "E_DEPTH",
    "E_OUT_OF_RANGE",
    "E_INVALID_REFERENCE",
    "E_INDEX_OUT_OF_RANGE",
    "E_UNRESOLVED_PATCH",
    "E_PATCH_TWICE",
]
