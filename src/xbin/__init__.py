"""xbin: read and write XBIN-framed binary tree documents."""

from .errors import (
    FormatError,
    NodeTypeError,
    PatchError,
    RangeError,
    UnresolvedReferenceError,
    XBinError,
)
from .formats import FontFilter, FormatVersion, MsgFilter, Scene, ScenePreload, XDataHeader
from .io import Endianness, StreamReader, StreamWriter
from .tree import Node, NodeType, TreeDocument

__version__ = "0.1.0"

__all__ = [
    "XBinError",
    "FormatError",
    "RangeError",
    "UnresolvedReferenceError",
    "PatchError",
    "NodeTypeError",
    "FormatVersion",
    "XDataHeader",
    "FontFilter",
    "MsgFilter",
    "Scene",
    "ScenePreload",
    "Endianness",
    "StreamReader",
    "StreamWriter",
    "Node",
    "NodeType",
    "TreeDocument",
]
