"""Variant tree node.

A :class:`Node` is a closed tagged value: Invalid, Int32, Float32, Bool,
String, OrderedMap (name -> Node, insertion order significant) or Array.
Containers own their children; nodes are never shared between parents. A
child handed to a container while it still belongs to another one (or while
it is an ancestor of the new parent) is stored as a deep copy instead, and
the container views returned by the accessors are snapshots.

Accessors come in three flavours:

* ``as_int()`` and friends never raise and return a zero value on a type
  mismatch (``None`` for the container views);
* ``try_int()`` and friends return ``None`` on a mismatch;
* ``to_int()`` and friends raise :class:`~xbin.errors.NodeTypeError`.
"""

from __future__ import annotations

import math
import struct
from enum import IntEnum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..errors import NodeTypeError

__all__ = ["NodeType", "Node"]

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class NodeType(IntEnum):
    INVALID = 0
    INT = 1
    FLOAT = 2
    BOOL = 3
    STRING = 4
    MAP = 5
    ARRAY = 6


def _to_float32(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return float(value)
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        raise ValueError(f"Float32 value out of range: {value!r}") from None


class Node:
    __slots__ = ("_type", "_value", "_parent")

    def __init__(self) -> None:
        self._type = NodeType.INVALID
        self._value: Any = None
        self._parent: Optional[Node] = None

    # Constructors -------------------------------------------------------------
    @classmethod
    def _make(cls, node_type: NodeType, value: Any) -> Node:
        node = cls()
        node._type = node_type
        node._value = value
        return node

    @classmethod
    def invalid(cls) -> Node:
        return cls()

    @classmethod
    def from_int(cls, value: int) -> Node:
        if isinstance(value, bool) or not isinstance(value, int):
            raise NodeTypeError(f"Int32 node needs an int, got {type(value).__name__}")
        if not _INT32_MIN <= value <= _INT32_MAX:
            raise ValueError(f"Int32 value out of range: {value}")
        return cls._make(NodeType.INT, value)

    @classmethod
    def from_float(cls, value: float) -> Node:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise NodeTypeError(
                f"Float32 node needs a float, got {type(value).__name__}"
            )
        return cls._make(NodeType.FLOAT, _to_float32(float(value)))

    @classmethod
    def from_bool(cls, value: bool) -> Node:
        return cls._make(NodeType.BOOL, bool(value))

    @classmethod
    def from_str(cls, value: str) -> Node:
        if not isinstance(value, str):
            raise NodeTypeError(f"String node needs a str, got {type(value).__name__}")
        return cls._make(NodeType.STRING, value)

    @classmethod
    def new_map(cls, items: Optional[Iterable[Tuple[str, Node]]] = None) -> Node:
        node = cls._make(NodeType.MAP, {})
        for key, child in items or ():
            node.add(key, child)
        return node

    @classmethod
    def new_array(cls, items: Optional[Iterable[Node]] = None) -> Node:
        node = cls._make(NodeType.ARRAY, [])
        for child in items or ():
            node.append(child)
        return node

    # Introspection ------------------------------------------------------------
    @property
    def type(self) -> NodeType:
        return self._type

    def type_tag(self) -> int:
        return int(self._type)

    @property
    def is_container(self) -> bool:
        return self._type in (NodeType.MAP, NodeType.ARRAY)

    @property
    def length(self) -> int:
        if self.is_container:
            return len(self._value)
        return 0

    def __len__(self) -> int:
        return self.length

    # Lenient getters ----------------------------------------------------------
    def as_int(self) -> int:
        return self._value if self._type is NodeType.INT else 0

    def as_float(self) -> float:
        return self._value if self._type is NodeType.FLOAT else 0.0

    def as_bool(self) -> bool:
        return self._value if self._type is NodeType.BOOL else False

    def as_str(self) -> str:
        return self._value if self._type is NodeType.STRING else ""

    def as_map(self) -> Optional[Dict[str, Node]]:
        return dict(self._value) if self._type is NodeType.MAP else None

    def as_list(self) -> Optional[List[Node]]:
        return list(self._value) if self._type is NodeType.ARRAY else None

    # Try getters --------------------------------------------------------------
    def try_int(self) -> Optional[int]:
        return self._value if self._type is NodeType.INT else None

    def try_float(self) -> Optional[float]:
        return self._value if self._type is NodeType.FLOAT else None

    def try_bool(self) -> Optional[bool]:
        return self._value if self._type is NodeType.BOOL else None

    def try_str(self) -> Optional[str]:
        return self._value if self._type is NodeType.STRING else None

    # Strict casts -------------------------------------------------------------
    def _expect(self, node_type: NodeType) -> Any:
        if self._type is not node_type:
            raise NodeTypeError(
                f"Node type is {self._type.name}, not {node_type.name}"
            )
        return self._value

    def to_int(self) -> int:
        return self._expect(NodeType.INT)

    def to_float(self) -> float:
        return self._expect(NodeType.FLOAT)

    def to_bool(self) -> bool:
        return self._expect(NodeType.BOOL)

    def to_str(self) -> str:
        return self._expect(NodeType.STRING)

    def to_map(self) -> Dict[str, Node]:
        return dict(self._expect(NodeType.MAP))

    def to_list(self) -> List[Node]:
        return list(self._expect(NodeType.ARRAY))

    # Container access ---------------------------------------------------------
    def keys(self) -> List[str]:
        return list(self._value) if self._type is NodeType.MAP else []

    def key(self, index: int) -> Optional[str]:
        if self._type is NodeType.MAP and 0 <= index < len(self._value):
            return self.keys()[index]
        return None

    def items(self) -> List[Tuple[str, Node]]:
        return list(self._value.items()) if self._type is NodeType.MAP else []

    def children(self) -> List[Node]:
        if self._type is NodeType.MAP:
            return list(self._value.values())
        if self._type is NodeType.ARRAY:
            return list(self._value)
        return []

    def __iter__(self) -> Iterator[Node]:
        return iter(self.children())

    def __contains__(self, key: object) -> bool:
        return self._type is NodeType.MAP and key in self._value

    def get(self, key: Union[int, str], default: Optional[Node] = None) -> Optional[Node]:
        try:
            return self[key]
        except (IndexError, KeyError, NodeTypeError):
            return default

    def __getitem__(self, key: Union[int, str]) -> Node:
        if isinstance(key, str):
            return self._expect(NodeType.MAP)[key]
        if not self.is_container:
            raise NodeTypeError(f"{self._type.name} node is not indexable")
        if not 0 <= key < len(self._value):
            raise IndexError(f"Child index {key} out of range ({len(self._value)})")
        if self._type is NodeType.MAP:
            return list(self._value.values())[key]
        return self._value[key]

    def __setitem__(self, key: Union[int, str], child: Node) -> None:
        _check_child(child)
        if isinstance(key, str):
            entries = self._expect(NodeType.MAP)
            old = entries.get(key)
            entries[key] = self._adopt(child)
        elif self._type is NodeType.MAP:
            name = self.keys()[key]
            old = self._value[name]
            self._value[name] = self._adopt(child)
        else:
            elements = self._expect(NodeType.ARRAY)
            old = elements[key]
            elements[key] = self._adopt(child)
        if old is not None:
            old._parent = None

    def append(self, child: Node) -> None:
        _check_child(child)
        elements = self._expect(NodeType.ARRAY)
        elements.append(self._adopt(child))

    def add(self, key: str, child: Node) -> None:
        _check_child(child)
        entries = self._expect(NodeType.MAP)
        if not isinstance(key, str):
            raise NodeTypeError(f"Map keys must be str, got {type(key).__name__}")
        if key in entries:
            raise KeyError(f"Duplicate map key: {key!r}")
        entries[key] = self._adopt(child)

    def remove(self, key: Union[int, str]) -> Node:
        if isinstance(key, str):
            child = self._expect(NodeType.MAP).pop(key)
        elif self._type is NodeType.MAP:
            child = self._value.pop(self.keys()[key])
        else:
            child = self._expect(NodeType.ARRAY).pop(key)
        child._parent = None
        return child

    def _adopt(self, child: Node) -> Node:
        ancestor: Optional[Node] = self
        while ancestor is not None and ancestor is not child:
            ancestor = ancestor._parent
        if child._parent is not None or ancestor is child:
            child = child.copy()
        child._parent = self
        return child

    def copy(self) -> Node:
        """Deep copy; the copy has no parent."""
        if self._type is NodeType.MAP:
            return Node.new_map((k, v.copy()) for k, v in self._value.items())
        if self._type is NodeType.ARRAY:
            return Node.new_array(v.copy() for v in self._value)
        return Node._make(self._type, self._value)

    # Plain-value conversion ---------------------------------------------------
    @classmethod
    def from_python(cls, value: Any) -> Node:
        if value is None:
            return cls()
        if isinstance(value, Node):
            return value.copy()
        if isinstance(value, bool):
            return cls.from_bool(value)
        if isinstance(value, int):
            return cls.from_int(value)
        if isinstance(value, float):
            return cls.from_float(value)
        if isinstance(value, str):
            return cls.from_str(value)
        if isinstance(value, dict):
            return cls.new_map((str(k), cls.from_python(v)) for k, v in value.items())
        if isinstance(value, (list, tuple)):
            return cls.new_array(cls.from_python(v) for v in value)
        raise NodeTypeError(f"Cannot store {type(value).__name__} in a tree node")

    def to_python(self) -> Any:
        if self._type is NodeType.MAP:
            return {k: v.to_python() for k, v in self._value.items()}
        if self._type is NodeType.ARRAY:
            return [v.to_python() for v in self._value]
        return self._value

    # Equality / display -------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        if self._type is not other._type:
            return False
        if self._type is NodeType.MAP:
            return list(self._value.items()) == list(other._value.items())
        return self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.is_container:
            return f"Node({self._type.name}, len={self.length})"
        return f"Node({self._type.name}, {self._value!r})"

    def __str__(self) -> str:
        if self._type is NodeType.MAP:
            body = ", ".join(f'"{k}": {_quoted(v)}' for k, v in self._value.items())
            return "{ " + body + " }"
        if self._type is NodeType.ARRAY:
            return "[ " + ", ".join(_quoted(v) for v in self._value) + " ]"
        return str(self._value)


def _quoted(node: Node) -> str:
    if node.type is NodeType.STRING:
        return f'"{node}"'
    return str(node)


def _check_child(child: object) -> None:
    if not isinstance(child, Node):
        raise NodeTypeError(f"Children must be Node, got {type(child).__name__}")
