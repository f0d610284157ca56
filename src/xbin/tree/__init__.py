from .node import Node, NodeType
from .codec import TreeWriter, encode_node, read_node
from .document import (
    TreeDocument,
    TREE_MAGIC,
    read_tree_section,
    write_tree_section,
)
from .ordering import hal_key_compare, write_order

__all__ = [
    "Node",
    "NodeType",
    "TreeWriter",
    "encode_node",
    "read_node",
    "TreeDocument",
    "TREE_MAGIC",
    "read_tree_section",
    "write_tree_section",
    "hal_key_compare",
    "write_order",
]
