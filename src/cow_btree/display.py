"""Pretty-printing and display utilities for B+ tree structures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cow_btree.nodes import LeafNode

if TYPE_CHECKING:
    from cow_btree.btree_base import BTree
    from cow_btree.nodes import Node


# ANSI colour codes
PRIMARY = '\033[32m'    # green
SECONDARY = '\033[33m'  # yellow
RESET = '\033[0m'

SHARED_MARK = "*"


def _node_text(node: Node, colour: bool) -> str:
    SEP = " | "
    text = "[" + SEP.join(str(k) for k in node.keys) + "]"
    if node.is_shared:
        text += SHARED_MARK
        if colour:
            text = f"{SECONDARY}{text}{RESET}"
    return text


def print_pretty(tree: BTree, colour: bool = False) -> str:
    """
    Renders a B+ tree so:
      • Lines go from the root level down to the leaves.
      • Within a line, nodes appear left→right.
      • Internal nodes show their cached max keys, leaves their keys.
      • Nodes flagged as shared carry a trailing ``*``.
    """
    from cow_btree.btree_base import BTree

    if not isinstance(tree, BTree):
        raise TypeError(f"print_pretty() expects BTree, got {type(tree).__name__}")

    tree_type = type(tree).__name__
    if tree.size == 0:
        return f"{tree_type}: Empty"

    out_lines = []
    level: list[Node] = [tree._root]
    depth = 0
    while level:
        line = "  ".join(_node_text(node, colour) for node in level)
        kind = "Leaves" if isinstance(level[0], LeafNode) else f"Level {depth}"
        label = f"{PRIMARY}{kind}{RESET}" if colour else kind
        out_lines.append(f"{label}: {line}")
        if isinstance(level[0], LeafNode):
            break
        level = [child for node in level for child in node.children]
        depth += 1

    return f"{tree_type}(size={tree.size}, height={tree.height})\n" + "\n".join(out_lines) + "\n"


def print_structure(tree: BTree) -> str:
    """Return a debugging-oriented nested dump of every node."""
    lines = []

    def walk(node: Node, indent: int) -> None:
        prefix = " " * indent
        shared = ", shared" if node.is_shared else ""
        if node.is_leaf:
            lines.append(f"{prefix}LeafNode(size={len(node.keys)}{shared}) {node.keys!r}")
            return
        lines.append(f"{prefix}InternalNode(children={len(node.children)}{shared}) max_keys={node.keys!r}")
        for child in node.children:
            walk(child, indent + 4)

    walk(tree._root, 0)
    return "\n".join(lines)
