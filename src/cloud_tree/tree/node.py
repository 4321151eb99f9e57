from __future__ import annotations

from typing import List, Optional, Tuple


class TreeNode:
    """
    A display node in the resource tree.

    Nodes are append-only: the label is fixed at construction and children can
    only be added at the end. A node may be attached to at most one parent,
    which keeps the structure a tree without any cycle checks.
    """

    __slots__ = ("_label", "_children", "_attached")

    def __init__(self, label: str) -> None:
        if "\n" in label or "\r" in label:
            raise ValueError(f"Node label must be a single line: {label!r}")
        self._label = label
        self._children: List[TreeNode] = []
        self._attached = False

    @property
    def label(self) -> str:
        return self._label

    @property
    def children(self) -> Tuple[TreeNode, ...]:
        return tuple(self._children)

    @property
    def is_leaf(self) -> bool:
        return not self._children

    def append(self, child: TreeNode) -> TreeNode:
        """Attach child as the new last child and return it."""
        if child is self:
            raise ValueError("A node cannot be its own child")
        if child._attached:
            raise ValueError(f"Node {child.label!r} already has a parent")
        child._attached = True
        self._children.append(child)
        return child

    def __lshift__(self, child: TreeNode) -> TreeNode:
        return self.append(child)

    def __repr__(self) -> str:
        return f"TreeNode({self._label!r}, children={len(self._children)})"


def new_node(label: str, parent: Optional[TreeNode] = None) -> TreeNode:
    """Create a childless node, attaching it under parent when given."""
    node = TreeNode(label)
    if parent is not None:
        parent.append(node)
    return node


def append(parent: TreeNode, child: TreeNode) -> TreeNode:
    return parent.append(child)
