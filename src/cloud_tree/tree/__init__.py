from __future__ import annotations

from .node import TreeNode, append, new_node
from .render import iter_lines, print_tree, render_tree

__all__ = ["TreeNode", "append", "iter_lines", "new_node", "print_tree", "render_tree"]
