from __future__ import annotations

import sys
from typing import IO, Iterator, List, Optional, Tuple

from .node import TreeNode

TRUNK_CONTINUE = "│  "
TRUNK_BLANK = "   "
CONNECTOR_MIDDLE = "├─ "
CONNECTOR_LAST = "└─ "


def _prefix(ancestors_last: Tuple[bool, ...]) -> str:
    """
    Build the line prefix from the is-last-child flags along the path.

    The final flag belongs to the node itself and selects its connector; the
    earlier flags belong to ancestors below the root and select trunk segments.
    """
    if not ancestors_last:
        return ""
    trunk = "".join(TRUNK_BLANK if last else TRUNK_CONTINUE for last in ancestors_last[:-1])
    return trunk + (CONNECTOR_LAST if ancestors_last[-1] else CONNECTOR_MIDDLE)


def iter_lines(root: TreeNode) -> Iterator[str]:
    """
    Yield one rendered line per node in pre-order, children in stored order.

    Uses an explicit stack so very deep trees don't hit the recursion limit.
    """
    stack: List[Tuple[TreeNode, Tuple[bool, ...]]] = [(root, ())]
    while stack:
        node, ancestors_last = stack.pop()
        yield f"{_prefix(ancestors_last)}{node.label}"
        children = node.children
        last_index = len(children) - 1
        # Push in reverse so the first child is popped first
        for index in range(last_index, -1, -1):
            stack.append((children[index], ancestors_last + (index == last_index,)))


def render_tree(root: TreeNode) -> str:
    return "".join(f"{line}\n" for line in iter_lines(root))


def print_tree(root: TreeNode, stream: Optional[IO[str]] = None) -> None:
    """Write the rendered tree to stream (stdout by default). Write errors propagate."""
    out = stream if stream is not None else sys.stdout
    for line in iter_lines(root):
        out.write(line)
        out.write("\n")
    out.flush()
