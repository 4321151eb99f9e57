from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..command.adapter import CommandRunner
from ..config import RunConfig
from ..logging import get_logger
from ..tree.node import TreeNode, new_node
from ..util.concurrency import parallel_map_ordered
from ..util.rich_progress import CollectProgress

LOG = get_logger(__name__)

S = TypeVar("S")


@runtime_checkable
class Collector(Protocol):
    """
    Collector contract for one cloud vendor.

    collect() returns the fully built root node. It raises
    ScopeResolutionError when the top-level scope cannot be determined;
    every other failure must degrade to missing categories.
    """

    name: str

    def collect(
        self,
        runner: CommandRunner,
        cfg: RunConfig,
        *,
        progress: Optional[CollectProgress] = None,
    ) -> TreeNode:
        ...


def single_line(text: str) -> str:
    return " ".join(text.splitlines())


def attach_category(parent: TreeNode, title: str, labels: Sequence[str]) -> Optional[TreeNode]:
    """
    Attach a category node holding one leaf per label.

    Nothing is attached when labels is empty, so a failed or empty call never
    shows up as a childless category. Labels built from vendor data are
    flattened to a single line.
    """
    if not labels:
        return None
    category = new_node(title, parent)
    for label in labels:
        new_node(single_line(label), category)
    return category


def last_segment(value: str) -> str:
    """'projects/p/zones/us-central1-a' -> 'us-central1-a'"""
    return value.rsplit("/", 1)[-1]


def collect_scopes(
    scopes: Sequence[S],
    build: Callable[[S], TreeNode],
    *,
    workers: int,
    describe: Callable[[S], str] = str,
    progress: Optional[CollectProgress] = None,
    description: str = "Collecting",
) -> List[TreeNode]:
    """
    Build one detached subtree per sub-scope and return them in input order.

    Subtrees are attached by the caller, so running builders in parallel never
    touches a shared node.
    """
    if progress is not None:
        progress.start_scopes(description, [describe(s) for s in scopes])

    def _done(scope: S, node: TreeNode) -> None:
        LOG.info("Scope collected", extra={"scope": describe(scope), "categories": len(node.children)})
        if progress is not None:
            progress.advance(describe(scope))

    return parallel_map_ordered(build, scopes, max_workers=workers, on_done=_done)
