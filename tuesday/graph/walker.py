"""
Graph Walker: the traversal feed used for display and statistics.

Produces a lazy, depth-first, pre-order sequence of WalkEntry records from a
start set (the roots by default). Each record carries what a tree renderer
needs: depth, whether the node is the last visible sibling, and whether it
has more than one parent.

CYCLE SAFETY
------------
The same node may legitimately appear under several parents, so there is no
global visited set. Instead the walker keeps the active ancestor path; a
node met again while it is on that path is yielded once with
``is_cycle=True`` and not descended into.

DEPTH
-----
``max_depth`` counts displayed levels, the start set being level 1.
``max_depth(1)`` yields only the start set; ``0`` means unbounded.

ARCHIVED NODES
--------------
Archived nodes and everything below them are skipped unless
``include_archived()`` is called. Skipped nodes leave no gap: the previous
visible sibling becomes the last one. Explicit start nodes are always
yielded; the filter applies to roots and to children.

USAGE EXAMPLES
--------------

Render every root two levels deep:
    >>> for entry in GraphWalker(graph).max_depth(2):
    ...     print("  " * entry.depth, graph.get(entry.node_id).message)

Count the live nodes below node 3:
    >>> GraphWalker(graph).starting_from(3) \\
    ...     .visit(lambda entry, acc: acc + 1, initial=0).run()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from .store import Graph
from .types import NodeId

T = TypeVar("T")


@dataclass(frozen=True)
class WalkEntry:
    """One step of the traversal feed."""
    node_id: NodeId
    depth: int
    is_last: bool
    multi_parent: bool
    is_cycle: bool = False


@dataclass
class WalkerPlan:
    """
    Description of what a walker will do, without running it.

    Attributes:
        start_ids: Explicit start nodes (None = the roots)
        max_depth: Displayed levels (0 = unlimited)
        include_archived: Whether archived subtrees are walked
        has_filter: Whether a node filter is configured
        has_visitor: Whether a visitor function is configured
        live_nodes: Live nodes in the graph
    """
    start_ids: Optional[List[NodeId]] = None
    max_depth: int = 0
    include_archived: bool = False
    has_filter: bool = False
    has_visitor: bool = False
    live_nodes: int = 0

    def __str__(self) -> str:
        lines = ["Walker Plan", "=" * 40, "Strategy: DFS pre-order"]
        if self.start_ids is None:
            lines.append("Start: roots")
        else:
            lines.append(f"Start: {', '.join(str(i) for i in self.start_ids)}")
        lines.append(f"Max depth: {self.max_depth or 'Unlimited'}")
        lines.append(f"Archived: {'shown' if self.include_archived else 'skipped'}")
        lines.append(f"Has filter: {self.has_filter}")
        lines.append(f"Has visitor: {self.has_visitor}")
        lines.append("")
        lines.append(f"Live nodes: {self.live_nodes}")
        return "\n".join(lines)


class GraphWalker:
    """
    Fluent, restartable depth-first walker.

    Iterating the walker (or calling ``iter()``) starts a fresh traversal
    each time.
    """

    def __init__(self, graph: Graph):
        self._graph = graph
        self._start_ids: Optional[List[NodeId]] = None
        self._max_depth: int = 0
        self._include_archived: bool = False
        self._filter_fn: Optional[Callable[[NodeId], bool]] = None
        self._visitor: Optional[Callable[[WalkEntry, Any], Any]] = None
        self._initial: Any = None

    def starting_from(self, *node_ids: NodeId) -> GraphWalker:
        """
        Walk from the given nodes instead of the roots.

        Raises:
            NotFoundError: If any start node does not exist
        """
        for node_id in node_ids:
            self._graph.get(node_id)
        self._start_ids = list(node_ids)
        return self

    def max_depth(self, depth: int) -> GraphWalker:
        if depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {depth}")
        self._max_depth = depth
        return self

    def include_archived(self, include: bool = True) -> GraphWalker:
        self._include_archived = include
        return self

    def filter(self, predicate: Callable[[NodeId], bool]) -> GraphWalker:
        """Skip nodes (and their subtrees) for which predicate is False."""
        self._filter_fn = predicate
        return self

    def visit(self, visitor: Callable[[WalkEntry, T], T], initial: T = None) -> GraphWalker:
        """Fold every entry into an accumulator when ``run()`` is called."""
        self._visitor = visitor
        self._initial = initial
        return self

    def explain(self) -> WalkerPlan:
        return WalkerPlan(
            start_ids=list(self._start_ids) if self._start_ids is not None else None,
            max_depth=self._max_depth,
            include_archived=self._include_archived,
            has_filter=self._filter_fn is not None,
            has_visitor=self._visitor is not None,
            live_nodes=len(self._graph),
        )

    def run(self) -> Any:
        """Execute the traversal and return the visitor's final accumulator."""
        acc = self._initial
        if self._visitor is None:
            return acc
        for entry in self.iter():
            acc = self._visitor(entry, acc)
        return acc

    def __iter__(self) -> Iterator[WalkEntry]:
        return self.iter()

    def iter(self) -> Iterator[WalkEntry]:
        """Yield WalkEntry records lazily in depth-first pre-order."""
        if self._start_ids is not None:
            last = len(self._start_ids) - 1
            first_level = [(node_id, index == last) for index, node_id in enumerate(self._start_ids)]
        else:
            first_level = self._visible(self._graph.roots())
        path: List[NodeId] = []
        stack = [iter(first_level)]

        while stack:
            step = next(stack[-1], None)
            if step is None:
                stack.pop()
                if path:
                    path.pop()
                continue

            node_id, is_last = step
            depth = len(stack) - 1
            node = self._graph.nodes[node_id]
            is_cycle = node_id in path
            yield WalkEntry(node_id, depth, is_last, node.has_multiple_parents, is_cycle)

            if is_cycle:
                continue
            if self._max_depth and depth + 1 >= self._max_depth:
                continue
            path.append(node_id)
            stack.append(iter(self._visible(node.children)))

    # ========================================================================
    # PRIVATE METHODS
    # ========================================================================

    def _visible(self, node_ids: Iterable[NodeId]) -> List[Tuple[NodeId, bool]]:
        """Pair each shown node with its is-last-sibling flag."""
        shown = [node_id for node_id in node_ids if self._should_visit(node_id)]
        return [(node_id, index == len(shown) - 1) for index, node_id in enumerate(shown)]

    def _should_visit(self, node_id: NodeId) -> bool:
        node = self._graph.nodes[node_id]
        if node is None:
            return False
        if node.archived and not self._include_archived:
            return False
        if self._filter_fn is not None and not self._filter_fn(node_id):
            return False
        return True


def walk(
    graph: Graph,
    start: Optional[NodeId] = None,
    max_depth: int = 0,
    show_archived: bool = False,
) -> Iterator[WalkEntry]:
    """Walk from ``start`` (or from the roots) with the given bounds."""
    walker = GraphWalker(graph).max_depth(max_depth).include_archived(show_archived)
    if start is not None:
        walker.starting_from(start)
    return walker.iter()
