"""
Raffle: pick one child of a node uniformly at random.

Candidates are filtered on their aggregated state, so a parent whose own
children are all checked counts as checked even if its stored flag is not
set. Archived children are candidates only when archived nodes count
towards completion (``include_archived``).
"""

import random
from typing import List, Optional

from .aggregator import CompletionAggregator
from .errors import EmptySelectionError
from .store import Graph
from .types import NodeId, Selection


def eligible_children(
    graph: Graph,
    parent: NodeId,
    selection: Selection = Selection.ALL,
    include_archived: bool = True,
) -> List[NodeId]:
    """Children of ``parent`` whose aggregated state passes ``selection``."""
    aggregator = CompletionAggregator(graph, include_archived=include_archived)
    return [
        child for child in graph.get(parent).children
        if (include_archived or not graph.nodes[child].archived)
        and selection.accepts(aggregator.state(child))
    ]


def pick(
    graph: Graph,
    parent: NodeId,
    selection: Selection = Selection.ALL,
    rng: Optional[random.Random] = None,
    include_archived: bool = True,
) -> NodeId:
    """
    Draw one eligible child.

    Args:
        graph: Graph to read
        parent: Node whose children are candidates
        selection: ALL, CHECKED or UNCHECKED
        rng: Random source (default: module-level random)
        include_archived: Whether archived nodes are drawn and counted

    Raises:
        NotFoundError: If ``parent`` does not exist
        EmptySelectionError: If no child passes the filter
    """
    candidates = eligible_children(graph, parent, selection, include_archived=include_archived)
    if not candidates:
        if not graph.nodes[parent].children:
            message = f"Node {parent} doesn't have children to pick from"
        else:
            message = f"Node {parent} has no {selection.value} children to pick from"
        raise EmptySelectionError(message, parent=parent, selection=selection.value)
    return (rng or random).choice(candidates)
