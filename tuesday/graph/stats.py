"""
Graph and node statistics, including the per-day completion counts the
calendar view is drawn from.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from .aggregator import CompletionAggregator
from .store import Graph
from .types import CheckState, NodeId


@dataclass
class GraphStats:
    live_nodes: int = 0
    tombstones: int = 0
    table_size: int = 0
    roots: int = 0
    date_nodes: int = 0
    aliases: int = 0
    archived: int = 0
    checked: int = 0

    @property
    def tombstone_ratio(self) -> float:
        return 100.0 * self.tombstones / self.table_size if self.table_size else 0.0


@dataclass
class NodeStats:
    node_id: NodeId
    message: str
    kind: str
    state: CheckState
    parents: List[NodeId] = field(default_factory=list)
    children: List[NodeId] = field(default_factory=list)
    descendants: int = 0
    checked_children: int = 0
    counted_children: int = 0


@dataclass
class DayStats:
    """Completion of one date node's direct children."""
    node_id: NodeId
    checked: int = 0
    total: int = 0

    @property
    def ratio(self) -> float:
        return self.checked / self.total if self.total else 0.0


def graph_stats(graph: Graph) -> GraphStats:
    return GraphStats(
        live_nodes=len(graph),
        tombstones=graph.tombstone_count,
        table_size=graph.table_size,
        roots=len(graph.roots()),
        date_nodes=len(graph.date_index),
        aliases=len(graph.alias_index),
        archived=len(graph.archived_nodes()),
        checked=sum(1 for _, node in graph.items() if node.checked),
    )


def node_stats(graph: Graph, node_id: NodeId, include_archived: bool = True) -> NodeStats:
    node = graph.get(node_id)
    aggregator = CompletionAggregator(graph, include_archived=include_archived)
    counted = [child for child in node.children if aggregator.counts(child)]
    return NodeStats(
        node_id=node_id,
        message=node.message,
        kind=node.kind.value,
        state=aggregator.state(node_id),
        parents=list(node.parents),
        children=list(node.children),
        descendants=len(graph.descendants(node_id)),
        checked_children=sum(1 for child in counted if aggregator.state(child) is CheckState.CHECKED),
        counted_children=len(counted),
    )


def month_statistics(
    graph: Graph,
    year: int,
    month: int,
    include_archived: bool = True,
) -> Dict[date, DayStats]:
    """
    Completion counts for every date node in one month.

    Days without a date node are absent from the result.
    """
    _, days_in_month = calendar.monthrange(year, month)
    aggregator = CompletionAggregator(graph, include_archived=include_archived)
    result: Dict[date, DayStats] = {}
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        node_id = graph.find_date(day)
        if node_id is None:
            continue
        stats = DayStats(node_id=node_id)
        for child in graph.nodes[node_id].children:
            if not aggregator.counts(child):
                continue
            stats.total += 1
            if aggregator.state(child) is CheckState.CHECKED:
                stats.checked += 1
        result[day] = stats
    return result
