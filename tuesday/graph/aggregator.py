"""
Completion aggregation.

A node's effective state is derived on demand from its children:

- children that count are live, non-pseudo, non-date children (archived
  ones too, unless the aggregator is told to skip them)
- no counted children: the node's own stored flag decides
- every counted child CHECKED: CHECKED
- no counted child CHECKED or PARTIAL: NONE
- anything in between: PARTIAL

Pseudo children neither help nor hurt their parent. Cycles are cut by the
active path: a node met again below itself contributes its stored flag.
"""

from typing import Dict, Set, Tuple

from .store import Graph
from .types import CheckState, NodeId


def _stored(checked: bool) -> CheckState:
    return CheckState.CHECKED if checked else CheckState.NONE


class CompletionAggregator:
    """
    Compute aggregated check states for one graph.

    Results are memoized per instance; build a new aggregator after
    mutating the graph.

    Args:
        graph: Graph to read
        include_archived: Whether archived children count (default: True)
    """

    def __init__(self, graph: Graph, include_archived: bool = True):
        self.graph = graph
        self.include_archived = include_archived
        self._memo: Dict[NodeId, CheckState] = {}

    def counts(self, node_id: NodeId) -> bool:
        """Whether a node takes part in its parents' aggregation."""
        node = self.graph.nodes[node_id]
        if node.is_pseudo or node.is_date:
            return False
        return self.include_archived or not node.archived

    def state(self, node_id: NodeId) -> CheckState:
        self.graph.get(node_id)
        return self._state(node_id, set())[0]

    def _state(self, node_id: NodeId, path: Set[NodeId]) -> Tuple[CheckState, bool]:
        """Return the state and whether a cycle was cut while computing it."""
        if node_id in self._memo:
            return self._memo[node_id], False
        node = self.graph.nodes[node_id]
        if node_id in path:
            return _stored(node.checked), True

        path.add(node_id)
        counted = 0
        checked = 0
        partial = False
        cut = False
        for child_id in node.children:
            if not self.counts(child_id):
                continue
            counted += 1
            child_state, child_cut = self._state(child_id, path)
            cut = cut or child_cut
            if child_state is CheckState.CHECKED:
                checked += 1
            elif child_state is CheckState.PARTIAL:
                partial = True
        path.discard(node_id)

        if counted == 0:
            result = _stored(node.checked)
        elif checked == counted:
            result = CheckState.CHECKED
        elif checked == 0 and not partial:
            result = CheckState.NONE
        else:
            result = CheckState.PARTIAL

        # Only path-independent results are reusable
        if not cut:
            self._memo[node_id] = result
        return result, cut


def aggregate_state(graph: Graph, node_id: NodeId, include_archived: bool = True) -> CheckState:
    """Effective check state of one node."""
    return CompletionAggregator(graph, include_archived=include_archived).state(node_id)
