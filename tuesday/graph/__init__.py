"""
Tuesday node graph engine.

A persisted, file-backed multigraph of tasks. A node may have several
parents, may be anchored to a calendar date, and a subtree may be lifted
out into a reusable blueprint.

Key components:
- Graph: sparse node table with alias and date indexes, compaction
- IdentifierResolver: alias / index / date expression -> NodeId
- CompletionAggregator: none / partial / checked from children
- GraphWalker: depth-first, cycle-safe traversal feed
- Blueprint, extract, insert: subtree transplanting
- pick: raffle over a node's children
- GraphFile: checksummed, atomically written graph file
"""

from .errors import (
    TuesdayError,
    NotFoundError,
    InvalidIdentifierError,
    DuplicateAliasError,
    DuplicateDateError,
    InvalidEdgeError,
    EmptySelectionError,
    PersistenceError,
    CorruptionError,
    BlueprintError,
    ConfigError,
)

from .types import (
    CheckState,
    Node,
    NodeId,
    NodeKind,
    NodeRecord,
    RemovalResult,
    Selection,
)

from .store import Graph
from .resolver import IdentifierResolver, resolve
from .aggregator import CompletionAggregator, aggregate_state
from .walker import GraphWalker, WalkEntry, WalkerPlan, walk
from .blueprint import Blueprint, extract, insert
from .blueprint_store import BlueprintStore
from .raffle import eligible_children, pick
from .persistence import GraphFile, default_graph_path, load_graph, save_graph
from .stats import DayStats, GraphStats, NodeStats, graph_stats, month_statistics, node_stats
from .config import TuesdayConfig, load_config

__all__ = [
    # Errors
    'TuesdayError',
    'NotFoundError',
    'InvalidIdentifierError',
    'DuplicateAliasError',
    'DuplicateDateError',
    'InvalidEdgeError',
    'EmptySelectionError',
    'PersistenceError',
    'CorruptionError',
    'BlueprintError',
    'ConfigError',
    # Types
    'CheckState',
    'Node',
    'NodeId',
    'NodeKind',
    'NodeRecord',
    'RemovalResult',
    'Selection',
    # Engine
    'Graph',
    'IdentifierResolver',
    'resolve',
    'CompletionAggregator',
    'aggregate_state',
    'GraphWalker',
    'WalkEntry',
    'WalkerPlan',
    'walk',
    'Blueprint',
    'extract',
    'insert',
    'BlueprintStore',
    'eligible_children',
    'pick',
    'GraphFile',
    'default_graph_path',
    'load_graph',
    'save_graph',
    'DayStats',
    'GraphStats',
    'NodeStats',
    'graph_stats',
    'month_statistics',
    'node_stats',
    'TuesdayConfig',
    'load_config',
]
