"""
Command session: the graph in scope for one invocation.

Command handlers receive a GraphSession instead of a bare Graph. The session
resolves identifiers, tracks whether anything changed, and knows whether the
graph is the user's main graph or a blueprint being edited, in which case
some commands are refused.
"""

import logging
from pathlib import Path
from typing import List, Optional

from tuesday.graph.aggregator import CompletionAggregator
from tuesday.graph.blueprint import Blueprint
from tuesday.graph.blueprint_store import BlueprintStore, write_blueprint
from tuesday.graph.config import TuesdayConfig
from tuesday.graph.errors import BlueprintError
from tuesday.graph.persistence import GraphFile
from tuesday.graph.resolver import IdentifierResolver
from tuesday.graph.store import Graph
from tuesday.graph.types import NodeId

logger = logging.getLogger(__name__)


class GraphSession:
    """
    Graph plus everything a command needs around it.

    Args:
        graph: Graph in scope
        config: Loaded configuration
        graph_file: Where the main graph is saved (None for blueprints)
        blueprint: Blueprint being edited, if any
        blueprint_path: File the edited blueprint is written back to
    """

    def __init__(
        self,
        graph: Graph,
        config: Optional[TuesdayConfig] = None,
        graph_file: Optional[GraphFile] = None,
        blueprint: Optional[Blueprint] = None,
        blueprint_path: Optional[Path] = None,
    ):
        self.graph = graph
        self.config = config or TuesdayConfig()
        self.graph_file = graph_file
        self.blueprint = blueprint
        self.blueprint_path = blueprint_path
        self.resolver = IdentifierResolver(graph)
        self.dirty = False

    @property
    def in_blueprint(self) -> bool:
        return self.blueprint is not None

    @property
    def display(self):
        return self.config.display

    @property
    def blueprints(self) -> BlueprintStore:
        return BlueprintStore(self.config.blueprints.store_dir)

    def resolve(self, token: str, prefer_date: bool = False) -> NodeId:
        return self.resolver.resolve(token, prefer_date=prefer_date)

    def resolve_many(self, tokens: List[str], prefer_date: bool = False) -> List[NodeId]:
        return self.resolver.resolve_many(tokens, prefer_date=prefer_date)

    def aggregator(self) -> CompletionAggregator:
        """Fresh aggregator honoring the archived-children policy."""
        return CompletionAggregator(
            self.graph,
            include_archived=self.config.graph.aggregate_archived
        )

    def mark_dirty(self) -> None:
        self.dirty = True

    def forbid_in_blueprint(self, what: str) -> None:
        """Refuse an operation that makes no sense inside a blueprint."""
        if self.in_blueprint:
            raise BlueprintError(f"Cannot {what} inside a blueprint", blueprint=self.blueprint.name)

    def maybe_compact(self) -> bool:
        """Compact the main graph when auto-compaction is due."""
        settings = self.config.graph
        if self.in_blueprint or not settings.auto_compact:
            return False
        if not self.graph.needs_compaction(settings.auto_compact_threshold):
            return False
        mapping = self.graph.compact()
        logger.debug(f"Auto-compacted graph to {len(mapping)} node(s)")
        return True

    def save(self) -> None:
        """Persist changes, if any, to the main graph file or the blueprint."""
        if not self.dirty:
            return
        if self.in_blueprint:
            updated = Blueprint.from_graph(self.graph, self.blueprint.name, author=self.blueprint.author)
            write_blueprint(self.blueprint_path, updated)
            self.blueprint = updated
        elif self.graph_file is not None:
            self.maybe_compact()
            self.graph_file.save(self.graph)
        self.dirty = False
