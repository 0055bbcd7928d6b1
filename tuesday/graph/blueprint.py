"""
Blueprint Transplanter.

A blueprint is an anonymous, renumbered copy of the subtree below one node.
Extraction walks the subtree depth-first (pre-order, first visit wins),
numbers nodes from 0 in that order, and keeps every edge whose two ends are
both inside the subtree. Edges leaving the subtree, and edges leading back
into the root, are dropped. Aliases and archived flags are not carried over.

Insertion appends fresh nodes for every document node, rebuilds the internal
edges and hangs the document root under a target parent (or leaves it as a
new root). If any date node in the document collides with an existing date
node, or with another date node in the same document, nothing is inserted.

Blueprint files are YAML:

    name: errands
    author: me
    version: 1
    root: 0
    nodes:
      - message: errands
        kind: normal
        checked: false
        parents: []
        children: [1, 2]
      ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import BlueprintError, CorruptionError, DuplicateDateError
from .store import Graph
from .types import Node, NodeId

logger = logging.getLogger(__name__)

BLUEPRINT_VERSION = 1
BLUEPRINT_ROOT: NodeId = 0


@dataclass
class Blueprint:
    """
    Portable subtree document.

    Attributes:
        name: Template name (also the file stem in the blueprint store)
        author: Optional author
        version: Document format version
        nodes: Dense node list; index 0 is the root
    """

    name: str
    author: Optional[str] = None
    version: int = BLUEPRINT_VERSION
    nodes: List[Node] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> Node:
        return self.nodes[BLUEPRINT_ROOT]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize blueprint to dictionary."""
        nodes = []
        for node in self.nodes:
            record = node.to_dict()
            record.pop("archived", None)
            record.pop("alias", None)
            nodes.append(record)
        return {
            "name": self.name,
            "author": self.author,
            "version": self.version,
            "root": BLUEPRINT_ROOT,
            "nodes": nodes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Blueprint:
        """
        Deserialize and validate a blueprint.

        Raises:
            BlueprintError: If the document is malformed or its edges are
                inconsistent
        """
        if not isinstance(data, dict):
            raise BlueprintError("Blueprint document must be a mapping")
        if "name" not in data or not isinstance(data.get("nodes"), list) or not data["nodes"]:
            raise BlueprintError("Blueprint needs a name and a non-empty node list")
        if data.get("root", BLUEPRINT_ROOT) != BLUEPRINT_ROOT:
            raise BlueprintError(f"Blueprint root must be {BLUEPRINT_ROOT}", root=data.get("root"))
        version = data.get("version", BLUEPRINT_VERSION)
        if not isinstance(version, int) or isinstance(version, bool):
            raise BlueprintError("Blueprint version must be an integer", version=repr(version))
        author = data.get("author")
        if author is not None and not isinstance(author, str):
            raise BlueprintError("Blueprint author must be a string", author=repr(author))

        try:
            nodes = [Node.from_dict(record) for record in data["nodes"]]
        except CorruptionError as e:
            raise BlueprintError(f"Invalid blueprint node: {e.message}", name=data.get("name")) from e

        for node in nodes:
            node.archived = False
            node.alias = None

        blueprint = cls(
            name=str(data["name"]),
            author=author,
            version=version,
            nodes=nodes,
        )
        try:
            blueprint.to_graph()
        except CorruptionError as e:
            raise BlueprintError(f"Inconsistent blueprint '{blueprint.name}': {e.message}") from e
        return blueprint

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_yaml(cls, text: str) -> Blueprint:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise BlueprintError(f"Blueprint is not valid YAML: {e}") from e
        return cls.from_dict(data)

    def to_graph(self) -> Graph:
        """
        Build a standalone graph from the document, root at id 0.

        Used to run ordinary graph commands against a blueprint.

        Raises:
            CorruptionError: If the document's edges are inconsistent
        """
        graph = Graph()
        graph.nodes = [
            Node(
                message=node.message,
                kind=node.kind,
                date=node.date,
                checked=node.checked,
                parents=list(node.parents),
                children=list(node.children),
            )
            for node in self.nodes
        ]
        for node_id, node in graph.items():
            if node.is_date:
                if node.date in graph.date_index:
                    raise CorruptionError(
                        f"Blueprint holds two date nodes for {node.date.isoformat()}",
                        date=node.date.isoformat()
                    )
                graph.date_index[node.date] = node_id
        graph.validate()
        return graph

    @classmethod
    def from_graph(cls, graph: Graph, name: str, author: Optional[str] = None) -> Blueprint:
        """Rebuild a blueprint from a graph made by ``to_graph`` and then edited."""
        return extract(graph, BLUEPRINT_ROOT, name, preserve=True, author=author)


def extract(
    graph: Graph,
    root_id: NodeId,
    name: str,
    preserve: bool = True,
    author: Optional[str] = None,
) -> Blueprint:
    """
    Copy the subtree under ``root_id`` into a blueprint.

    Args:
        graph: Source graph
        root_id: Subtree root
        name: Blueprint name
        preserve: Keep the subtree in the graph; when False it is removed
            like ``Graph.remove`` would
        author: Optional author

    Returns:
        The renumbered blueprint
    """
    graph.get(root_id)
    order = [root_id] + graph.preorder(root_id)
    renumbered = {old_id: new_id for new_id, old_id in enumerate(order)}

    nodes = [graph.nodes[old_id].copy_content() for old_id in order]
    for old_id in order:
        parent_new = renumbered[old_id]
        for child in graph.nodes[old_id].children:
            if child in renumbered and child != root_id:
                nodes[parent_new].children.append(renumbered[child])
                nodes[renumbered[child]].parents.append(parent_new)

    blueprint = Blueprint(name=name, author=author, nodes=nodes)
    if not preserve:
        graph.remove(root_id, cascade=True)
    logger.debug(f"Extracted {len(nodes)} node(s) from {root_id} into blueprint '{name}'")
    return blueprint


def insert(
    graph: Graph,
    blueprint: Blueprint,
    parent: Optional[NodeId] = None,
    message: Optional[str] = None,
) -> NodeId:
    """
    Transplant a blueprint into a graph.

    Args:
        graph: Target graph
        blueprint: Document to insert
        parent: Node to attach the blueprint root under (None = new root)
        message: Replacement message for the inserted root

    Returns:
        Id of the inserted root

    Raises:
        NotFoundError: If ``parent`` does not exist
        DuplicateDateError: If a date node collides; the graph is unchanged
    """
    if parent is not None:
        graph.get(parent)

    seen_dates = set()
    for node in blueprint.nodes:
        if not node.is_date:
            continue
        if node.date in seen_dates:
            raise DuplicateDateError(
                f"Blueprint '{blueprint.name}' holds two date nodes for {node.date.isoformat()}",
                date=node.date.isoformat()
            )
        graph.check_date_free(node.date)
        seen_dates.add(node.date)

    offset = len(graph.nodes)
    for index, node in enumerate(blueprint.nodes):
        clone = node.copy_content()
        if index != BLUEPRINT_ROOT:
            clone.parents = [offset + p for p in node.parents]
        clone.children = [offset + c for c in node.children if c != BLUEPRINT_ROOT]
        graph.nodes.append(clone)
        if clone.is_date:
            graph.date_index[clone.date] = len(graph.nodes) - 1

    root_id = offset + BLUEPRINT_ROOT
    if message:
        graph.nodes[root_id].message = message
    if parent is not None:
        graph.link(parent, root_id)
    logger.debug(f"Inserted blueprint '{blueprint.name}' at {root_id} under {parent}")
    return root_id
