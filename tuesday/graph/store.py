"""
Graph Store
===========

Owns the sparse node table and the two lookup indexes.

NODE TABLE
----------
``Graph.nodes`` is a list indexed by NodeId. A slot holding ``None`` is a
tombstone: the node that lived there was removed. Tombstones are never
handed out again by ``add_node``; new nodes are always appended. Only
``compact()`` reclaims them, by renumbering every live node densely.

INDEXES
-------
- ``alias_index``: alias -> NodeId, one entry per aliased live node
- ``date_index``: calendar date -> NodeId, one entry per date node

Every mutator keeps both indexes and both sides of every edge in step. A
mutator validates everything it needs before it changes anything, so a
raised error leaves the graph as it was.

ROOTS AND DATES
---------------
Roots are live, non-date nodes without parents. Date nodes hang off a
conceptual dates anchor and are enumerated through ``date_index`` in
calendar order.

Example:
    graph = Graph()
    college = graph.add_node(NodeKind.NORMAL, "college")
    thesis = graph.add_node(NodeKind.NORMAL, "thesis", parent=college)
    graph.set_checked(thesis, True)
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import date
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .dates import is_date_keyword
from .errors import (
    CorruptionError,
    DuplicateAliasError,
    DuplicateDateError,
    InvalidEdgeError,
    InvalidIdentifierError,
    NotFoundError,
)
from .types import Node, NodeId, NodeKind, RemovalResult

logger = logging.getLogger(__name__)


class Graph:
    """Sparse, multi-parent node graph with alias and date indexes."""

    def __init__(self):
        self.nodes: List[Optional[Node]] = []
        self.alias_index: Dict[str, NodeId] = {}
        self.date_index: Dict[date, NodeId] = {}

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return (
            self.nodes == other.nodes
            and self.alias_index == other.alias_index
            and self.date_index == other.date_index
        )

    def __len__(self) -> int:
        """Number of live nodes."""
        return sum(1 for node in self.nodes if node is not None)

    @property
    def table_size(self) -> int:
        return len(self.nodes)

    @property
    def tombstone_count(self) -> int:
        return sum(1 for node in self.nodes if node is None)

    def tombstone_ratio(self) -> float:
        """Percentage (0-100) of table slots that are tombstones."""
        if not self.nodes:
            return 0.0
        return 100.0 * self.tombstone_count / len(self.nodes)

    def needs_compaction(self, threshold: int) -> bool:
        """True when tombstones exceed ``threshold`` percent of the table."""
        return self.tombstone_count > 0 and self.tombstone_ratio() > threshold

    def exists(self, node_id: NodeId) -> bool:
        return 0 <= node_id < len(self.nodes) and self.nodes[node_id] is not None

    def get(self, node_id: NodeId) -> Node:
        """
        Return the live node with this id.

        Raises:
            NotFoundError: If the id is out of range or tombstoned
        """
        if not self.exists(node_id):
            raise NotFoundError(f"No such node: {node_id}", node_id=node_id)
        return self.nodes[node_id]

    def items(self) -> Iterator[Tuple[NodeId, Node]]:
        """Iterate ``(id, node)`` over live nodes in ascending id order."""
        for node_id, node in enumerate(self.nodes):
            if node is not None:
                yield node_id, node

    def live_ids(self) -> List[NodeId]:
        return [node_id for node_id, _ in self.items()]

    def roots(self) -> List[NodeId]:
        return [
            node_id for node_id, node in self.items()
            if not node.parents and not node.is_date
        ]

    def date_nodes(self) -> List[NodeId]:
        """Date node ids in calendar order."""
        return [self.date_index[day] for day in sorted(self.date_index)]

    def archived_nodes(self) -> List[NodeId]:
        return [node_id for node_id, node in self.items() if node.archived]

    def find_date(self, day: date) -> Optional[NodeId]:
        return self.date_index.get(day)

    def find_alias(self, alias: str) -> Optional[NodeId]:
        return self.alias_index.get(alias)

    def descendants(self, node_id: NodeId) -> Set[NodeId]:
        """All nodes reachable through child edges, excluding ``node_id`` itself."""
        seen: Set[NodeId] = set()
        queue = deque(self.get(node_id).children)
        while queue:
            current = queue.popleft()
            if current in seen or current == node_id:
                continue
            seen.add(current)
            queue.extend(self.nodes[current].children)
        return seen

    # =========================================================================
    # NODE CREATION
    # =========================================================================

    def add_node(
        self,
        kind: NodeKind,
        message: str,
        parent: Optional[NodeId] = None,
        day: Optional[date] = None,
    ) -> NodeId:
        """
        Append a new node and return its id.

        Args:
            kind: NORMAL, PSEUDO or DATE
            message: Display text
            parent: Parent to attach under; None creates a root (or a
                parentless date node)
            day: Calendar date, required for DATE nodes

        Raises:
            NotFoundError: If the parent does not exist
            DuplicateDateError: If a date node for ``day`` already exists
        """
        if parent is not None:
            self.get(parent)
        if kind is NodeKind.DATE:
            if day is None:
                raise InvalidIdentifierError("Date node requires a date", node_message=message)
            self.check_date_free(day)

        node = Node(message=message, kind=kind, date=day if kind is NodeKind.DATE else None)
        node_id = len(self.nodes)
        self.nodes.append(node)

        if kind is NodeKind.DATE:
            self.date_index[day] = node_id
        if parent is not None:
            self.nodes[parent].children.append(node_id)
            node.parents.append(parent)

        logger.debug(f"Added {kind.value} node {node_id} under {parent}")
        return node_id

    def check_date_free(self, day: date) -> None:
        existing = self.date_index.get(day)
        if existing is not None:
            raise DuplicateDateError(
                f"A date node for {day.isoformat()} already exists ({existing})",
                date=day.isoformat(),
                node_id=existing
            )

    # =========================================================================
    # EDGES
    # =========================================================================

    def link(self, parent: NodeId, child: NodeId) -> None:
        """
        Add a parent -> child edge.

        Raises:
            NotFoundError: If either node is missing
            InvalidEdgeError: On a self-edge or an already existing edge
        """
        parent_node = self.get(parent)
        child_node = self.get(child)
        if parent == child:
            raise InvalidEdgeError(f"Cannot link node {parent} to itself", node_id=parent)
        if child in parent_node.children:
            raise InvalidEdgeError(
                f"Node {child} is already a child of {parent}",
                parent=parent,
                child=child
            )
        parent_node.children.append(child)
        child_node.parents.append(parent)

    def unlink(self, parent: NodeId, child: NodeId) -> None:
        """
        Remove a parent -> child edge.

        Raises:
            InvalidEdgeError: If the edge does not exist
        """
        parent_node = self.get(parent)
        child_node = self.get(child)
        if child not in parent_node.children:
            raise InvalidEdgeError(
                f"Node {child} is not a child of {parent}",
                parent=parent,
                child=child
            )
        parent_node.children.remove(child)
        child_node.parents.remove(parent)

    def move(self, node_id: NodeId, new_parent: NodeId) -> None:
        """Detach ``node_id`` from every parent and attach it under ``new_parent``."""
        node = self.get(node_id)
        self.get(new_parent)
        if node_id == new_parent:
            raise InvalidEdgeError(f"Cannot move node {node_id} under itself", node_id=node_id)
        for parent in list(node.parents):
            self.unlink(parent, node_id)
        self.link(new_parent, node_id)

    def reorder(self, node_id: NodeId, parent: NodeId, delta: int) -> int:
        """
        Shift a child ``delta`` places within its parent's children.

        Negative deltas move toward the front. The position is clamped to
        the list bounds.

        Returns:
            The new position
        """
        children = self.get(parent).children
        self.get(node_id)
        if node_id not in children:
            raise InvalidEdgeError(
                f"Node {node_id} is not a child of {parent}",
                parent=parent,
                child=node_id
            )
        old_position = children.index(node_id)
        new_position = max(0, min(len(children) - 1, old_position + delta))
        children.pop(old_position)
        children.insert(new_position, node_id)
        return new_position

    # =========================================================================
    # REMOVAL
    # =========================================================================

    def remove(self, node_id: NodeId, cascade: bool = True) -> RemovalResult:
        """
        Tombstone a node.

        With ``cascade`` every descendant reachable only through ``node_id``
        is tombstoned as well. A descendant that can still be reached from a
        node outside the removed subtree survives and merely loses its edges
        to removed nodes. Without ``cascade`` only the node itself goes and
        its children lose that parent (parentless ones become roots).

        Returns:
            RemovalResult listing removed and detached ids
        """
        self.get(node_id)
        if cascade:
            doomed = self._exclusive_subtree(node_id)
        else:
            doomed = {node_id}

        result = RemovalResult(removed=[node_id] + sorted(doomed - {node_id}))
        detached: Set[NodeId] = set()

        for victim in result.removed:
            node = self.nodes[victim]
            for parent in node.parents:
                if parent not in doomed:
                    self.nodes[parent].children.remove(victim)
            for child in node.children:
                if child not in doomed:
                    self.nodes[child].parents.remove(victim)
                    detached.add(child)

        for victim in result.removed:
            node = self.nodes[victim]
            if node.alias is not None:
                del self.alias_index[node.alias]
            if node.is_date:
                del self.date_index[node.date]
            self.nodes[victim] = None

        result.detached = sorted(detached)
        logger.debug(f"Removed {len(result.removed)} node(s) starting at {node_id}")
        return result

    def _exclusive_subtree(self, node_id: NodeId) -> Set[NodeId]:
        """Nodes that stop being reachable once ``node_id`` is gone."""
        subtree = self.descendants(node_id)
        # Descendants with a parent outside the subtree anchor survivors
        survivors: Set[NodeId] = set()
        queue = deque(
            child for child in subtree
            if any(p != node_id and p not in subtree for p in self.nodes[child].parents)
        )
        while queue:
            current = queue.popleft()
            if current in survivors:
                continue
            survivors.add(current)
            queue.extend(c for c in self.nodes[current].children if c in subtree)
        return (subtree - survivors) | {node_id}

    # =========================================================================
    # NODE STATE
    # =========================================================================

    def set_checked(self, node_id: NodeId, checked: bool) -> List[NodeId]:
        """
        Store the check flag on a node and its non-pseudo descendants.

        Pseudo descendants keep their flag but their subtrees are still
        visited. Returns the ids whose stored flag was written.
        """
        self.get(node_id)
        touched: List[NodeId] = []
        seen: Set[NodeId] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            node = self.nodes[current]
            if current == node_id or not node.is_pseudo:
                node.checked = checked
                touched.append(current)
            stack.extend(reversed(node.children))
        return touched

    def archive(self, node_id: NodeId, archived: bool = True) -> None:
        self.get(node_id).archived = archived

    def rename(self, node_id: NodeId, message: str) -> None:
        self.get(node_id).message = message

    def set_alias(self, node_id: NodeId, alias: Optional[str], force: bool = False) -> None:
        """
        Bind an alias to a node, replacing any alias it had.

        An empty or None alias clears the binding.

        Raises:
            DuplicateAliasError: If another live node holds the alias
            InvalidIdentifierError: If the alias is numeric, or is a date
                keyword and ``force`` is not set
        """
        node = self.get(node_id)
        if not alias:
            self.clear_alias(node_id)
            return

        if alias.isdigit():
            raise InvalidIdentifierError(
                f"Alias '{alias}' would shadow a node index",
                alias=alias
            )
        if not force and is_date_keyword(alias):
            raise InvalidIdentifierError(
                f"Alias '{alias}' collides with a date keyword",
                alias=alias
            )
        holder = self.alias_index.get(alias)
        if holder is not None and holder != node_id:
            raise DuplicateAliasError(
                f"Alias '{alias}' is already bound to node {holder}",
                alias=alias,
                node_id=holder
            )

        if node.alias is not None:
            del self.alias_index[node.alias]
        node.alias = alias
        self.alias_index[alias] = node_id

    def clear_alias(self, node_id: NodeId) -> Optional[str]:
        """Remove a node's alias, returning the alias it had."""
        node = self.get(node_id)
        previous = node.alias
        if previous is not None:
            del self.alias_index[previous]
            node.alias = None
        return previous

    # =========================================================================
    # COPYING
    # =========================================================================

    def copy(self, source: NodeId, target: NodeId, recursive: bool = False) -> NodeId:
        """
        Copy a node (and optionally its subtree) under ``target``.

        Copies carry kind, message and check state. A copied date node
        becomes a normal node since its date is already taken. Multi-parent
        edges inside a recursively copied subtree are kept.

        Returns:
            Id of the copy of ``source``
        """
        self.get(source)
        self.get(target)

        order = [source] + (self.preorder(source) if recursive else [])
        new_ids: Dict[NodeId, NodeId] = {}
        for old_id in order:
            original = self.nodes[old_id]
            clone = original.copy_content()
            if clone.is_date:
                clone.kind = NodeKind.NORMAL
                clone.date = None
            new_ids[old_id] = len(self.nodes)
            self.nodes.append(clone)

        for old_id in order:
            for child in self.nodes[old_id].children:
                if child in new_ids:
                    self.nodes[new_ids[old_id]].children.append(new_ids[child])
                    self.nodes[new_ids[child]].parents.append(new_ids[old_id])

        self.link(target, new_ids[source])
        return new_ids[source]

    def preorder(self, root: NodeId) -> List[NodeId]:
        """Descendants of ``root`` in depth-first first-visit order."""
        order: List[NodeId] = []
        seen = {root}
        stack = list(reversed(self.nodes[root].children))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            order.append(current)
            stack.extend(reversed(self.nodes[current].children))
        return order

    # =========================================================================
    # COMPACTION
    # =========================================================================

    def compact(self) -> Dict[NodeId, NodeId]:
        """
        Renumber live nodes densely, in ascending old id order.

        A fresh table and fresh indexes are built first and swapped in only
        once complete.

        Returns:
            Mapping of old id -> new id for every live node
        """
        mapping: Dict[NodeId, NodeId] = {}
        for new_id, (old_id, _) in enumerate(self.items()):
            mapping[old_id] = new_id

        new_nodes: List[Optional[Node]] = []
        new_aliases: Dict[str, NodeId] = {}
        new_dates: Dict[date, NodeId] = {}
        for old_id, node in self.items():
            new_id = mapping[old_id]
            rewritten = Node(
                message=node.message,
                kind=node.kind,
                date=node.date,
                checked=node.checked,
                archived=node.archived,
                parents=[mapping[p] for p in node.parents if p in mapping],
                children=[mapping[c] for c in node.children if c in mapping],
                alias=node.alias,
            )
            new_nodes.append(rewritten)
            if node.alias is not None:
                new_aliases[node.alias] = new_id
            if node.is_date:
                new_dates[node.date] = new_id

        reclaimed = len(self.nodes) - len(new_nodes)
        self.nodes = new_nodes
        self.alias_index = new_aliases
        self.date_index = new_dates
        logger.debug(f"Compacted graph, reclaimed {reclaimed} slot(s)")
        return mapping

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict:
        """Serialize the full table, tombstones included."""
        return {
            "nodes": [node.to_dict() if node is not None else None for node in self.nodes],
            "aliases": dict(sorted(self.alias_index.items())),
            "dates": {day.isoformat(): node_id for day, node_id in sorted(self.date_index.items())},
        }

    @classmethod
    def from_dict(cls, data: Dict) -> Graph:
        """
        Rebuild a graph from ``to_dict`` output and validate it.

        Raises:
            CorruptionError: If the data is malformed or violates a graph
                invariant
        """
        if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
            raise CorruptionError("Graph data must hold a 'nodes' list")

        graph = cls()
        graph.nodes = [
            Node.from_dict(record) if record is not None else None
            for record in data["nodes"]
        ]
        try:
            graph.alias_index = {str(k): int(v) for k, v in data.get("aliases", {}).items()}
            graph.date_index = {
                date.fromisoformat(k): int(v) for k, v in data.get("dates", {}).items()
            }
        except (AttributeError, TypeError, ValueError) as e:
            raise CorruptionError(f"Invalid index data: {e}") from e
        graph.validate()
        return graph

    def validate(self) -> None:
        """
        Check every structural invariant.

        Raises:
            CorruptionError: Naming the first violation found
        """
        for node_id, node in self.items():
            if len(set(node.children)) != len(node.children):
                raise CorruptionError(f"Node {node_id} lists a child twice", node_id=node_id)
            if len(set(node.parents)) != len(node.parents):
                raise CorruptionError(f"Node {node_id} lists a parent twice", node_id=node_id)
            for child in node.children:
                if child == node_id:
                    raise CorruptionError(f"Node {node_id} is its own child", node_id=node_id)
                if not self.exists(child):
                    raise CorruptionError(
                        f"Node {node_id} has dangling child {child}",
                        node_id=node_id,
                        child=child
                    )
                if node_id not in self.nodes[child].parents:
                    raise CorruptionError(
                        f"Edge {node_id} -> {child} missing from child's parents",
                        node_id=node_id,
                        child=child
                    )
            for parent in node.parents:
                if not self.exists(parent) or node_id not in self.nodes[parent].children:
                    raise CorruptionError(
                        f"Node {node_id} has inconsistent parent {parent}",
                        node_id=node_id,
                        parent=parent
                    )

        expected_aliases = {n.alias: i for i, n in self.items() if n.alias is not None}
        if len(expected_aliases) != sum(1 for _, n in self.items() if n.alias is not None):
            raise CorruptionError("Alias bound to more than one node")
        if expected_aliases != self.alias_index:
            raise CorruptionError("Alias index does not match node aliases")

        expected_dates = {n.date: i for i, n in self.items() if n.is_date}
        if len(expected_dates) != sum(1 for _, n in self.items() if n.is_date):
            raise CorruptionError("More than one date node for a calendar date")
        if expected_dates != self.date_index:
            raise CorruptionError("Date index does not match date nodes")
