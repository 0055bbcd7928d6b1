"""
Core types for the tuesday node graph.

Provides the Node dataclass stored in the graph's sparse table, the node
kind tag, aggregated check states, raffle selection filters, and the result
object returned by node removal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Any, List, Optional, TypedDict

from .errors import CorruptionError, TuesdayError


NodeId = int


# =============================================================================
# ENUMS
# =============================================================================


class NodeKind(Enum):
    """
    Tag describing how a node takes part in completion accounting.

    NORMAL: an ordinary task.
    PSEUDO: an organizational container; excluded from its parents'
        completion counts, but its own subtree is still shown.
    DATE: a planner entry anchored to one calendar date. At most one date
        node exists per calendar date.
    """
    NORMAL = "normal"
    PSEUDO = "pseudo"
    DATE = "date"


class CheckState(Enum):
    """Effective (aggregated) completion state of a node."""
    NONE = "none"
    PARTIAL = "partial"
    CHECKED = "checked"


class Selection(Enum):
    """Raffle filter over the aggregated state of candidate children."""
    ALL = "all"
    CHECKED = "checked"
    UNCHECKED = "unchecked"

    def accepts(self, state: CheckState) -> bool:
        if self is Selection.ALL:
            return True
        if self is Selection.CHECKED:
            return state is CheckState.CHECKED
        return state is not CheckState.CHECKED


# =============================================================================
# TYPED DICT SCHEMAS
# =============================================================================


class NodeRecord(TypedDict, total=False):
    """Serialized form of a Node inside the graph file."""
    message: str
    kind: str               # "normal", "pseudo" or "date"
    date: str               # ISO date, only for kind == "date"
    checked: bool
    archived: bool
    parents: List[int]
    children: List[int]
    alias: str


# =============================================================================
# NODE
# =============================================================================


@dataclass
class Node:
    """
    One task in the graph.

    `parents` is kept as a duplicate-free list so serialization is stable;
    its order carries no meaning. `children` order is display order.
    """

    message: str
    kind: NodeKind = NodeKind.NORMAL
    date: Optional[date] = None
    checked: bool = False
    archived: bool = False
    parents: List[NodeId] = field(default_factory=list)
    children: List[NodeId] = field(default_factory=list)
    alias: Optional[str] = None

    def __post_init__(self):
        """Validate that the date payload matches the kind tag."""
        if self.kind is NodeKind.DATE and self.date is None:
            raise TuesdayError("Date node requires a calendar date", node_message=self.message)
        if self.kind is not NodeKind.DATE and self.date is not None:
            raise TuesdayError(
                f"Only date nodes carry a calendar date, got kind '{self.kind.value}'",
                node_message=self.message
            )

    @property
    def is_pseudo(self) -> bool:
        return self.kind is NodeKind.PSEUDO

    @property
    def is_date(self) -> bool:
        return self.kind is NodeKind.DATE

    @property
    def has_multiple_parents(self) -> bool:
        return len(self.parents) > 1

    def to_dict(self) -> Dict[str, Any]:
        """Serialize node to dictionary."""
        result: Dict[str, Any] = {
            "message": self.message,
            "kind": self.kind.value,
            "checked": self.checked,
            "archived": self.archived,
            "parents": list(self.parents),
            "children": list(self.children),
        }
        if self.date is not None:
            result["date"] = self.date.isoformat()
        if self.alias is not None:
            result["alias"] = self.alias
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Node:
        """
        Deserialize node from dictionary.

        Raises:
            CorruptionError: If the record is missing fields or holds
                values of the wrong type.
        """
        try:
            kind = NodeKind(data.get("kind", NodeKind.NORMAL.value))
            raw_date = data.get("date")
            return cls(
                message=str(data["message"]),
                kind=kind,
                date=date.fromisoformat(raw_date) if raw_date is not None else None,
                checked=bool(data.get("checked", False)),
                archived=bool(data.get("archived", False)),
                parents=[int(p) for p in data.get("parents", [])],
                children=[int(c) for c in data.get("children", [])],
                alias=data.get("alias"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise CorruptionError(f"Invalid node record: {e}", record=repr(data)) from e
        except TuesdayError as e:
            raise CorruptionError(e.message, record=repr(data)) from e

    def copy_content(self) -> Node:
        """Return a detached copy holding kind, message and check state only."""
        return Node(
            message=self.message,
            kind=self.kind,
            date=self.date,
            checked=self.checked,
        )


@dataclass
class RemovalResult:
    """
    Outcome of removing a node.

    Attributes:
        removed: Ids tombstoned by the removal, the target first
        detached: Surviving nodes that lost an edge to a removed node
    """

    removed: List[NodeId] = field(default_factory=list)
    detached: List[NodeId] = field(default_factory=list)

    def __contains__(self, node_id: NodeId) -> bool:
        return node_id in self.removed
