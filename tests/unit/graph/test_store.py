"""
Tests for the Graph store.
"""

from datetime import date

import pytest

from tuesday.graph.errors import (
    CorruptionError,
    DuplicateAliasError,
    DuplicateDateError,
    InvalidEdgeError,
    InvalidIdentifierError,
    NotFoundError,
)
from tuesday.graph.store import Graph
from tuesday.graph.types import NodeKind

REFERENCE_DAY = date(2024, 3, 5)


def assert_symmetric(graph: Graph) -> None:
    for node_id, node in graph.items():
        for child in node.children:
            assert node_id in graph.nodes[child].parents
        for parent in node.parents:
            assert node_id in graph.nodes[parent].children


class TestAddNode:
    """Tests for node creation."""

    def test_root_has_no_parents(self, graph):
        """Adding without a parent creates a root."""
        node_id = graph.add_node(NodeKind.NORMAL, "college")
        assert node_id == 0
        assert graph.roots() == [0]
        assert graph.get(0).parents == []

    def test_child_is_appended_to_parent(self, graph):
        """Children keep insertion order."""
        root = graph.add_node(NodeKind.NORMAL, "root")
        first = graph.add_node(NodeKind.NORMAL, "a", parent=root)
        second = graph.add_node(NodeKind.PSEUDO, "b", parent=root)
        assert graph.get(root).children == [first, second]
        assert graph.get(second).parents == [root]
        assert graph.get(second).is_pseudo

    def test_missing_parent(self, graph):
        """A tombstoned or unknown parent is rejected and nothing is added."""
        with pytest.raises(NotFoundError):
            graph.add_node(NodeKind.NORMAL, "orphan", parent=5)
        assert graph.table_size == 0

    def test_date_node_registers_in_index(self, graph):
        """Date nodes are indexed and are not roots."""
        node_id = graph.add_node(NodeKind.DATE, "", day=REFERENCE_DAY)
        assert graph.find_date(REFERENCE_DAY) == node_id
        assert graph.roots() == []
        assert graph.date_nodes() == [node_id]

    def test_date_node_without_day(self, graph):
        """A date node needs a calendar day; nothing is added."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            graph.add_node(NodeKind.DATE, "standup")
        assert exc_info.value.context == {"node_message": "standup"}
        assert graph.table_size == 0

    def test_duplicate_date_rejected(self, graph):
        """A second date node for the same day fails."""
        graph.add_node(NodeKind.DATE, "", day=REFERENCE_DAY)
        with pytest.raises(DuplicateDateError):
            graph.add_node(NodeKind.DATE, "again", day=REFERENCE_DAY)
        assert len(graph) == 1

    def test_date_nodes_listed_in_calendar_order(self, graph):
        later = graph.add_node(NodeKind.DATE, "", day=date(2024, 5, 1))
        earlier = graph.add_node(NodeKind.DATE, "", day=date(2024, 1, 1))
        assert graph.date_nodes() == [earlier, later]

    def test_ids_are_never_reused_before_compaction(self, graph):
        """New nodes are appended after tombstones."""
        graph.add_node(NodeKind.NORMAL, "a")
        graph.remove(0)
        assert graph.add_node(NodeKind.NORMAL, "b") == 1
        assert graph.nodes[0] is None


class TestEdges:
    """Tests for link, unlink, move and reorder."""

    def test_link_updates_both_sides(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b")
        graph.link(a, b)
        assert graph.get(a).children == [b]
        assert graph.get(b).parents == [a]
        assert graph.roots() == [a]

    def test_self_link_rejected(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        with pytest.raises(InvalidEdgeError):
            graph.link(a, a)

    def test_duplicate_link_rejected(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        with pytest.raises(InvalidEdgeError):
            graph.link(a, b)
        assert graph.get(a).children == [b]

    def test_cycles_are_allowed(self, graph):
        """Longer cycles are legal."""
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        graph.link(b, a)
        assert graph.get(a).parents == [b]
        assert_symmetric(graph)

    def test_unlink_missing_edge(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b")
        with pytest.raises(InvalidEdgeError):
            graph.unlink(a, b)

    def test_unlink_makes_root(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        graph.unlink(a, b)
        assert graph.roots() == [a, b]

    def test_move_replaces_all_parents(self, college_graph):
        """mv detaches from every parent first."""
        college_graph.move(2, 0)
        assert college_graph.get(2).parents == [0]
        assert 2 not in college_graph.get(1).children
        assert 2 not in college_graph.get(4).children
        assert_symmetric(college_graph)

    def test_reorder_clamps(self, graph):
        root = graph.add_node(NodeKind.NORMAL, "root")
        a = graph.add_node(NodeKind.NORMAL, "a", parent=root)
        b = graph.add_node(NodeKind.NORMAL, "b", parent=root)
        c = graph.add_node(NodeKind.NORMAL, "c", parent=root)
        assert graph.reorder(c, root, -1) == 1
        assert graph.get(root).children == [a, c, b]
        assert graph.reorder(a, root, 10) == 2
        assert graph.get(root).children == [c, b, a]

    def test_reorder_requires_child(self, college_graph):
        with pytest.raises(InvalidEdgeError):
            college_graph.reorder(3, 0, 1)


class TestRemove:
    """Tests for removal and tombstones."""

    def test_scenario_shared_child_survives(self, college_graph):
        """rm 1: 1 and 3 go, 2 stays under the date node only."""
        result = college_graph.remove(1)

        assert result.removed == [1, 3]
        assert result.detached == [2]
        assert college_graph.nodes[1] is None
        assert college_graph.nodes[3] is None
        assert college_graph.get(2).parents == [4]
        assert college_graph.get(0).children == []
        assert_symmetric(college_graph)

    def test_exclusive_descendants_removed(self, graph):
        root = graph.add_node(NodeKind.NORMAL, "root")
        mid = graph.add_node(NodeKind.NORMAL, "mid", parent=root)
        leaf = graph.add_node(NodeKind.NORMAL, "leaf", parent=mid)
        result = graph.remove(root)
        assert set(result.removed) == {root, mid, leaf}
        assert len(graph) == 0

    def test_diamond_inside_subtree_removed(self, graph):
        """A node with two parents, both inside the subtree, goes too."""
        root = graph.add_node(NodeKind.NORMAL, "root")
        left = graph.add_node(NodeKind.NORMAL, "left", parent=root)
        right = graph.add_node(NodeKind.NORMAL, "right", parent=root)
        bottom = graph.add_node(NodeKind.NORMAL, "bottom", parent=left)
        graph.link(right, bottom)
        graph.remove(root)
        assert len(graph) == 0

    def test_survivor_keeps_its_subtree(self, graph):
        """Descendants of a survivor survive as well."""
        root = graph.add_node(NodeKind.NORMAL, "root")
        other = graph.add_node(NodeKind.NORMAL, "other")
        shared = graph.add_node(NodeKind.NORMAL, "shared", parent=root)
        below = graph.add_node(NodeKind.NORMAL, "below", parent=shared)
        graph.link(other, shared)
        graph.remove(root)
        assert graph.exists(shared)
        assert graph.exists(below)
        assert graph.get(shared).parents == [other]

    def test_cycle_below_removed_node(self, graph):
        """A cycle reachable only through the node is removed."""
        root = graph.add_node(NodeKind.NORMAL, "root")
        a = graph.add_node(NodeKind.NORMAL, "a", parent=root)
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        graph.link(b, a)
        graph.remove(root)
        assert len(graph) == 0

    def test_cycle_through_removed_node(self, graph):
        """A child that is also the node's parent is removed with it."""
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        graph.link(b, a)
        result = graph.remove(a)
        assert set(result.removed) == {a, b}

    def test_keep_children(self, college_graph):
        """Without cascade only the node goes; children may become roots."""
        result = college_graph.remove(1, cascade=False)
        assert result.removed == [1]
        assert result.detached == [2, 3]
        assert college_graph.get(3).parents == []
        assert 3 in college_graph.roots()
        assert college_graph.get(2).parents == [4]

    def test_indexes_cleared(self, graph):
        day = graph.add_node(NodeKind.DATE, "", day=REFERENCE_DAY)
        graph.set_alias(day, "planner")
        graph.remove(day)
        assert graph.alias_index == {}
        assert graph.date_index == {}
        # The date is free again
        graph.add_node(NodeKind.DATE, "", day=REFERENCE_DAY)

    def test_remove_missing(self, graph):
        with pytest.raises(NotFoundError):
            graph.remove(0)


class TestNodeState:
    """Tests for check, archive, rename and aliases."""

    def test_check_propagates_to_non_pseudo_descendants(self, graph):
        root = graph.add_node(NodeKind.NORMAL, "root")
        pseudo = graph.add_node(NodeKind.PSEUDO, "group", parent=root)
        inner = graph.add_node(NodeKind.NORMAL, "inner", parent=pseudo)
        touched = graph.set_checked(root, True)
        assert graph.get(root).checked
        assert not graph.get(pseudo).checked
        assert graph.get(inner).checked
        assert set(touched) == {root, inner}

    def test_check_is_cycle_safe(self, graph):
        a = graph.add_node(NodeKind.NORMAL, "a")
        b = graph.add_node(NodeKind.NORMAL, "b", parent=a)
        graph.link(b, a)
        graph.set_checked(a, True)
        assert graph.get(a).checked and graph.get(b).checked

    def test_archive_and_rename(self, college_graph):
        college_graph.archive(3)
        college_graph.rename(3, "final exam")
        assert college_graph.archived_nodes() == [3]
        assert college_graph.get(3).message == "final exam"
        college_graph.archive(3, False)
        assert college_graph.archived_nodes() == []

    def test_alias_roundtrip(self, college_graph):
        college_graph.set_alias(1, "thesis")
        assert college_graph.find_alias("thesis") == 1
        college_graph.set_alias(1, "paper")
        assert college_graph.alias_index == {"paper": 1}
        assert college_graph.clear_alias(1) == "paper"
        assert college_graph.alias_index == {}

    def test_alias_taken(self, college_graph):
        college_graph.set_alias(1, "thesis")
        with pytest.raises(DuplicateAliasError):
            college_graph.set_alias(2, "thesis")
        assert college_graph.get(2).alias is None

    def test_same_alias_on_same_node_is_fine(self, college_graph):
        college_graph.set_alias(1, "thesis")
        college_graph.set_alias(1, "thesis")
        assert college_graph.alias_index == {"thesis": 1}

    def test_empty_alias_clears(self, college_graph):
        college_graph.set_alias(1, "thesis")
        college_graph.set_alias(1, "")
        assert college_graph.get(1).alias is None

    def test_date_keyword_alias(self, college_graph):
        """Date keywords need force."""
        with pytest.raises(InvalidIdentifierError):
            college_graph.set_alias(1, "tomorrow")
        college_graph.set_alias(1, "tomorrow", force=True)
        assert college_graph.find_alias("tomorrow") == 1

    def test_numeric_alias_rejected(self, college_graph):
        with pytest.raises(InvalidIdentifierError):
            college_graph.set_alias(1, "42")


class TestCopy:
    """Tests for copying nodes."""

    def test_single_copy(self, college_graph):
        college_graph.set_checked(2, True)
        copy_id = college_graph.copy(2, 0)
        copy = college_graph.get(copy_id)
        assert copy.message == "draft"
        assert copy.checked
        assert copy.parents == [0]
        assert copy.children == []

    def test_recursive_copy_keeps_shape(self, college_graph):
        copy_id = college_graph.copy(1, 0, recursive=True)
        copy = college_graph.get(copy_id)
        assert [college_graph.get(c).message for c in copy.children] == ["draft", "exam"]
        assert_symmetric(college_graph)

    def test_date_source_becomes_normal(self, college_graph):
        copy_id = college_graph.copy(4, 0)
        assert college_graph.get(copy_id).kind is NodeKind.NORMAL
        assert len(college_graph.date_index) == 1


class TestCompact:
    """Tests for compaction."""

    def test_dense_renumbering(self, college_graph):
        college_graph.set_alias(2, "draft")
        college_graph.remove(3)
        college_graph.remove(1, cascade=False)
        mapping = college_graph.compact()

        assert mapping == {0: 0, 2: 1, 4: 2}
        assert college_graph.tombstone_count == 0
        assert college_graph.find_alias("draft") == 1
        assert college_graph.find_date(REFERENCE_DAY) == 2
        assert college_graph.get(1).parents == [2]
        assert college_graph.get(2).children == [1]
        assert_symmetric(college_graph)

    def test_needs_compaction(self, graph):
        for message in "abcd":
            graph.add_node(NodeKind.NORMAL, message)
        graph.remove(0)
        graph.remove(1)
        assert graph.tombstone_ratio() == 50.0
        assert not graph.needs_compaction(50)
        assert graph.needs_compaction(49)

    def test_empty_graph_never_needs_compaction(self, graph):
        assert not graph.needs_compaction(0)


class TestSerialization:
    """Tests for to_dict / from_dict and validation."""

    def test_roundtrip_with_tombstones(self, college_graph):
        college_graph.set_alias(1, "thesis")
        college_graph.remove(3)
        restored = Graph.from_dict(college_graph.to_dict())
        assert restored == college_graph
        assert restored.nodes[3] is None

    def test_dangling_child_is_corrupt(self, college_graph):
        data = college_graph.to_dict()
        data["nodes"][0]["children"].append(99)
        with pytest.raises(CorruptionError):
            Graph.from_dict(data)

    def test_asymmetric_edge_is_corrupt(self, college_graph):
        data = college_graph.to_dict()
        data["nodes"][2]["parents"] = [1]
        with pytest.raises(CorruptionError):
            Graph.from_dict(data)

    def test_stale_alias_is_corrupt(self, college_graph):
        data = college_graph.to_dict()
        data["aliases"] = {"ghost": 1}
        with pytest.raises(CorruptionError):
            Graph.from_dict(data)

    def test_missing_nodes_is_corrupt(self):
        with pytest.raises(CorruptionError):
            Graph.from_dict({"aliases": {}})
