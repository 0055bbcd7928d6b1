"""
Tests for graph, node and month statistics.
"""

from datetime import date

from tuesday.graph.stats import DayStats, graph_stats, month_statistics, node_stats
from tuesday.graph.types import CheckState, NodeKind


def test_graph_stats(college_graph):
    college_graph.set_alias(1, "thesis")
    college_graph.archive(3)
    college_graph.set_checked(2, True)
    college_graph.remove(3)

    stats = graph_stats(college_graph)
    assert stats.live_nodes == 4
    assert stats.tombstones == 1
    assert stats.table_size == 5
    assert stats.roots == 1
    assert stats.date_nodes == 1
    assert stats.aliases == 1
    assert stats.archived == 0
    assert stats.checked == 1
    assert stats.tombstone_ratio == 20.0


def test_empty_graph_stats(graph):
    stats = graph_stats(graph)
    assert stats.live_nodes == 0
    assert stats.tombstone_ratio == 0.0


def test_node_stats(college_graph):
    college_graph.set_checked(2, True)
    stats = node_stats(college_graph, 1)
    assert stats.message == "thesis"
    assert stats.kind == "normal"
    assert stats.state is CheckState.PARTIAL
    assert stats.parents == [0]
    assert stats.children == [2, 3]
    assert stats.descendants == 2
    assert stats.checked_children == 1
    assert stats.counted_children == 2


def test_node_stats_skips_pseudo_children(graph):
    root = graph.add_node(NodeKind.NORMAL, "root")
    graph.add_node(NodeKind.PSEUDO, "note", parent=root)
    graph.add_node(NodeKind.NORMAL, "task", parent=root)
    stats = node_stats(graph, root)
    assert stats.counted_children == 1


class TestMonthStatistics:

    def test_only_days_with_date_nodes(self, college_graph):
        days = month_statistics(college_graph, 2024, 3)
        assert list(days) == [date(2024, 3, 5)]
        assert days[date(2024, 3, 5)] == DayStats(node_id=4, checked=0, total=1)

    def test_counts_checked_children(self, college_graph):
        day = college_graph.find_date(date(2024, 3, 5))
        college_graph.add_node(NodeKind.NORMAL, "laundry", parent=day)
        college_graph.add_node(NodeKind.PSEUDO, "idea", parent=day)
        college_graph.set_checked(2, True)
        stats = month_statistics(college_graph, 2024, 3)[date(2024, 3, 5)]
        assert (stats.checked, stats.total) == (1, 2)
        assert stats.ratio == 0.5

    def test_other_months_excluded(self, college_graph):
        college_graph.add_node(NodeKind.DATE, "", day=date(2024, 4, 1))
        assert list(month_statistics(college_graph, 2024, 4)) == [date(2024, 4, 1)]
        assert month_statistics(college_graph, 2024, 2) == {}

    def test_empty_day_ratio(self):
        assert DayStats(node_id=0).ratio == 0.0
