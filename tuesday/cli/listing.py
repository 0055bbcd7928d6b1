"""
Listing and inspection CLI commands.

Provides commands for:
- Tree listings (ls, lsa, lsd) and the alias table
- Node and graph statistics
- Raffling a child
- Manual compaction
- The month calendar
- Exporting the graph and printing the default configuration
"""

import calendar
import json
from datetime import date
from typing import TYPE_CHECKING, Optional

from tuesday.graph.config import DEFAULT_CONFIG_YAML
from tuesday.graph.raffle import pick
from tuesday.graph.stats import graph_stats, month_statistics, node_stats
from tuesday.graph.types import Selection
from tuesday.graph.walker import GraphWalker

from .shared import format_node, join_ids, plural, render_tree, state_icon, truncate

if TYPE_CHECKING:
    from .session import GraphSession


# =============================================================================
# CLI COMMAND HANDLERS
# =============================================================================

def cmd_ls(args, session: "GraphSession") -> int:
    """Handle 'tue ls' command."""
    graph = session.graph
    depth = 0 if args.recurse else args.depth
    walker = GraphWalker(graph).include_archived(args.all)

    if args.id is None:
        entries = walker.max_depth(depth)
        offset = 1
    else:
        target = session.resolve(args.id, prefer_date=args.assume_date)
        # The target itself is level one, its children are shown `depth` deep
        entries = walker.starting_from(target).max_depth(depth + 1 if depth else 0)
        offset = 0

    lines = render_tree(graph, entries, session.aggregator(), session.display, offset=offset)
    if not lines:
        print("No nodes found.")
        return 0
    print("\n".join(lines))
    return 0


def cmd_lsa(args, session: "GraphSession") -> int:
    """Handle 'tue lsa' command."""
    archived = session.graph.archived_nodes()
    if not archived:
        print("No archived nodes.")
        return 0
    entries = GraphWalker(session.graph).starting_from(*archived).max_depth(1)
    print("\n".join(render_tree(session.graph, entries, session.aggregator(), session.display, offset=1)))
    return 0


def cmd_lsd(args, session: "GraphSession") -> int:
    """Handle 'tue lsd' command."""
    dates = session.graph.date_nodes()
    if not dates:
        print("No date nodes.")
        return 0
    entries = GraphWalker(session.graph).starting_from(*dates).max_depth(args.depth)
    print("\n".join(render_tree(session.graph, entries, session.aggregator(), session.display, offset=1)))
    return 0


def cmd_aliases(args, session: "GraphSession") -> int:
    """Handle 'tue aliases' command."""
    graph = session.graph
    if not graph.alias_index:
        print("No aliases.")
        return 0
    width = max(len(alias) for alias in graph.alias_index)
    for alias, node_id in sorted(graph.alias_index.items()):
        print(f"{alias:<{width}}  {node_id:>4}  {truncate(graph.nodes[node_id].message, 50)}")
    return 0


def cmd_stats(args, session: "GraphSession") -> int:
    """Handle 'tue stats' command."""
    graph = session.graph
    if args.id is None:
        stats = graph_stats(graph)
        lines = [
            "=" * 40,
            "GRAPH STATISTICS",
            "=" * 40,
            f"Live nodes:  {stats.live_nodes}",
            f"Roots:       {stats.roots}",
            f"Date nodes:  {stats.date_nodes}",
            f"Aliases:     {stats.aliases}",
            f"Archived:    {stats.archived}",
            f"Checked:     {stats.checked}",
            f"Tombstones:  {stats.tombstones} of {stats.table_size} slots ({stats.tombstone_ratio:.1f}%)",
        ]
        print("\n".join(lines))
        return 0

    node_id = session.resolve(args.id, prefer_date=args.assume_date)
    stats = node_stats(graph, node_id, include_archived=session.config.graph.aggregate_archived)
    lines = [
        "=" * 40,
        f"NODE: {node_id}",
        "=" * 40,
        f"Message:     {stats.message}",
        f"Kind:        {stats.kind}",
        f"State:       {state_icon(stats.state, session.display)} {stats.state.value}",
        f"Parents:     {join_ids(stats.parents)}",
        f"Children:    {join_ids(stats.children)}",
        f"Completed:   {stats.checked_children}/{stats.counted_children} counted children",
        f"Descendants: {stats.descendants}",
    ]
    print("\n".join(lines))
    return 0


def cmd_rand(args, session: "GraphSession") -> int:
    """Handle 'tue rand' command."""
    parent = session.resolve(args.id, prefer_date=args.assume_date)
    if args.checked:
        selection = Selection.CHECKED
    elif args.unchecked:
        selection = Selection.UNCHECKED
    else:
        selection = Selection.ALL
    chosen = pick(
        session.graph,
        parent,
        selection,
        include_archived=session.config.graph.aggregate_archived
    )
    print(format_node(session.graph, chosen, session.aggregator(), session.display))
    return 0


def cmd_clean(args, session: "GraphSession") -> int:
    """Handle 'tue clean' command."""
    session.forbid_in_blueprint("compact")
    before = session.graph.table_size
    session.graph.compact()
    session.mark_dirty()
    print(f"Compacted: {plural(before - session.graph.table_size, 'slot')} reclaimed")
    return 0


def cmd_cal(args, session: "GraphSession") -> int:
    """Handle 'tue cal' command."""
    session.forbid_in_blueprint("show the calendar")
    day = session.resolver.resolve_date(args.date) if args.date else date.today()
    print(format_calendar(session, day.year, day.month))
    return 0


def format_calendar(session: "GraphSession", year: int, month: int) -> str:
    """Month grid followed by one completion line per planned day."""
    days = month_statistics(
        session.graph, year, month,
        include_archived=session.config.graph.aggregate_archived
    )
    lines = [calendar.TextCalendar().formatmonth(year, month).rstrip("\n"), ""]
    if not days:
        lines.append("No date nodes this month.")
    for day, stats in sorted(days.items()):
        percent = 100.0 * stats.ratio
        lines.append(
            f"{day.strftime(session.display.date_format)}  "
            f"{stats.checked}/{stats.total} done ({percent:.0f}%)  ({stats.node_id})"
        )
    return "\n".join(lines)


def cmd_export(args, session: "GraphSession") -> int:
    """Handle 'tue export' command."""
    print(json.dumps(session.graph.to_dict(), indent=2, sort_keys=True))
    return 0


def cmd_new_cfg(args, session: Optional["GraphSession"] = None) -> int:
    """Handle 'tue new-cfg' command."""
    print(DEFAULT_CONFIG_YAML, end="")
    return 0


# =============================================================================
# CLI PARSER SETUP
# =============================================================================

def setup_listing_parsers(subparsers) -> None:
    """
    Set up argparse subparsers for listing commands.

    Args:
        subparsers: The subparsers object from argparse
    """
    ls_parser = subparsers.add_parser("ls", help="List nodes as a tree")
    ls_parser.add_argument("id", nargs="?", help="Node to list (default: all roots)")
    ls_parser.add_argument("-a", "--all", action="store_true", help="Show archived nodes")
    ls_parser.add_argument("-d", "--depth", type=int, default=1,
                           help="Levels of children to show (default: 1)")
    ls_parser.add_argument("-r", "--recurse", action="store_true", help="Show all levels")
    ls_parser.add_argument("-D", "--assume-date", action="store_true", dest="assume_date")

    subparsers.add_parser("lsa", help="List archived nodes")

    lsd_parser = subparsers.add_parser("lsd", help="List date nodes")
    lsd_parser.add_argument("-d", "--depth", type=int, default=1,
                            help="Levels to show, the dates included (default: 1)")

    subparsers.add_parser("aliases", help="List aliases")

    stats_parser = subparsers.add_parser("stats", help="Show graph or node statistics")
    stats_parser.add_argument("id", nargs="?", help="Node (default: whole graph)")
    stats_parser.add_argument("-D", "--assume-date", action="store_true", dest="assume_date")

    rand_parser = subparsers.add_parser("rand", help="Pick a random child of a node")
    rand_parser.add_argument("id", help="Parent node")
    rand_group = rand_parser.add_mutually_exclusive_group()
    rand_group.add_argument("-c", "--checked", action="store_true", help="Only checked children")
    rand_group.add_argument("-u", "--unchecked", action="store_true", help="Only unchecked children")
    rand_parser.add_argument("-D", "--assume-date", action="store_true", dest="assume_date")

    subparsers.add_parser("clean", help="Compact the node table")

    cal_parser = subparsers.add_parser("cal", help="Show a month calendar")
    cal_parser.add_argument("date", nargs="?", help="Any date in the month (default: today)")

    subparsers.add_parser("export", help="Print the graph as JSON")
    subparsers.add_parser("new-cfg", help="Print the default configuration")


LISTING_HANDLERS = {
    "ls": cmd_ls,
    "lsa": cmd_lsa,
    "lsd": cmd_lsd,
    "aliases": cmd_aliases,
    "stats": cmd_stats,
    "rand": cmd_rand,
    "clean": cmd_clean,
    "cal": cmd_cal,
    "export": cmd_export,
    "new-cfg": cmd_new_cfg,
}
