"""
Node CLI commands.

Provides commands for:
- Adding root, child, pseudo and date nodes
- Removing nodes
- Linking, unlinking, moving, copying and reordering
- Checking, archiving, renaming and aliasing
"""

from typing import TYPE_CHECKING

from tuesday.graph.types import NodeKind

from .shared import format_ref, join_ids, plural

if TYPE_CHECKING:
    from .session import GraphSession


# =============================================================================
# CLI COMMAND HANDLERS
# =============================================================================

def cmd_add(args, session: "GraphSession") -> int:
    """Handle 'tue add' command."""
    graph = session.graph
    kind = NodeKind.PSEUDO if args.pseudo else NodeKind.NORMAL

    if args.root and args.date:
        print("Error: A node cannot be both a date node and a root node")
        return 1

    if args.date is not None:
        session.forbid_in_blueprint("add a date node")
        day = session.resolver.resolve_date(args.date)
        message = args.message or ""
        node_id = graph.add_node(NodeKind.DATE, message, day=day)
        where = "dates"
    elif args.root:
        session.forbid_in_blueprint("add a root node")
        if not args.message:
            print("Error: Adding a root node requires a message")
            return 1
        node_id = graph.add_node(kind, args.message)
        where = "roots"
    else:
        if not args.message or args.parent is None:
            print("Error: Adding a child node requires a message and a parent")
            return 1
        parent = session.resolve(args.parent, prefer_date=args.assume_date)
        node_id = graph.add_node(kind, args.message, parent=parent)
        where = str(parent)

    session.mark_dirty()
    if session.display.show_connections:
        print(f"Created: {node_id} under {where}")
    return 0


def cmd_rm(args, session: "GraphSession") -> int:
    """Handle 'tue rm' command."""
    graph = session.graph
    targets = session.resolve_many(args.ids, prefer_date=args.assume_date)
    if session.in_blueprint and 0 in targets:
        session.forbid_in_blueprint("remove the blueprint root")

    removed = []
    for node_id in targets:
        # An earlier removal in this batch may already have taken it
        if not graph.exists(node_id):
            continue
        result = graph.remove(node_id, cascade=not args.keep_children)
        removed.extend(result.removed)
        if result.detached and session.display.show_connections:
            print(f"Detached: {join_ids(result.detached)}")

    session.mark_dirty()
    print(f"Removed {plural(len(removed), 'node')}: {join_ids(removed)}")
    return 0


def cmd_link(args, session: "GraphSession") -> int:
    """Handle 'tue link' command."""
    parent = session.resolve(args.parent, prefer_date=args.assume_date1)
    child = session.resolve(args.child, prefer_date=args.assume_date2)
    session.graph.link(parent, child)
    session.mark_dirty()
    if session.display.show_connections:
        print(f"Linked: {parent} -> {child}")
    return 0


def cmd_unlink(args, session: "GraphSession") -> int:
    """Handle 'tue unlink' command."""
    parent = session.resolve(args.parent, prefer_date=args.assume_date1)
    child = session.resolve(args.child, prefer_date=args.assume_date2)
    session.graph.unlink(parent, child)
    session.mark_dirty()
    if session.display.show_connections:
        print(f"Unlinked: {parent} -> {child}")
    return 0


def cmd_mv(args, session: "GraphSession") -> int:
    """Handle 'tue mv' command."""
    nodes = session.resolve_many(args.nodes)
    parent = session.resolve(args.parent)
    for node_id in nodes:
        session.graph.move(node_id, parent)
    session.mark_dirty()
    print(f"Moved {join_ids(nodes)} under {parent}")
    return 0


def cmd_cp(args, session: "GraphSession") -> int:
    """Handle 'tue cp' command."""
    sources = session.resolve_many(args.sources)
    parent = session.resolve(args.parent)
    copies = [session.graph.copy(source, parent, recursive=args.recursive) for source in sources]
    session.mark_dirty()
    print(f"Copied {join_ids(sources)} under {parent} as {join_ids(copies)}")
    return 0


def cmd_ord(args, session: "GraphSession") -> int:
    """Handle 'tue ord' command."""
    graph = session.graph
    node_id = session.resolve(args.node)
    if args.parent is not None:
        parent = session.resolve(args.parent)
    else:
        parents = graph.get(node_id).parents
        if len(parents) != 1:
            print(f"Error: Node {node_id} has {plural(len(parents), 'parent')}, use --parent")
            return 1
        parent = parents[0]

    delta = -args.count if args.direction == "up" else args.count
    position = graph.reorder(node_id, parent, delta)
    session.mark_dirty()
    print(f"Node {node_id} is now at position {position} under {parent}")
    return 0


def cmd_check(args, session: "GraphSession") -> int:
    """Handle 'tue check' and 'tue uncheck' commands."""
    checked = args.command == "check"
    session.forbid_in_blueprint("check or uncheck nodes")
    targets = session.resolve_many(args.ids, prefer_date=args.assume_date)
    for node_id in targets:
        session.graph.set_checked(node_id, checked)
    session.mark_dirty()
    print(f"{'Checked' if checked else 'Unchecked'}: {join_ids(targets)}")
    return 0


def cmd_arc(args, session: "GraphSession") -> int:
    """Handle 'tue arc' and 'tue unarc' commands."""
    archived = args.command == "arc"
    targets = session.resolve_many(args.ids, prefer_date=args.assume_date)
    for node_id in targets:
        session.graph.archive(node_id, archived)
    session.mark_dirty()
    print(f"{'Archived' if archived else 'Unarchived'}: {join_ids(targets)}")
    return 0


def cmd_rename(args, session: "GraphSession") -> int:
    """Handle 'tue rename' command."""
    node_id = session.resolve(args.id, prefer_date=args.assume_date)
    session.graph.rename(node_id, args.message)
    session.mark_dirty()
    print(f"Renamed {format_ref(session.graph, node_id)}")
    return 0


def cmd_alias(args, session: "GraphSession") -> int:
    """Handle 'tue alias' command."""
    session.forbid_in_blueprint("set aliases")
    node_id = session.resolve(args.id, prefer_date=args.assume_date)
    session.graph.set_alias(node_id, args.alias, force=args.force)
    session.mark_dirty()
    print(f"Aliased: {format_ref(session.graph, node_id)}")
    return 0


def cmd_unalias(args, session: "GraphSession") -> int:
    """Handle 'tue unalias' command."""
    session.forbid_in_blueprint("remove aliases")
    targets = session.resolve_many(args.ids, prefer_date=args.assume_date)
    for node_id in targets:
        session.graph.clear_alias(node_id)
    session.mark_dirty()
    print(f"Unaliased: {join_ids(targets)}")
    return 0


# =============================================================================
# CLI PARSER SETUP
# =============================================================================

def _add_assume_date(parser) -> None:
    parser.add_argument(
        "-D", "--assume-date",
        action="store_true",
        dest="assume_date",
        help="Interpret identifiers as dates first"
    )


def setup_node_parsers(subparsers) -> None:
    """
    Set up argparse subparsers for node commands.

    Args:
        subparsers: The subparsers object from argparse
    """
    add_parser = subparsers.add_parser("add", help="Add a node")
    add_parser.add_argument("message", nargs="?", help="This node's message")
    add_parser.add_argument("parent", nargs="?", help="Parent to attach the node under")
    add_parser.add_argument("-u", "--pseudo", action="store_true",
                            help="Pseudo node (does not count toward parent completion)")
    add_parser.add_argument("-r", "--root", action="store_true", help="Add as a root node")
    add_parser.add_argument("-d", "--date", help="Add a date node for this date expression")
    _add_assume_date(add_parser)

    rm_parser = subparsers.add_parser("rm", help="Remove nodes")
    rm_parser.add_argument("ids", nargs="+", help="Nodes to remove")
    rm_parser.add_argument("-k", "--keep-children", action="store_true",
                           help="Only remove the nodes themselves; children become roots")
    _add_assume_date(rm_parser)

    for name, help_text in (("link", "Add a parent -> child edge"),
                            ("unlink", "Remove a parent -> child edge")):
        edge_parser = subparsers.add_parser(name, help=help_text)
        edge_parser.add_argument("parent", help="Parent node")
        edge_parser.add_argument("child", help="Child node")
        edge_parser.add_argument("--assume-date1", action="store_true", dest="assume_date1",
                                 help="Interpret the parent as a date first")
        edge_parser.add_argument("--assume-date2", action="store_true", dest="assume_date2",
                                 help="Interpret the child as a date first")

    mv_parser = subparsers.add_parser("mv", help="Move nodes under a new parent")
    mv_parser.add_argument("nodes", nargs="+", help="Nodes to move")
    mv_parser.add_argument("parent", help="New parent")

    cp_parser = subparsers.add_parser("cp", help="Copy nodes under a parent")
    cp_parser.add_argument("sources", nargs="+", help="Nodes to copy")
    cp_parser.add_argument("parent", help="Parent for the copies")
    cp_parser.add_argument("-r", "--recursive", action="store_true", help="Copy whole subtrees")

    ord_parser = subparsers.add_parser("ord", help="Reorder a node among its siblings")
    ord_parser.add_argument("node", help="Node to move")
    ord_parser.add_argument("direction", choices=["up", "down"])
    ord_parser.add_argument("count", nargs="?", type=int, default=1, help="Places to move (default: 1)")
    ord_parser.add_argument("-p", "--parent", help="Parent whose children are reordered")

    for name, help_text in (("check", "Check nodes"), ("uncheck", "Uncheck nodes"),
                            ("arc", "Archive nodes"), ("unarc", "Unarchive nodes"),
                            ("unalias", "Remove node aliases")):
        state_parser = subparsers.add_parser(name, help=help_text)
        state_parser.add_argument("ids", nargs="+", help="Nodes")
        _add_assume_date(state_parser)

    rename_parser = subparsers.add_parser("rename", help="Change a node's message")
    rename_parser.add_argument("id", help="Node")
    rename_parser.add_argument("message", help="New message")
    _add_assume_date(rename_parser)

    alias_parser = subparsers.add_parser("alias", help="Give a node an alias")
    alias_parser.add_argument("id", help="Node")
    alias_parser.add_argument("alias", help="Alias text")
    alias_parser.add_argument("-f", "--force", action="store_true",
                              help="Allow aliases that look like date keywords")
    _add_assume_date(alias_parser)


NODE_HANDLERS = {
    "add": cmd_add,
    "rm": cmd_rm,
    "link": cmd_link,
    "unlink": cmd_unlink,
    "mv": cmd_mv,
    "cp": cmd_cp,
    "ord": cmd_ord,
    "check": cmd_check,
    "uncheck": cmd_check,
    "arc": cmd_arc,
    "unarc": cmd_arc,
    "rename": cmd_rename,
    "alias": cmd_alias,
    "unalias": cmd_unalias,
}
