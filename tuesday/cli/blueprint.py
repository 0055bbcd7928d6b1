"""
Blueprint CLI commands.

Provides the ``tue bp`` subcommands:
- save: extract a subtree into a blueprint (removing it unless preserved)
- ls, show, export, rm: inspect and manage stored blueprints
- ins: insert a blueprint under a node or as a new root
- edit: run an ordinary graph command against a blueprint
"""

import argparse
import logging
from pathlib import Path

from tuesday.graph.blueprint import BLUEPRINT_ROOT, extract, insert
from tuesday.graph.blueprint_store import BlueprintStore, write_blueprint
from tuesday.graph.errors import BlueprintError
from tuesday.graph.walker import GraphWalker

from .session import GraphSession
from .shared import plural, render_tree

logger = logging.getLogger(__name__)

# Commands that have no meaning against a blueprint
FORBIDDEN_IN_BLUEPRINT = {"bp", "clean", "cal", "lsd", "new-cfg", "export"}


# =============================================================================
# CLI COMMAND HANDLERS
# =============================================================================

def cmd_bp_save(args, session: GraphSession) -> int:
    """Handle 'tue bp save' command."""
    node_id = session.resolve(args.id, prefer_date=args.assume_date)
    store = session.blueprints
    target = Path.cwd() / f"{args.name}.yaml" if args.file else store.path_for(args.name)
    if target.exists() and not args.overwrite:
        raise BlueprintError(f"Blueprint '{args.name}' already exists (use --overwrite)", name=args.name)

    blueprint = extract(session.graph, node_id, args.name, preserve=True, author=args.author)
    if args.file:
        write_blueprint(target, blueprint)
    else:
        target = store.save(blueprint, overwrite=args.overwrite)

    # Only drop the subtree once the blueprint is safely on disk
    if not args.preserve:
        session.graph.remove(node_id, cascade=True)
        session.mark_dirty()

    print(f"Saved blueprint '{args.name}' ({plural(len(blueprint), 'node')}) to {target}")
    return 0


def cmd_bp_ls(args, session: GraphSession) -> int:
    """Handle 'tue bp ls' command."""
    names = session.blueprints.list_names()
    if not names:
        print("No blueprints found.")
        return 0
    for name in names:
        print(name)
    return 0


def cmd_bp_show(args, session: GraphSession) -> int:
    """Handle 'tue bp show' command."""
    blueprint = session.blueprints.load(args.name)
    header = f"Blueprint: {blueprint.name}"
    if blueprint.author:
        header += f" (by {blueprint.author})"
    print(header)

    preview = GraphSession(blueprint.to_graph(), config=session.config, blueprint=blueprint)
    entries = GraphWalker(preview.graph).starting_from(BLUEPRINT_ROOT).include_archived()
    print("\n".join(render_tree(preview.graph, entries, preview.aggregator(), preview.display)))
    return 0


def cmd_bp_ins(args, session: GraphSession) -> int:
    """Handle 'tue bp ins' command."""
    if args.root == (args.parent is not None):
        print("Error: Give either a parent or --root")
        return 1
    blueprint = session.blueprints.load(args.name)
    parent = None if args.root else session.resolve(args.parent, prefer_date=args.assume_date)
    root_id = insert(session.graph, blueprint, parent=parent, message=args.message)
    session.mark_dirty()
    where = "roots" if parent is None else str(parent)
    print(f"Inserted blueprint '{blueprint.name}' as {root_id} under {where}")
    return 0


def cmd_bp_rm(args, session: GraphSession) -> int:
    """Handle 'tue bp rm' command."""
    session.blueprints.remove(args.name)
    print(f"Removed blueprint '{args.name}'")
    return 0


def cmd_bp_export(args, session: GraphSession) -> int:
    """Handle 'tue bp export' command."""
    print(session.blueprints.export(args.name), end="")
    return 0


def cmd_bp_edit(args, session: GraphSession) -> int:
    """
    Handle 'tue bp edit' command.

    The remaining arguments are parsed as an ordinary command and run
    against a graph built from the blueprint; if the command changes it, the
    blueprint file is rewritten.
    """
    from .main import build_parser, dispatch

    if not args.subcommand:
        print("Error: No command given to run on the blueprint")
        return 1

    store: BlueprintStore = session.blueprints
    path = store.locate(args.name)
    blueprint = store.load(args.name)

    inner = build_parser().parse_args(args.subcommand)
    if inner.command in FORBIDDEN_IN_BLUEPRINT:
        raise BlueprintError(f"Command '{inner.command}' cannot run inside a blueprint", command=inner.command)

    scoped = GraphSession(
        blueprint.to_graph(),
        config=session.config,
        blueprint=blueprint,
        blueprint_path=path,
    )
    result = dispatch(inner, scoped)
    if result == 0:
        scoped.save()
        logger.debug(f"Edited blueprint '{blueprint.name}' at {path}")
    return result


# =============================================================================
# CLI PARSER SETUP
# =============================================================================

def setup_blueprint_parser(subparsers) -> None:
    """
    Set up argparse subparsers for blueprint commands.

    Args:
        subparsers: The subparsers object from argparse
    """
    bp_parser = subparsers.add_parser("bp", help="Blueprint operations")
    bp_subparsers = bp_parser.add_subparsers(dest="bp_command", help="Blueprint subcommands")

    save_parser = bp_subparsers.add_parser("save", help="Save a subtree as a blueprint")
    save_parser.add_argument("id", help="Subtree root")
    save_parser.add_argument("name", help="Blueprint name")
    save_parser.add_argument("-a", "--author", help="Blueprint author")
    save_parser.add_argument("-f", "--file", action="store_true",
                             help="Write <name>.yaml in the current directory instead of the store")
    save_parser.add_argument("-p", "--preserve", action="store_true",
                             help="Keep the subtree in the graph")
    save_parser.add_argument("-o", "--overwrite", action="store_true",
                             help="Replace an existing blueprint")
    save_parser.add_argument("-D", "--assume-date", action="store_true", dest="assume_date")

    bp_subparsers.add_parser("ls", help="List stored blueprints")

    for name, help_text in (("show", "Show a blueprint as a tree"),
                            ("rm", "Delete a stored blueprint"),
                            ("export", "Print a blueprint's YAML")):
        name_parser = bp_subparsers.add_parser(name, help=help_text)
        name_parser.add_argument("name", help="Blueprint name or file path")

    ins_parser = bp_subparsers.add_parser("ins", help="Insert a blueprint")
    ins_parser.add_argument("name", help="Blueprint name or file path")
    ins_parser.add_argument("parent", nargs="?", help="Node to insert under")
    ins_parser.add_argument("-r", "--root", action="store_true", help="Insert as a new root")
    ins_parser.add_argument("-m", "--message", help="Replacement message for the inserted root")
    ins_parser.add_argument("-D", "--assume-date", action="store_true", dest="assume_date")

    edit_parser = bp_subparsers.add_parser("edit", help="Run a graph command on a blueprint")
    edit_parser.add_argument("name", help="Blueprint name or file path")
    edit_parser.add_argument("subcommand", nargs=argparse.REMAINDER,
                             help="Command to run, e.g. add 'buy milk' 0")


def handle_blueprint_command(args, session: GraphSession) -> int:
    """
    Route bp subcommand to appropriate handler.

    Args:
        args: Parsed command-line arguments
        session: Graph session in scope

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not hasattr(args, 'bp_command') or args.bp_command is None:
        print("Error: No bp subcommand specified. Use 'tue bp --help' for usage.")
        return 1

    command_handlers = {
        "save": cmd_bp_save,
        "ls": cmd_bp_ls,
        "show": cmd_bp_show,
        "ins": cmd_bp_ins,
        "rm": cmd_bp_rm,
        "export": cmd_bp_export,
        "edit": cmd_bp_edit,
    }

    handler = command_handlers.get(args.bp_command)
    if handler:
        return handler(args, session)

    print(f"Error: Unknown bp subcommand: {args.bp_command}")
    return 1
