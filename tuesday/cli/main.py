"""
Command-line entry point for tuesday (``tue``).

A thin dispatcher: load configuration and the graph, route the command to
its handler module, and write the graph back if the command changed it.
Engine errors are reported on stderr with a non-zero exit code and nothing
is saved.
"""

import argparse
import difflib
import logging
import os
import sys
from typing import List, Optional

from tuesday import __version__
from tuesday.graph.config import config_path_from_env, load_config
from tuesday.graph.errors import TuesdayError
from tuesday.graph.persistence import GraphFile, default_graph_path

from .blueprint import handle_blueprint_command, setup_blueprint_parser
from .listing import LISTING_HANDLERS, cmd_new_cfg, setup_listing_parsers
from .node import NODE_HANDLERS, setup_node_parsers
from .session import GraphSession

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "TUESDAY_LOG_LEVEL"

COMMAND_HANDLERS = {
    **NODE_HANDLERS,
    **LISTING_HANDLERS,
    "bp": handle_blueprint_command,
}

VALID_COMMANDS = sorted(COMMAND_HANDLERS)


def suggest_command(invalid_cmd: str, valid_commands: List[str] = VALID_COMMANDS) -> List[str]:
    """Up to 3 known commands close to what the user typed."""
    return difflib.get_close_matches(invalid_cmd.lower(), valid_commands, n=3, cutoff=0.5)


def print_command_suggestion(invalid_cmd: str) -> None:
    """Print helpful suggestions when an invalid command is used."""
    suggestions = suggest_command(invalid_cmd)

    print(f"Error: '{invalid_cmd}' is not a valid command.", file=sys.stderr)
    if suggestions:
        print("\nDid you mean:", file=sys.stderr)
        for suggestion in suggestions:
            print(f"  - {suggestion}", file=sys.stderr)
    print("\nRun 'tue --help' for available commands.", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tue",
        description="Graph-based personal task tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    location = parser.add_mutually_exclusive_group()
    location.add_argument("-l", "--local", metavar="PATH", help="Use the graph file at PATH")
    location.add_argument("-g", "--global", action="store_true", dest="use_global",
                          help="Use the global graph file even if a local one exists")
    parser.add_argument("-c", "--config", metavar="PATH", help="Configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    setup_node_parsers(subparsers)
    setup_listing_parsers(subparsers)
    setup_blueprint_parser(subparsers)
    return parser


def configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def dispatch(args, session: GraphSession) -> int:
    """Run one parsed command against a session."""
    handler = COMMAND_HANDLERS.get(args.command)
    if handler is None:
        print(f"Error: Unknown command: {args.command}")
        return 1
    return handler(args, session)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()
    parser = build_parser()

    if argv and not argv[0].startswith('-') and argv[0] not in VALID_COMMANDS:
        print_command_suggestion(argv[0])
        return 2

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    if args.command == "new-cfg":
        return cmd_new_cfg(args)

    try:
        config = load_config(config_path_from_env(args.config))
        graph_file = GraphFile(default_graph_path(local=args.local, use_global=args.use_global))
        logger.debug(f"Using graph file {graph_file.path}")
        session = GraphSession(graph_file.load(), config=config, graph_file=graph_file)

        result = dispatch(args, session)
        if result == 0:
            session.save()
        return result
    except TuesdayError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        logger.debug(f"{e.__class__.__name__}: {e.to_dict()}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
