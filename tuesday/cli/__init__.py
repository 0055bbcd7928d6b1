"""
CLI command modules for tuesday.

Each module provides ``setup_*`` functions that register argparse
subparsers and ``cmd_*`` handlers taking ``(args, session)`` and returning
an exit code. ``main`` ties them together.
"""
