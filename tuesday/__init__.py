"""
Tuesday - a graph-based personal task tracker.

Tasks form a multigraph: a task may sit under several parents, date nodes
act as day planners, and subtrees can be saved as blueprints and inserted
elsewhere. The engine lives in ``tuesday.graph``; ``tuesday.cli`` is the
``tue`` command.
"""

__version__ = "0.1.0"
