"""
Shared formatters for tuesday CLI commands.

Provides node line formatting, tree rendering from the traversal feed, and
small text helpers used across the command modules.
"""

from typing import Iterable, List, Optional

from tuesday.graph.aggregator import CompletionAggregator
from tuesday.graph.config import DisplayConfig
from tuesday.graph.store import Graph
from tuesday.graph.types import CheckState, NodeId
from tuesday.graph.walker import WalkEntry


# =============================================================================
# NODE FORMATTING
# =============================================================================

def format_ref(graph: Graph, node_id: NodeId) -> str:
    """``(3)`` or ``(3:alias)``."""
    alias = graph.nodes[node_id].alias
    return f"({node_id}:{alias})" if alias else f"({node_id})"


def state_icon(state: CheckState, display: DisplayConfig) -> str:
    icons = display.icons
    if state is CheckState.CHECKED:
        return icons.node_checked
    if state is CheckState.PARTIAL:
        return icons.node_partial
    return icons.node_none


def format_node(
    graph: Graph,
    node_id: NodeId,
    aggregator: CompletionAggregator,
    display: DisplayConfig,
) -> str:
    """
    Format one node as ``<icon> <message> <ref>``.

    Date nodes show their date before the message. Pseudo nodes show the
    pseudo icon next to their state.
    """
    node = graph.nodes[node_id]
    icon = state_icon(aggregator.state(node_id), display)
    message = node.message
    if node.is_date:
        day = node.date.strftime(display.date_format)
        icon = f"{display.icons.node_date}{icon}"
        message = f"{day} {message}".rstrip()
    elif node.is_pseudo:
        icon = f"{display.icons.node_pseudo}{icon}"
    return f"{icon} {message} {format_ref(graph, node_id)}"


def tree_prefix(depth: int, multi_parent: bool, is_last: bool, display: DisplayConfig) -> str:
    """Indentation and arm glyphs for a node shown ``depth`` levels deep."""
    if depth == 0:
        return ""
    icons = display.icons
    if multi_parent:
        arm = icons.arm_multiparent_last if is_last else icons.arm_multiparent
    else:
        arm = icons.arm_last if is_last else icons.arm
    return f" {icons.arm_bar}  " * (depth - 1) + f" {arm}"


def render_tree(
    graph: Graph,
    entries: Iterable[WalkEntry],
    aggregator: CompletionAggregator,
    display: DisplayConfig,
    offset: int = 0,
) -> List[str]:
    """
    Turn traversal entries into display lines.

    Args:
        offset: Added to every entry's depth; 1 draws the start level with
            arms, 0 draws it flush left
    """
    lines = []
    for entry in entries:
        prefix = tree_prefix(entry.depth + offset, entry.multi_parent, entry.is_last, display)
        line = format_node(graph, entry.node_id, aggregator, display)
        if entry.is_cycle:
            line += " (cycle)"
        lines.append(f"{prefix} {line}" if prefix else line)
    return lines


# =============================================================================
# TEXT HELPERS
# =============================================================================

def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to max length with suffix.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def join_ids(node_ids: Iterable[NodeId]) -> str:
    ids = [str(node_id) for node_id in node_ids]
    return ", ".join(ids) if ids else "none"


def plural(count: int, word: str, suffix: Optional[str] = "s") -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}{suffix}"
