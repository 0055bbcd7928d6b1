"""
Identifier resolution.

Every command that takes a node accepts one of three token forms: an alias,
a numeric index, or a date expression naming a date node. Aliases are tried
before indexes and dates unless the caller prefers dates, in which case the
date interpretation is tried first.
"""

import logging
from datetime import date
from typing import List, Optional

from .dates import parse_date
from .errors import InvalidIdentifierError, NotFoundError
from .store import Graph
from .types import NodeId

logger = logging.getLogger(__name__)


class IdentifierResolver:
    """
    Resolve user tokens against one graph.

    Args:
        graph: Graph whose indexes are consulted
        today: Reference date for relative expressions (default: today)
    """

    def __init__(self, graph: Graph, today: Optional[date] = None):
        self.graph = graph
        self.today = today

    def resolve(self, token: str, prefer_date: bool = False) -> NodeId:
        """
        Turn a token into a live NodeId.

        Raises:
            NotFoundError: If the token is well formed but names no node
            InvalidIdentifierError: If the token is not an alias, not a
                number and not a date expression
        """
        token = str(token).strip()
        tried: List[str] = []

        if prefer_date:
            day = self._parse_date_or_none(token)
            if day is not None:
                return self._lookup_date(day, token)
            tried.append("date")

        node_id = self.graph.find_alias(token)
        if node_id is not None:
            return node_id
        tried.append("alias")

        if token.isdigit():
            node_id = int(token)
            if not self.graph.exists(node_id):
                raise NotFoundError(f"No such node: {node_id}", token=token, tried=tried + ["index"])
            return node_id
        tried.append("index")

        if not prefer_date:
            day = self._parse_date_or_none(token)
            if day is not None:
                return self._lookup_date(day, token)
            tried.append("date")

        raise InvalidIdentifierError(
            f"'{token}' is not an alias, index or date ({', '.join(tried)} tried)",
            token=token,
            tried=tried
        )

    def resolve_many(self, tokens: List[str], prefer_date: bool = False) -> List[NodeId]:
        return [self.resolve(token, prefer_date=prefer_date) for token in tokens]

    def resolve_date(self, token: str) -> date:
        """Parse a date expression without looking it up."""
        return parse_date(token, today=self.today)

    def _parse_date_or_none(self, token: str) -> Optional[date]:
        try:
            return parse_date(token, today=self.today)
        except InvalidIdentifierError:
            return None

    def _lookup_date(self, day: date, token: str) -> NodeId:
        node_id = self.graph.find_date(day)
        if node_id is None:
            raise NotFoundError(
                f"No date node for {day.isoformat()}",
                token=token,
                date=day.isoformat(),
                tried=["alias", "index", "date"]
            )
        logger.debug(f"Resolved '{token}' to date node {node_id}")
        return node_id


def resolve(graph: Graph, token: str, prefer_date: bool = False) -> NodeId:
    """Convenience wrapper around IdentifierResolver.resolve."""
    return IdentifierResolver(graph).resolve(token, prefer_date=prefer_date)
