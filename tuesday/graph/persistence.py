"""
Graph file persistence.

The whole graph is loaded at the start of a command and written back whole
after a mutating command. The file is JSON wrapped in a checksum envelope:

    {
      "_checksum": "<sha256 prefix of data>",
      "_written_at": "<UTC ISO timestamp>",
      "format_version": 1,
      "data": {"nodes": [...], "aliases": {...}, "dates": {...}}
    }

Tombstones are stored as ``null`` entries in ``nodes`` so ids survive a
round trip unchanged.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from tuesday.utils.checksums import checksum_matches, payload_checksum
from tuesday.utils.persistence import atomic_write_json

from .errors import CorruptionError, PersistenceError
from .store import Graph

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
GRAPH_FILENAME = ".tuesday.json"


def default_graph_path(
    local: Optional[str] = None,
    use_global: bool = False,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Path:
    """
    Choose the graph file for this invocation.

    Order: an explicit ``local`` path; ``~/.tuesday.json`` when
    ``use_global``; ``./.tuesday.json`` if it exists; otherwise the global
    file.
    """
    home = home or Path.home()
    cwd = cwd or Path.cwd()
    if local:
        return Path(local).expanduser()
    if use_global:
        return home / GRAPH_FILENAME
    local_file = cwd / GRAPH_FILENAME
    if local_file.exists():
        return local_file
    return home / GRAPH_FILENAME


class GraphFile:
    """
    One persisted graph.

    Args:
        path: Location of the graph file
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Graph:
        """
        Read and validate the graph.

        A missing file yields an empty graph.

        Raises:
            PersistenceError: If the file cannot be read
            CorruptionError: If the checksum or structure is invalid
        """
        if not self.path.exists():
            logger.debug(f"No graph file at {self.path}, starting empty")
            return Graph()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                wrapper = json.load(f)
        except OSError as e:
            raise PersistenceError(f"Cannot read graph file {self.path}: {e}", path=str(self.path)) from e
        except json.JSONDecodeError as e:
            raise CorruptionError(f"Graph file {self.path.name} is not valid JSON: {e}", path=str(self.path)) from e

        if not isinstance(wrapper, dict) or "data" not in wrapper:
            raise CorruptionError(f"Graph file {self.path.name} has no data section", path=str(self.path))

        version = wrapper.get("format_version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise CorruptionError(
                f"Unsupported graph format version {version}",
                expected=FORMAT_VERSION,
                actual=version,
                path=str(self.path)
            )

        data = wrapper["data"]
        expected_checksum = wrapper.get("_checksum")
        if not checksum_matches(data, expected_checksum):
            raise CorruptionError(
                f"Checksum mismatch for {self.path.name}",
                expected=expected_checksum,
                actual=payload_checksum(data) if isinstance(data, dict) else None,
                path=str(self.path)
            )

        graph = Graph.from_dict(data)
        logger.debug(f"Loaded {len(graph)} node(s) from {self.path}")
        return graph

    def save(self, graph: Graph) -> None:
        """
        Atomically replace the graph file.

        Raises:
            PersistenceError: If writing fails; the old file is untouched
        """
        data = graph.to_dict()
        wrapper = {
            "_checksum": payload_checksum(data),
            "_written_at": datetime.now(timezone.utc).isoformat(),
            "format_version": FORMAT_VERSION,
            "data": data,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_json(self.path, wrapper)
        except OSError as e:
            raise PersistenceError(f"Cannot write graph file {self.path}: {e}", path=str(self.path)) from e
        logger.debug(f"Saved {len(graph)} node(s) to {self.path}")


def load_graph(path: Path) -> Graph:
    return GraphFile(path).load()


def save_graph(path: Path, graph: Graph) -> None:
    GraphFile(path).save(graph)
