"""
Tuesday configuration module.

Configuration lives in a YAML file (default ``~/.tueconf.yaml``, overridable
with ``--config`` or the ``TUESDAY_CONFIG`` environment variable). Every key
is optional; missing keys fall back to the dataclass defaults below and
unknown keys are ignored with a warning.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TUESDAY_CONFIG"
DEFAULT_CONFIG_NAME = ".tueconf.yaml"

DEFAULT_CONFIG_YAML = """\
# Default configuration for tuesday

graph:
  # Compact the node table after each graph-related command.
  auto_compact: false

  # Only compact once tombstones exceed this percentage of the table.
  auto_compact_threshold: 50

  # Whether archived children count toward their parent's completion state.
  aggregate_archived: true

display:
  # Date format used for date nodes.
  date_format: "%Y-%m-%d"

  # Print info when a node is added, removed, linked or unlinked.
  show_connections: true

  icons:
    arm: "+--"
    arm_last: "+--"
    arm_multiparent: "+.."
    arm_multiparent_last: "+.."
    arm_bar: "|"
    node_none: "[ ]"
    node_checked: "[x]"
    node_partial: "[~]"
    node_pseudo: "[*]"
    node_date: "[#]"

blueprints:
  # Where to store blueprints. $HOME and ~ are expanded.
  store_path: "$HOME/.tuesday_blueprints"
"""


@dataclass
class GraphConfig:
    """
    Graph maintenance options.

    Attributes:
        auto_compact: Compact after mutating commands (default: False)
        auto_compact_threshold: Tombstone percentage (0-100) that must be
            exceeded before automatic compaction runs
        aggregate_archived: Count archived children in completion state
    """

    auto_compact: bool = False
    auto_compact_threshold: int = 50
    aggregate_archived: bool = True

    def __post_init__(self):
        if not 0 <= self.auto_compact_threshold <= 100:
            raise ConfigError(
                f"auto_compact_threshold must be between 0 and 100, got {self.auto_compact_threshold}",
                key="graph.auto_compact_threshold"
            )


@dataclass
class IconConfig:
    """Glyphs used when rendering trees."""

    arm: str = "+--"
    arm_last: str = "+--"
    arm_multiparent: str = "+.."
    arm_multiparent_last: str = "+.."
    arm_bar: str = "|"
    node_none: str = "[ ]"
    node_checked: str = "[x]"
    node_partial: str = "[~]"
    node_pseudo: str = "[*]"
    node_date: str = "[#]"


@dataclass
class DisplayConfig:
    date_format: str = "%Y-%m-%d"
    show_connections: bool = True
    icons: IconConfig = field(default_factory=IconConfig)


@dataclass
class BlueprintConfig:
    store_path: str = "$HOME/.tuesday_blueprints"

    @property
    def store_dir(self) -> Path:
        """Blueprint directory with environment variables and ~ expanded."""
        return Path(os.path.expanduser(os.path.expandvars(self.store_path)))


@dataclass
class TuesdayConfig:
    """Top-level configuration, one attribute per YAML section."""

    graph: GraphConfig = field(default_factory=GraphConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    blueprints: BlueprintConfig = field(default_factory=BlueprintConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TuesdayConfig":
        """Build a configuration from parsed YAML, validating value types."""
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping", got=type(data).__name__)

        raw_display = data.get("display") or {}
        if not isinstance(raw_display, dict):
            raise ConfigError("Section 'display' must be a mapping", key="display")
        display_data = dict(raw_display)
        icons = _build_section(IconConfig, display_data.pop("icons", None), "display.icons")
        display = _build_section(DisplayConfig, display_data, "display")
        display.icons = icons

        for section in data:
            if section not in ("graph", "display", "blueprints"):
                logger.warning(f"Ignoring unknown configuration section '{section}'")

        return cls(
            graph=_build_section(GraphConfig, data.get("graph"), "graph"),
            display=display,
            blueprints=_build_section(BlueprintConfig, data.get("blueprints"), "blueprints"),
        )


def _build_section(section_cls, raw: Optional[Dict[str, Any]], prefix: str):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Section '{prefix}' must be a mapping", key=prefix)

    known = {f.name: f for f in fields(section_cls)}
    kwargs = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning(f"Ignoring unknown configuration key '{prefix}.{key}'")
            continue
        default = getattr(section_cls(), key)
        # bool is a subclass of int, so check it first
        if isinstance(default, bool) != isinstance(value, bool) or not isinstance(value, type(default)):
            raise ConfigError(
                f"Configuration key '{prefix}.{key}' expects {type(default).__name__}, "
                f"got {type(value).__name__}",
                key=f"{prefix}.{key}"
            )
        kwargs[key] = value
    return section_cls(**kwargs)


def config_path_from_env(explicit: Optional[str] = None) -> Path:
    """Pick the config file: explicit argument, then environment, then default."""
    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.home() / DEFAULT_CONFIG_NAME


def load_config(path: Optional[Path] = None) -> TuesdayConfig:
    """
    Load configuration from a YAML file.

    A missing file yields the defaults. A file that cannot be parsed raises
    ConfigError.
    """
    path = Path(path) if path is not None else config_path_from_env()
    if not path.exists():
        logger.debug(f"No configuration file at {path}, using defaults")
        return TuesdayConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}", path=str(path)) from e

    logger.debug(f"Loaded configuration from {path}")
    return TuesdayConfig.from_dict(data)
