"""
Blueprint store: one YAML file per blueprint inside a directory.

Reading a blueprint never touches the graph file, and every write goes
through the same atomic temp-then-rename helper the graph file uses.
"""

import logging
from pathlib import Path
from typing import List, Union

from tuesday.utils.persistence import atomic_write

from .blueprint import Blueprint
from .errors import BlueprintError, PersistenceError

logger = logging.getLogger(__name__)

BLUEPRINT_SUFFIX = ".yaml"


class BlueprintStore:
    """
    Directory of blueprint files.

    Args:
        directory: Where blueprints live; created on first save
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    @staticmethod
    def is_valid_name(name: str) -> bool:
        return bool(name) and "/" not in name and "\\" not in name and not name.startswith(".")

    def path_for(self, name: str) -> Path:
        if not self.is_valid_name(name):
            raise BlueprintError(f"Invalid blueprint name '{name}'", name=name)
        return self.directory / f"{name}{BLUEPRINT_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def list_names(self) -> List[str]:
        """Names of stored blueprints, sorted."""
        if not self.directory.exists():
            return []
        return sorted(
            path.stem for path in self.directory.glob(f"*{BLUEPRINT_SUFFIX}")
            if path.is_file()
        )

    def save(self, blueprint: Blueprint, overwrite: bool = False) -> Path:
        """
        Write a blueprint into the store.

        Raises:
            BlueprintError: If it exists and ``overwrite`` is False
            PersistenceError: If the file cannot be written
        """
        path = self.path_for(blueprint.name)
        if path.exists() and not overwrite:
            raise BlueprintError(
                f"Blueprint '{blueprint.name}' already exists (use overwrite)",
                name=blueprint.name
            )
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create blueprint directory: {e}", path=str(self.directory)) from e
        write_blueprint(path, blueprint)
        logger.debug(f"Saved blueprint '{blueprint.name}' to {path}")
        return path

    def locate(self, name_or_path: Union[str, Path]) -> Path:
        """
        Find a stored blueprint by name, or any blueprint file by path.

        A stored name wins over a file of the same name in the current
        directory.

        Raises:
            BlueprintError: If no such blueprint exists
        """
        if self.is_valid_name(str(name_or_path)):
            stored = self.path_for(str(name_or_path))
            if stored.exists():
                return stored
        candidate = Path(name_or_path)
        if candidate.is_file():
            return candidate
        raise BlueprintError(f"No blueprint named '{name_or_path}'", name=str(name_or_path))

    def load(self, name_or_path: Union[str, Path]) -> Blueprint:
        """Load a blueprint by name or path (see ``locate``)."""
        return read_blueprint(self.locate(name_or_path))

    def remove(self, name: str) -> None:
        path = self.path_for(name)
        if not path.exists():
            raise BlueprintError(f"No blueprint named '{name}'", name=name)
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(f"Cannot remove blueprint '{name}': {e}", path=str(path)) from e
        logger.debug(f"Removed blueprint '{name}'")

    def export(self, name_or_path: Union[str, Path]) -> str:
        """YAML text of a blueprint."""
        return self.load(name_or_path).to_yaml()


def write_blueprint(path: Path, blueprint: Blueprint) -> None:
    try:
        atomic_write(Path(path), blueprint.to_yaml())
    except OSError as e:
        raise PersistenceError(f"Cannot write blueprint {path}: {e}", path=str(path)) from e


def read_blueprint(path: Path) -> Blueprint:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Cannot read blueprint {path}: {e}", path=str(path)) from e
    return Blueprint.from_yaml(text)
