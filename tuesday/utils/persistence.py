"""
Atomic file persistence utilities.

Graph files and blueprint files are both written with the
write-to-temp-then-rename pattern, so an interrupted save never leaves a
half-written file behind: the previous file stays untouched until the new
one is fully on disk.
"""

import json
import os
from pathlib import Path
from typing import Any


def _temp_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + '.tmp')


def atomic_write(path: Path, content: str, encoding: str = 'utf-8') -> None:
    """
    Write text to a file atomically.

    Args:
        path: Target file path
        content: String content to write
        encoding: Text encoding (default: utf-8)

    Raises:
        OSError: If write or rename fails

    Example:
        >>> from pathlib import Path
        >>> atomic_write(Path("errands.yaml"), "name: errands\\n")
    """
    path = Path(path)
    temp_path = _temp_path_for(path)

    try:
        with open(temp_path, 'w', encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        # Replaces the target in one step on POSIX
        os.replace(temp_path, path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def atomic_write_json(path: Path, data: Any, indent: int = 2, encoding: str = 'utf-8') -> None:
    """
    Serialize data as JSON and write it atomically.

    Keys are sorted so that saving an unchanged graph produces an identical
    file.

    Raises:
        OSError: If write or rename fails
        TypeError: If data is not JSON-serializable (nothing is written)
    """
    content = json.dumps(data, indent=indent, sort_keys=True)
    atomic_write(path, content + '\n', encoding=encoding)
