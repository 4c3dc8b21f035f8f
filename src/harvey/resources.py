"""Resources: bundled files which can be overridden from disk.

A resource is looked for in the override directories first, newest first,
then in the assets bundled with the package. Override directories come from
HARVEY_RESOURCE_PATH and from add_path() (deck template paths).
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from harvey.paths import assets_dir, env_resource_paths
from harvey.sources.loader import parse_document
from harvey.sources.registry import DiskFile, Resource, SourceRegistry

logger = logging.getLogger(__name__)

_paths_lock = threading.Lock()
_paths: list[Path] | None = None


def _search_paths() -> list[Path]:
    """The live override list; caller must hold _paths_lock."""
    global _paths
    if _paths is None:
        _paths = env_resource_paths()
    return _paths


def add_path(directory: Path | str) -> None:
    """Add an override directory; it takes precedence over earlier ones."""
    with _paths_lock:
        _search_paths().append(Path(directory))


def paths() -> list[Path]:
    """Override directories, in the order they were added."""
    with _paths_lock:
        return list(_search_paths())


def clear_paths() -> None:
    """Forget every override directory, including HARVEY_RESOURCE_PATH ones."""
    with _paths_lock:
        _search_paths().clear()


def get(name: str) -> tuple[Path | None, bytes]:
    """Retrieve a resource by name.

    Returns:
        (path, content) tuple. path is the override file that was read, or
        None when the bundled asset was used.

    Raises:
        FileNotFoundError: If no override directory or bundled asset has it.
        OSError: If an override file exists but can't be read.
    """
    for directory in reversed(paths()):
        candidate = directory / name
        try:
            content = candidate.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            continue
        logger.debug("Resource %s served from %s", name, candidate)
        return candidate, content

    bundled = assets_dir() / name
    try:
        content = bundled.read_bytes()
    except (FileNotFoundError, IsADirectoryError):
        raise FileNotFoundError(f"Resource not found: {name}") from None
    logger.debug("Resource %s served from bundled assets", name)
    return None, content


def get_yaml(name: str, registry: SourceRegistry | None = None) -> Any:
    """Load YAML from a resource, logging where it came from.

    Raises:
        FileNotFoundError: If the resource doesn't exist.
        UnicodeDecodeError: If the resource isn't UTF-8.
        MetadataError: If the YAML is malformed.
    """
    path, raw = get(name)
    source = DiskFile(path) if path is not None else Resource(name)
    return parse_document(source, raw.decode("utf-8"), registry).value
