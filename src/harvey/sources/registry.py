"""Registry of YAML sources.

Every YAML document parsed by harvey is logged here first. The index a source
receives (its handle) becomes the stream name of the parse, so every mark on
the resulting node tree points back at the entry. Entries are never removed.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiskFile:
    """YAML read directly from a file on disk (a deck file, an overridden resource)."""

    path: Path

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class Resource:
    """YAML read from a bundled resource."""

    name: str

    def describe(self) -> str:
        return f"<builtin:{self.name}>"


@dataclass(frozen=True)
class SlideSource:
    """YAML read as slide metadata out of a slide file.

    ``slide_number`` is 1-based; ``line_offset`` is the 0-based offset of the
    line that closed the metadata block.
    """

    slide_file: Path
    slide_number: int
    line_offset: int

    def describe(self) -> str:
        return (
            f"{self.slide_file} slide {self.slide_number} "
            f"(metadata closed at line {self.line_offset + 1})"
        )


YamlSource = Union[DiskFile, Resource, SlideSource]


class SourceRegistry:
    """Append-only, thread-safe log of YAML sources."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: list[YamlSource] = []

    def register(self, source: YamlSource) -> int:
        """Append a source and return its handle (its index in the log)."""
        with self._lock:
            handle = len(self._sources)
            self._sources.append(source)
        logger.debug("Registered YAML source #%d: %s", handle, source.describe())
        return handle

    def get(self, handle: int) -> YamlSource:
        """Return the source registered under ``handle``.

        Raises:
            KeyError: If no source has that handle.
        """
        with self._lock:
            if 0 <= handle < len(self._sources):
                return self._sources[handle]
        raise KeyError(f"No YAML source registered under handle {handle}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __iter__(self) -> Iterator[tuple[int, YamlSource]]:
        with self._lock:
            snapshot = list(self._sources)
        return iter(enumerate(snapshot))

    def describe(self, handle: int) -> str:
        """Human-readable origin for a handle."""
        try:
            return self.get(handle).describe()
        except KeyError:
            return f"<unknown source #{handle}>"

    def describe_mark(self, mark: yaml.Mark) -> str:
        """Render a PyYAML mark produced by a registered parse.

        Line and column are 1-based and relative to the parsed text.
        """
        where = f"line {mark.line + 1}, column {mark.column + 1}"
        if isinstance(mark.name, int):
            return f"{self.describe(mark.name)}: {where}"
        return f"{mark.name}: {where}"


_default: SourceRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> SourceRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = SourceRegistry()
        return _default
