"""Errors found while loading a slide file.

Problems are collected rather than raised so one pass over a file can report
as many of them as possible. A file with any collected error is rejected as
a whole via SlideLoadError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

from harvey.sources.loader import MetadataError


@dataclass(frozen=True)
class MissingInitialDelimiter:
    """The file doesn't start with a delimiter line, so it holds no slides."""

    def __str__(self) -> str:
        return "Missing initial delimiter.  Slide files must start with ---"


@dataclass(frozen=True)
class IncompleteMetadata:
    """A metadata block opened at ``line`` was never closed."""

    line: int

    def __str__(self) -> str:
        return f"Incomplete metadata found at line {self.line}"


@dataclass(frozen=True)
class BadMetadata:
    """The metadata block opened at ``line`` is not valid YAML."""

    line: int
    cause: MetadataError

    def __str__(self) -> str:
        return f"Bad yaml found at line {self.line}: {self.cause}"


SlideError = Union[MissingInitialDelimiter, IncompleteMetadata, BadMetadata]


@dataclass
class SlideErrors:
    """Every problem found in one pass over a slide file, in file order."""

    errors: list[SlideError] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def add(self, error: SlideError) -> None:
        self.errors.append(error)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[SlideError]:
        return iter(self.errors)

    def summary(self) -> str:
        lines = [f"ERRORS ({len(self.errors)}):"]
        for e in self.errors:
            lines.append(f"  {e}")
        return "\n".join(lines)


class SlideLoadError(ValueError):
    """A slide file could not be loaded; ``errors`` holds every problem found."""

    def __init__(self, fname: object, errors: SlideErrors) -> None:
        self.fname = fname
        self.errors = errors
        super().__init__(f"Failed to load slides from {fname}\n{errors.summary()}")
