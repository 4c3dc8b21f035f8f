"""Slide file parsing.

A slide file looks like::

    ---
    title: Intro
    template: cover

    # Welcome
    ***
    Second fragment
    ???
    Speaker notes
    ----
    text: |
      metadata which needs

      blank lines
    ...
    Body of slide two

Every slide opens with a delimiter (a line made only of dashes). A delimiter
of three dashes or fewer starts metadata ended by a blank line; a longer one
starts metadata ended by a ``...`` line. After the metadata comes the slide
body, split into fragments by ``***``. A ``???`` line turns the rest of the
slide into speaker notes.

Loading is as forgiving as possible: a broken metadata block is skipped and
scanning carries on so that every problem in the file can be reported at
once. But if anything at all went wrong, no slides are returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterator, Union

import yaml

from harvey.formats.errors import (
    BadMetadata,
    IncompleteMetadata,
    MissingInitialDelimiter,
    SlideError,
    SlideErrors,
    SlideLoadError,
)
from harvey.sources.loader import MetadataError, parse_document
from harvey.sources.registry import SlideSource, SourceRegistry

logger = logging.getLogger(__name__)

FRAGMENT_MARKER = "***"
NOTES_MARKER = "???"
BLANK_TERMINATOR = ""
EXPLICIT_TERMINATOR = "..."
SHORT_DELIMITER_MAX = 3


def is_delimiter(line: str) -> bool:
    """A delimiter is a non-empty line made only of dashes."""
    return bool(line) and all(c == "-" for c in line)


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping one trailing ``\\r`` per line.

    Other characters ``str.splitlines`` treats as breaks (form feed, U+2028)
    stay inside their line so line numbers match what editors show.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def terminator_for(delimiter: str) -> str:
    """Pick the line which closes the metadata opened by ``delimiter``."""
    if len(delimiter) > SHORT_DELIMITER_MAX:
        return EXPLICIT_TERMINATOR
    return BLANK_TERMINATOR


@dataclass(frozen=True)
class SlideContent:
    """A single slide.

    ``meta`` is the metadata as plain Python data; ``meta_node`` is the YAML
    node tree it was built from, whose marks are named by ``source_handle``.
    ``lineno`` is the 1-based line of the delimiter which opened the slide.
    """

    meta: Any
    meta_node: yaml.Node | None
    source_handle: int
    lineno: int
    parts: tuple[str, ...] = ("",)
    notes: str = ""

    def add_line(self, line: str) -> SlideContent:
        return replace(self, parts=self.parts[:-1] + (self.parts[-1] + line + "\n",))

    def add_part(self) -> SlideContent:
        return replace(self, parts=self.parts + ("",))

    def add_note(self, line: str) -> SlideContent:
        return replace(self, notes=self.notes + line + "\n")


# ── Scanner states ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Initial:
    """Nothing read yet."""


@dataclass(frozen=True)
class Metadata:
    """Collecting YAML opened by the delimiter at 0-based ``open_offset``."""

    open_offset: int
    terminator: str
    text: str = ""


@dataclass(frozen=True)
class CapturingFragments:
    slide: SlideContent


@dataclass(frozen=True)
class CapturingNotes:
    slide: SlideContent


@dataclass(frozen=True)
class Aborting:
    """Skipping the body of a slide whose metadata failed to load."""


ScanState = Union[Initial, Metadata, CapturingFragments, CapturingNotes, Aborting]


def _open_metadata(offset: int, delimiter: str) -> Metadata:
    return Metadata(open_offset=offset, terminator=terminator_for(delimiter))


class _SlideScanner:
    """Drives the scanner states over the lines of one slide file."""

    def __init__(self, fname: Path, registry: SourceRegistry | None) -> None:
        self.fname = fname
        self.registry = registry
        self.slides: list[SlideContent] = []
        self.errors = SlideErrors()

    def _record(self, error: SlideError) -> None:
        logger.debug("%s: %s", self.fname, error)
        self.errors.add(error)

    def _finish_slide(self, slide: SlideContent) -> None:
        self.slides.append(slide)
        logger.debug(
            "%s: slide %d at line %d, %d fragment(s)",
            self.fname, len(self.slides), slide.lineno, len(slide.parts),
        )

    def _close_metadata(self, state: Metadata, offset: int) -> ScanState:
        source = SlideSource(self.fname, len(self.slides) + 1, offset)
        try:
            doc = parse_document(source, state.text, self.registry)
        except MetadataError as e:
            self._record(BadMetadata(state.open_offset + 1, e))
            return Aborting()
        return CapturingFragments(SlideContent(
            meta=doc.value,
            meta_node=doc.node,
            source_handle=doc.handle,
            lineno=state.open_offset + 1,
        ))

    def step(self, state: ScanState, offset: int, line: str) -> ScanState:
        """Consume one line and return the next state."""
        if isinstance(state, Initial):
            # scan() stops before feeding a non-delimiter first line
            return _open_metadata(offset, line)

        if isinstance(state, Metadata):
            if line == state.terminator:
                return self._close_metadata(state, offset)
            return replace(state, text=state.text + line + "\n")

        if isinstance(state, CapturingFragments):
            if line == FRAGMENT_MARKER:
                return CapturingFragments(state.slide.add_part())
            if line == NOTES_MARKER:
                return CapturingNotes(state.slide)
            if is_delimiter(line):
                self._finish_slide(state.slide)
                return _open_metadata(offset, line)
            return CapturingFragments(state.slide.add_line(line))

        if isinstance(state, CapturingNotes):
            if is_delimiter(line):
                self._finish_slide(state.slide)
                return _open_metadata(offset, line)
            return CapturingNotes(state.slide.add_note(line))

        if isinstance(state, Aborting):
            if is_delimiter(line):
                return _open_metadata(offset, line)
            return state

        raise TypeError(f"Unknown scanner state: {state!r}")

    def finish(self, state: ScanState) -> None:
        """Handle whatever state the scanner was left in at end of input."""
        if isinstance(state, Initial):
            self._record(MissingInitialDelimiter())
        elif isinstance(state, Metadata):
            self._record(IncompleteMetadata(state.open_offset + 1))
        elif isinstance(state, (CapturingFragments, CapturingNotes)):
            self._finish_slide(state.slide)

    def scan(self, text: str) -> ScanState:
        state: ScanState = Initial()
        for offset, line in enumerate(split_lines(text)):
            if isinstance(state, Initial) and not is_delimiter(line):
                break
            state = self.step(state, offset, line)
        self.finish(state)
        return state


@dataclass(frozen=True)
class SlideFile:
    """A loaded file of slides."""

    fname: Path
    slides: tuple[SlideContent, ...]

    def __len__(self) -> int:
        return len(self.slides)

    def __iter__(self) -> Iterator[SlideContent]:
        return iter(self.slides)

    @classmethod
    def load(cls, path: Path | str, registry: SourceRegistry | None = None) -> SlideFile:
        """Read a slide file from disk and parse it.

        Raises:
            OSError: If the file can't be read.
            UnicodeDecodeError: If the file isn't UTF-8.
            SlideLoadError: If the file holds any malformed slides.
        """
        fname = Path(path)
        text = fname.read_text(encoding="utf-8")
        return parse_slides(fname, text, registry)


def parse_slides(
    fname: Path | str,
    text: str,
    registry: SourceRegistry | None = None,
) -> SlideFile:
    """Parse the text of a slide file.

    Args:
        fname: Name of the file the text came from, used for provenance.
        text: Full text of the slide file.
        registry: Source registry to log metadata into. Defaults to the
            process-wide registry.

    Returns:
        SlideFile with every slide, in file order.

    Raises:
        SlideLoadError: If any problem was found. It carries every problem
            found in the pass; slides which parsed cleanly are discarded too.
    """
    scanner = _SlideScanner(Path(fname), registry)
    scanner.scan(text)

    if not scanner.errors.passed:
        raise SlideLoadError(scanner.fname, scanner.errors)

    return SlideFile(fname=scanner.fname, slides=tuple(scanner.slides))
