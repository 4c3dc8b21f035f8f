"""Load YAML through the source registry.

All YAML harvey reads (deck files, resources, slide metadata) goes through
these functions so that every document has a logged source. Mappings with a
repeated key are rejected rather than silently keeping the last value.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from yaml.reader import ReaderError

from harvey.sources.registry import (
    DiskFile,
    Resource,
    SlideSource,
    SourceRegistry,
    YamlSource,
    default_registry,
)

logger = logging.getLogger(__name__)

_MERGE_TAG = "tag:yaml.org,2002:merge"


class DuplicateKeyError(yaml.MarkedYAMLError):
    """A mapping contains the same key twice."""


class MetadataError(ValueError):
    """A YAML document failed to load.

    Attributes:
        handle: Registry handle of the source that was being parsed.
        line: 1-based line within the parsed text, or None if unknown.
        cause: The underlying ``yaml.YAMLError``.
    """

    def __init__(self, handle: int, cause: yaml.YAMLError, origin: str) -> None:
        self.handle = handle
        self.cause = cause
        mark = getattr(cause, "problem_mark", None)
        self.line = mark.line + 1 if mark is not None else None
        super().__init__(f"{origin}: {_problem_text(cause)}")


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed YAML document and the tree it was constructed from."""

    handle: int
    value: Any
    node: yaml.Node | None


def _problem_text(err: yaml.YAMLError) -> str:
    if isinstance(err, yaml.MarkedYAMLError):
        parts = [p for p in (err.context, err.problem) if p]
        if parts:
            return ", ".join(parts)
    return str(err)


def _key_text(key_node: yaml.Node, key: Any) -> str:
    if isinstance(key_node, yaml.ScalarNode):
        return key_node.value
    return repr(key)


class _SourceLoader(yaml.SafeLoader):
    """Safe loader named after a registry handle, rejecting repeated keys.

    Keys are compared once constructed, so ``1`` and ``0x1`` or ``yes`` and
    ``true`` count as the same key.
    """

    def __init__(self, stream: str, handle: int) -> None:
        try:
            super().__init__(stream)
        except ReaderError as e:
            e.name = handle
            raise
        self.name = handle

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen: set[Any] = set()
            for key_node, _ in node.value:
                # Keys pulled in through "<<" may be overridden
                if key_node.tag == _MERGE_TAG:
                    continue
                key = self.construct_object(key_node, deep=True)
                if not isinstance(key, Hashable):
                    # SafeLoader rejects unhashable keys itself
                    continue
                if key in seen:
                    raise DuplicateKeyError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key '{_key_text(key_node, key)}'",
                        key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_document(
    source: YamlSource,
    content: str,
    registry: SourceRegistry | None = None,
) -> ParsedDocument:
    """Register ``source`` and parse ``content`` as a single YAML document.

    The source is registered before parsing, so a failed parse still leaves
    its record in the registry. An empty document yields a value of None.

    Raises:
        MetadataError: If the text is not a well-formed YAML document or a
            mapping repeats a key.
    """
    reg = registry if registry is not None else default_registry()
    handle = reg.register(source)

    loader = None
    try:
        loader = _SourceLoader(content, handle)
        node = loader.get_single_node()
        if node is None:
            return ParsedDocument(handle=handle, value=None, node=None)
        value = loader.construct_document(node)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        origin = reg.describe_mark(mark) if mark is not None else reg.describe(handle)
        logger.debug("YAML source #%d failed to load: %s", handle, e)
        raise MetadataError(handle, e, origin) from e
    finally:
        if loader is not None:
            loader.dispose()

    return ParsedDocument(handle=handle, value=value, node=node)


def from_file(path: Path | str, registry: SourceRegistry | None = None) -> Any:
    """Load YAML from a file on disk, logging the file as its source.

    Raises:
        OSError: If the file can't be read (nothing is registered).
        MetadataError: If the YAML is malformed.
    """
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")
    return parse_document(DiskFile(file_path), content, registry).value


def from_resource(
    name: str,
    content: str,
    registry: SourceRegistry | None = None,
) -> Any:
    """Load YAML that came from a bundled resource."""
    return parse_document(Resource(name), content, registry).value


def from_slide(
    slide_file: Path,
    slide_number: int,
    line_offset: int,
    content: str,
    registry: SourceRegistry | None = None,
) -> Any:
    """Load YAML found as the metadata of a slide."""
    source = SlideSource(slide_file, slide_number, line_offset)
    return parse_document(source, content, registry).value
