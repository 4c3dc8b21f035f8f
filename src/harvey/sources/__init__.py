"""Sources module: register where YAML came from and load it through the registry."""

from harvey.sources.registry import (
    DiskFile,
    Resource,
    SlideSource,
    SourceRegistry,
    YamlSource,
    default_registry,
)
from harvey.sources.loader import (
    DuplicateKeyError,
    MetadataError,
    ParsedDocument,
    from_file,
    from_resource,
    from_slide,
    parse_document,
)

__all__ = [
    "DiskFile",
    "Resource",
    "SlideSource",
    "SourceRegistry",
    "YamlSource",
    "default_registry",
    "DuplicateKeyError",
    "MetadataError",
    "ParsedDocument",
    "from_file",
    "from_resource",
    "from_slide",
    "parse_document",
]
