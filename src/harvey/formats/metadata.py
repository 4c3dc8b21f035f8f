"""Slide metadata harvey itself acts upon.

Slide metadata is an arbitrary mapping; this is only the handful of keys
harvey needs. Keys are kebab-case in YAML (``content-name``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from harvey import resources
from harvey.sources.registry import SourceRegistry


@dataclass(frozen=True)
class SlideRatio:
    """Screen ratio for a deck, e.g. 16:9."""

    width: int
    height: int

    @classmethod
    def parse(cls, value: str) -> SlideRatio:
        """Parse an ``X:Y`` string of positive integers."""
        if not isinstance(value, str) or ":" not in value:
            raise ValueError(f"Expected X:Y, got {value}")
        width_str, height_str = value.split(":", 1)
        try:
            width, height = int(width_str), int(height_str)
        except ValueError:
            raise ValueError(f"Expected X:Y with integer parts, got {value}") from None
        if width <= 0 or height <= 0:
            raise ValueError(f"Ratio parts must be positive, got {value}")
        return cls(width, height)

    def __str__(self) -> str:
        return f"{self.width}:{self.height}"


def _optional_str(meta: dict, key: str) -> str | None:
    value = meta.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _str_list(meta: dict, key: str) -> list[str]:
    value = meta.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)


@dataclass(frozen=True)
class SlideMetadata:
    """The metadata keys harvey understands."""

    content_name: str | None = None
    content_list: str | None = None
    default_template: str | None = None
    inherit: list[str] = field(default_factory=list)
    require: list[str] = field(default_factory=list)
    deny: list[str] = field(default_factory=list)
    ratio: SlideRatio | None = None

    @classmethod
    def from_node(cls, meta: Any) -> SlideMetadata:
        """Build from a parsed metadata mapping; unknown keys are ignored.

        Raises:
            ValueError: If a known key has the wrong shape.
        """
        if meta is None:
            return cls()
        if not isinstance(meta, dict):
            raise ValueError(f"Slide metadata must be a mapping, got {type(meta).__name__}")

        ratio = meta.get("ratio")
        return cls(
            content_name=_optional_str(meta, "content-name"),
            content_list=_optional_str(meta, "content-list"),
            default_template=_optional_str(meta, "default-template"),
            inherit=_str_list(meta, "inherit"),
            require=_str_list(meta, "require"),
            deny=_str_list(meta, "deny"),
            ratio=SlideRatio.parse(ratio) if ratio is not None else None,
        )

    def missing_required(self, meta: dict) -> list[str]:
        """Required keys absent from a slide's metadata."""
        return [k for k in self.require if k not in meta]

    def denied_present(self, meta: dict) -> list[str]:
        """Denied keys present in a slide's metadata."""
        return [k for k in self.deny if k in meta]


DEFAULT_METADATA_RESOURCE = "default-meta.yaml"


def default_metadata(registry: SourceRegistry | None = None) -> SlideMetadata:
    """Load the default slide metadata resource (overridable from disk)."""
    return SlideMetadata.from_node(resources.get_yaml(DEFAULT_METADATA_RESOURCE, registry))
