"""Formats module: slide files, their errors and the slide metadata harvey uses."""

from harvey.formats.errors import (
    BadMetadata,
    IncompleteMetadata,
    MissingInitialDelimiter,
    SlideError,
    SlideErrors,
    SlideLoadError,
)
from harvey.formats.metadata import SlideMetadata, SlideRatio, default_metadata
from harvey.formats.slides import SlideContent, SlideFile, parse_slides

__all__ = [
    "BadMetadata",
    "IncompleteMetadata",
    "MissingInitialDelimiter",
    "SlideError",
    "SlideErrors",
    "SlideLoadError",
    "SlideMetadata",
    "SlideRatio",
    "default_metadata",
    "SlideContent",
    "SlideFile",
    "parse_slides",
]
