"""Harvey: slide files with source-tracked YAML metadata.

A slide file is a flat text file: runs of dashes delimit slides, each slide
opens with a YAML metadata block, ``***`` splits the body into fragments and
``???`` starts the speaker notes. Every YAML document parsed here is logged
into a source registry so later error reporting can say where it came from.
"""

__version__ = "0.1.0"
