"""Resource path resolution.

Resolves the directories resources are looked up in. Uses environment
variables when available, falls back to the bundled assets.

Environment variables:
    HARVEY_RESOURCE_PATH: extra resource directories, separated by os.pathsep
        (later entries take precedence over earlier ones)
"""

from __future__ import annotations

import os
from pathlib import Path

_ASSETS_DIR = Path(__file__).resolve().parent / "assets"


def assets_dir() -> Path:
    """Return the directory holding the bundled assets."""
    return _ASSETS_DIR


def env_resource_paths() -> list[Path]:
    """Return the override directories named in HARVEY_RESOURCE_PATH."""
    raw = os.environ.get("HARVEY_RESOURCE_PATH", "")
    return [Path(p).expanduser() for p in raw.split(os.pathsep) if p]
