"""Map file paths to the component that owns them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple, Optional, Sequence

from .models import ComponentRegistry


class ComponentPath(NamedTuple):
    name: str
    path: str


def build_component_paths(registry: ComponentRegistry) -> list[ComponentPath]:
    """Flatten the registry, longest (most specific) path first."""
    entries = [
        ComponentPath(name, path)
        for name, paths in registry.components.items()
        for path in paths
    ]
    return sorted(entries, key=lambda e: (-len(e.path), e.name))


def find_owning_component(
    file_path: str | Path, component_paths: Sequence[ComponentPath]
) -> Optional[str]:
    """Longest-prefix owner of an absolute path, or None if unowned."""
    target = os.path.abspath(file_path)
    for entry in component_paths:
        if target == entry.path or target.startswith(entry.path.rstrip(os.sep) + os.sep):
            return entry.name
    return None
