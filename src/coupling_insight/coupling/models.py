"""Data models for the coupling diagnostic matrix."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from ..config import CouplingLevel


class Quadrant(str, Enum):
    """Cross of structural (imports) and behavioral (co-change) strength.

    |              | high co-change  | low co-change    |
    |--------------|-----------------|------------------|
    | high imports | EXPLICIT_MODULE | STABLE_INTERFACE |
    | low imports  | HIDDEN_COUPLING | UNRELATED        |
    """

    EXPLICIT_MODULE = "explicit_module"
    STABLE_INTERFACE = "stable_interface"
    HIDDEN_COUPLING = "hidden_coupling"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class ImportEdge:
    """Directed structural dependency from the import scanner.

    Endpoints are repo-relative file paths or component names.
    """

    source: str
    target: str
    weight: float = 1.0  # e.g. number of import statements

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ImportEdge:
        """Accept ``source/target``, ``from_path/to_path``, ``from_component/to_component`` keys."""
        for src_key, dst_key in (
            ("source", "target"),
            ("from_path", "to_path"),
            ("from_component", "to_component"),
            ("from", "to"),
        ):
            if src_key in data and dst_key in data:
                return cls(
                    source=str(data[src_key]),
                    target=str(data[dst_key]),
                    weight=float(data.get("weight", 1.0)),
                )
        raise ValueError(f"import edge needs source/target keys: {dict(data)!r}")


@dataclass
class ComponentRegistry:
    """Component name -> absolute directory paths, plus declared dependencies."""

    components: dict[str, tuple[str, ...]] = field(default_factory=dict)
    dependencies: dict[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        components: Mapping[str, Union[str, Iterable[str]]],
        dependencies: Optional[Mapping[str, Iterable[str]]] = None,
        base_dir: Optional[str | Path] = None,
    ) -> ComponentRegistry:
        """Build from ``name -> path | [paths]``; relative paths resolve against ``base_dir``."""
        base = Path(base_dir or Path.cwd())
        resolved: dict[str, tuple[str, ...]] = {}
        for name, paths in components.items():
            path_list = [paths] if isinstance(paths, (str, os.PathLike)) else list(paths)
            if not path_list:
                raise ValueError(f"component {name!r} has no paths")
            resolved[name] = tuple(str((base / p).resolve()) for p in path_list)
        deps = {name: frozenset(d) for name, d in (dependencies or {}).items()}
        return cls(components=resolved, dependencies=deps)

    @property
    def has_dependencies(self) -> bool:
        return bool(self.dependencies)

    def declares(self, a: str, b: str) -> bool:
        """True if either component declares a dependency on the other."""
        return b in self.dependencies.get(a, ()) or a in self.dependencies.get(b, ())


@dataclass(frozen=True)
class CouplingEntry:
    pair: tuple[str, str]  # canonical (lexicographic) order
    structural_weight: float
    behavioral_weight: float
    quadrant: Quadrant
    declared: Optional[bool] = None  # component pairs only, when dependencies are known

    def involves(self, name: str) -> bool:
        return name in self.pair


@dataclass
class CouplingMatrix:
    entries: list[CouplingEntry]
    structural_threshold: float
    behavioral_threshold: float
    level: CouplingLevel = "component"


@dataclass(frozen=True)
class MatrixOptions:
    """Explicit thresholds override median calibration."""

    level: CouplingLevel = "component"
    structural_threshold: Optional[float] = None
    behavioral_threshold: Optional[float] = None
    repo_dir: Optional[str] = None
