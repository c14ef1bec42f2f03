"""Coupling diagnostic matrix: behavioral (co-change) x structural (imports).

The two signals are kept side by side on every entry and never fused into
a single score; their disagreement is the diagnostic. Thresholds default to
the median of each axis's non-zero values so the split adapts to the size
and churn of the repository.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np

from ..logging_config import get_logger
from ..temporal.models import CoChangeGraph
from .models import (
    ComponentRegistry,
    CouplingEntry,
    CouplingMatrix,
    ImportEdge,
    MatrixOptions,
    Quadrant,
)
from .ownership import ComponentPath, build_component_paths, find_owning_component

logger = get_logger(__name__)

Pair = tuple[str, str]


def _pair(a: str, b: str) -> Pair:
    return (a, b) if a < b else (b, a)


def calibrate_threshold(values: Iterable[float]) -> float:
    """Median of the non-zero values; 0.0 when there are none."""
    nonzero = [v for v in values if v > 0]
    if not nonzero:
        return 0.0
    return float(np.median(nonzero))


def is_high(value: float, threshold: float) -> bool:
    """A signal is high when present at all and at or above its threshold."""
    return value > 0 and value >= threshold


def classify(
    structural: float, behavioral: float, structural_threshold: float, behavioral_threshold: float
) -> Quadrant:
    high_structural = is_high(structural, structural_threshold)
    high_behavioral = is_high(behavioral, behavioral_threshold)

    if high_structural and high_behavioral:
        return Quadrant.EXPLICIT_MODULE
    if high_structural:
        return Quadrant.STABLE_INTERFACE
    if high_behavioral:
        return Quadrant.HIDDEN_COUPLING
    return Quadrant.UNRELATED


class _Resolver:
    """Maps graph/import endpoints onto matrix nodes for the chosen level."""

    def __init__(self, registry: ComponentRegistry, options: MatrixOptions):
        self.level = options.level
        self.registry = registry
        self.repo_dir = Path(options.repo_dir or Path.cwd()).resolve()
        self.paths: list[ComponentPath] = (
            build_component_paths(registry) if self.level == "component" else []
        )

    def node(self, endpoint: str) -> Optional[str]:
        if self.level == "file":
            return endpoint
        if endpoint in self.registry.components:
            return endpoint
        return find_owning_component(self.repo_dir / endpoint, self.paths)

    def pair(self, a: str, b: str) -> Optional[Pair]:
        node_a, node_b = self.node(a), self.node(b)
        if node_a is None or node_b is None or node_a == node_b:
            return None
        return _pair(node_a, node_b)


def behavioral_weights(graph: CoChangeGraph, resolver: _Resolver) -> dict[Pair, float]:
    weights: dict[Pair, float] = defaultdict(float)
    for edge in graph.edges:
        pair = resolver.pair(edge.files.first, edge.files.second)
        if pair is not None:
            weights[pair] += edge.weight
    return dict(weights)


def structural_weights(
    import_edges: Iterable[ImportEdge], resolver: _Resolver
) -> dict[Pair, float]:
    weights: dict[Pair, float] = defaultdict(float)
    for edge in import_edges:
        pair = resolver.pair(edge.source, edge.target)
        if pair is not None:
            weights[pair] += edge.weight
    return dict(weights)


def build_coupling_matrix(
    graph: CoChangeGraph,
    import_edges: Sequence[ImportEdge],
    registry: Optional[ComponentRegistry] = None,
    options: Optional[MatrixOptions] = None,
) -> CouplingMatrix:
    """Classify every pair seen in either signal into a quadrant.

    At component level, file edges are rolled up to their owning components;
    pairs inside one component or touching unowned files are dropped.
    """
    options = options or MatrixOptions()
    registry = registry or ComponentRegistry()
    resolver = _Resolver(registry, options)

    behavioral = behavioral_weights(graph, resolver)
    structural = structural_weights(import_edges, resolver)
    pairs = sorted(set(behavioral) | set(structural))

    s_threshold = options.structural_threshold
    if s_threshold is None:
        s_threshold = calibrate_threshold(structural.values())
    b_threshold = options.behavioral_threshold
    if b_threshold is None:
        b_threshold = calibrate_threshold(behavioral.values())

    track_declared = options.level == "component" and registry.has_dependencies

    entries = []
    for pair in pairs:
        s = structural.get(pair, 0.0)
        b = behavioral.get(pair, 0.0)
        entries.append(
            CouplingEntry(
                pair=pair,
                structural_weight=s,
                behavioral_weight=b,
                quadrant=classify(s, b, s_threshold, b_threshold),
                declared=registry.declares(*pair) if track_declared else None,
            )
        )

    logger.debug(
        "Coupling matrix (%s): %d pairs, structural threshold %.3f, behavioral threshold %.3f",
        options.level,
        len(entries),
        s_threshold,
        b_threshold,
    )
    return CouplingMatrix(
        entries=entries,
        structural_threshold=s_threshold,
        behavioral_threshold=b_threshold,
        level=options.level,
    )


def find_hidden_coupling(matrix: CouplingMatrix) -> list[CouplingEntry]:
    """Hidden coupling entries, strongest co-change first."""
    hidden = [e for e in matrix.entries if e.quadrant is Quadrant.HIDDEN_COUPLING]
    return sorted(hidden, key=lambda e: (-e.behavioral_weight, e.pair))


def find_undeclared_coupling(matrix: CouplingMatrix) -> list[CouplingEntry]:
    """Hidden coupling between components with no declared dependency either way."""
    return [e for e in find_hidden_coupling(matrix) if e.declared is False]


def component_coupling_profile(matrix: CouplingMatrix, component: str) -> list[CouplingEntry]:
    return [e for e in matrix.entries if e.involves(component)]
