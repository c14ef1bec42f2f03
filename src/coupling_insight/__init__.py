"""
Coupling Insight - architectural coupling from version-control history

Mines git history into a graduated-weight co-change graph, caches it
incrementally, scores hotspots and size trends, and crosses the behavioral
signal with a structural import graph to surface hidden coupling.
"""

__version__ = "0.1.0"

from .config import AnalysisConfig, FilterConfig, HotspotsConfig, MatrixConfig, load_config
from .coupling import (
    ComponentRegistry,
    CouplingEntry,
    CouplingMatrix,
    ImportEdge,
    MatrixOptions,
    Quadrant,
    build_coupling_matrix,
    component_coupling_profile,
    find_hidden_coupling,
)
from .temporal import (
    CoChangeGraph,
    HotspotEntry,
    analyze_cochanges,
    compute_hotspots,
    scan_cochanges,
    scan_cochanges_with_cache,
)

__all__ = [
    "AnalysisConfig",
    "FilterConfig",
    "HotspotsConfig",
    "MatrixConfig",
    "load_config",
    "CoChangeGraph",
    "HotspotEntry",
    "analyze_cochanges",
    "compute_hotspots",
    "scan_cochanges",
    "scan_cochanges_with_cache",
    "ComponentRegistry",
    "CouplingEntry",
    "CouplingMatrix",
    "ImportEdge",
    "MatrixOptions",
    "Quadrant",
    "build_coupling_matrix",
    "component_coupling_profile",
    "find_hidden_coupling",
]
