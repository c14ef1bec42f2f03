"""Coupling diagnostics: structural x behavioral quadrant matrix."""

from .matrix import (
    build_coupling_matrix,
    calibrate_threshold,
    classify,
    component_coupling_profile,
    find_hidden_coupling,
    find_undeclared_coupling,
)
from .models import (
    ComponentRegistry,
    CouplingEntry,
    CouplingMatrix,
    ImportEdge,
    MatrixOptions,
    Quadrant,
)
from .ownership import build_component_paths, find_owning_component

__all__ = [
    "ComponentRegistry",
    "CouplingEntry",
    "CouplingMatrix",
    "ImportEdge",
    "MatrixOptions",
    "Quadrant",
    "build_component_paths",
    "build_coupling_matrix",
    "calibrate_threshold",
    "classify",
    "component_coupling_profile",
    "find_hidden_coupling",
    "find_owning_component",
    "find_undeclared_coupling",
]
