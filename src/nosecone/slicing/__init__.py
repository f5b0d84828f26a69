"""
Slicing module - Toolpath generation for spiral-printed nose cones.

- CircularWalker / SpiralWalker: drift-free discretization of rings and of
  the cone spiral
- ExtrusionAccountant: travel distance to filament feed, apex taper
- ToolpathBuilder: priming, skirt/brim, base tube, cone and lift-off phases
"""

from nosecone.slicing.builder import ConeLayout, ToolpathBuilder, build_toolpath
from nosecone.slicing.extrusion import ExtrusionAccountant, ToolState
from nosecone.slicing.toolpath import (
    BuildPhase,
    EventType,
    Fail,
    FanSpeed,
    FeatureMarker,
    LayerMarker,
    Move,
    PhaseChange,
    Print,
    Toolpath,
    ToolpathEvent,
)
from nosecone.slicing.walkers import (
    CircularWalker,
    SpiralCursor,
    SpiralStep,
    SpiralWalker,
)

__all__ = [
    "ConeLayout",
    "ToolpathBuilder",
    "build_toolpath",
    "ExtrusionAccountant",
    "ToolState",
    "BuildPhase",
    "EventType",
    "Fail",
    "FanSpeed",
    "FeatureMarker",
    "LayerMarker",
    "Move",
    "PhaseChange",
    "Print",
    "Toolpath",
    "ToolpathEvent",
    "CircularWalker",
    "SpiralCursor",
    "SpiralStep",
    "SpiralWalker",
]
