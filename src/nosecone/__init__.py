"""
Nose Cone Generator - spiral toolpaths for 3D printed rocket nose cones.

Builds a continuous spiral toolpath for an axially-symmetric nose cone from a
handful of print parameters and post-processes it into Marlin G-code.
"""

__version__ = "0.1.0"
__author__ = "Nose Cone Generator Contributors"

from nosecone.core.config import NoseConeParameters, load_parameters
from nosecone.slicing.builder import ToolpathBuilder, build_toolpath

__all__ = [
    "__version__",
    "NoseConeParameters",
    "load_parameters",
    "ToolpathBuilder",
    "build_toolpath",
]
