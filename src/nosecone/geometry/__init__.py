"""
Geometry module - Nose cone profiles and circle helpers.
"""

from nosecone.geometry.circle import (
    arc_length,
    area,
    circumference,
    distance,
    point_on_circle,
)
from nosecone.geometry.profiles import (
    PROFILES,
    SHAPE_PARAMETER_DOMAINS,
    ConeSpec,
    ShapeKind,
    radius,
    validate_shape_parameter,
)

__all__ = [
    "arc_length",
    "area",
    "circumference",
    "distance",
    "point_on_circle",
    "PROFILES",
    "SHAPE_PARAMETER_DOMAINS",
    "ConeSpec",
    "ShapeKind",
    "radius",
    "validate_shape_parameter",
]
