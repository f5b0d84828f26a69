"""
Planar circle helpers shared by the ring and spiral walkers.

Angles are in degrees, measured counter-clockwise from +X around the
part centre.
"""

import math

from compas.geometry import Point, distance_point_point


def point_on_circle(cx: float, cy: float, radius: float, angle: float, z: float = 0.0) -> Point:
    """Point at *angle* degrees on the circle of *radius* around (cx, cy), at height *z*."""
    a = math.radians(angle)
    return Point(cx + radius * math.cos(a), cy + radius * math.sin(a), z)


def circumference(radius: float) -> float:
    return 2 * math.pi * radius


def area(radius: float) -> float:
    return math.pi * radius * radius


def arc_length(radius: float, span: float) -> float:
    """Length of an arc of *span* degrees."""
    return circumference(radius) * abs(span) / 360.0


def distance(a: Point, b: Point) -> float:
    """Euclidean 3D distance between two points."""
    return distance_point_point(a, b)
