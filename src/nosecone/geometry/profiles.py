"""
Nose cone profile functions.

Each profile maps an axial position ``x`` to the outer radius ``y`` of the
cone. ``x`` is measured from the apex for every shape: ``x = 0`` is the tip
and ``x = L`` is the base, so ``radius(0) == 0`` and ``radius(L) == R``.

Formulas follow the usual nose cone design equations, with ``L`` the cone
length, ``R`` the base radius and ``param`` the shape parameter:

    Conic         y = x*R/L
    Haack         theta = acos(1 - 2x/L)
                  y = R/sqrt(pi) * sqrt(theta - sin(2*theta)/2 + C*sin(theta)^3)
    TangentOgive  rho = (R^2 + L^2) / 2R
                  y = sqrt(rho^2 - (L - x)^2) + R - rho
    Parabolic     y = R * (2(x/L) - K(x/L)^2) / (2 - K)
    Elliptical    y = R * sqrt(1 - (L - x)^2 / L^2)
    PowerSeries   y = R * (x/L)^n
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from nosecone.core.exceptions import (
    GeometryError,
    InvalidShapeError,
    InvalidShapeParameterError,
)

ProfileFunction = Callable[[float, float, float, float], float]

# Accept parameters written to three decimals, e.g. 0.667 for Haack's 2/3
DOMAIN_TOLERANCE = 5e-4


class ShapeKind(Enum):
    """Nose cone shape families."""

    CONIC = "Conic"
    HAACK = "Haack"
    TANGENT_OGIVE = "TangentOgive"
    PARABOLIC = "Parabolic"
    ELLIPTICAL = "Elliptical"
    POWER_SERIES = "PowerSeries"

    @classmethod
    def parse(cls, name: "str | ShapeKind") -> "ShapeKind":
        """
        Look up a shape by name.

        Matching ignores case, spaces, hyphens and underscores, so
        ``"TangentOgive"``, ``"tangent_ogive"`` and ``"Tangent Ogive"`` are
        the same shape.

        Raises:
            InvalidShapeError: If *name* is not a known shape
        """
        if isinstance(name, cls):
            return name
        key = _shape_key(str(name))
        for kind in cls:
            if _shape_key(kind.value) == key:
                return kind
        raise InvalidShapeError(
            f"Unknown shape: {name}",
            shape=str(name),
            details={"available": [kind.value for kind in cls]},
        )

    @property
    def parameter_domain(self) -> Optional[Tuple[float, float]]:
        """Closed interval of valid shape parameters, or None if the parameter is unused."""
        return SHAPE_PARAMETER_DOMAINS.get(self)


def _shape_key(name: str) -> str:
    return name.replace("_", "").replace("-", "").replace(" ", "").lower()


def conic(x: float, L: float, R: float, param: float = 0.0) -> float:
    return x * R / L


def haack(x: float, L: float, R: float, param: float = 0.0) -> float:
    """Haack series; C=0 is Von Karman, C=1/3 LV-Haack, C=2/3 tangent."""
    theta = math.acos(min(max(1 - 2 * x / L, -1.0), 1.0))
    s = theta - math.sin(2 * theta) / 2 + param * math.sin(theta) ** 3
    return R / math.sqrt(math.pi) * math.sqrt(max(s, 0.0))


def tangent_ogive(x: float, L: float, R: float, param: float = 0.0) -> float:
    rho = (R ** 2 + L ** 2) / (2 * R)
    return math.sqrt(max(rho ** 2 - (L - x) ** 2, 0.0)) + R - rho


def parabolic(x: float, L: float, R: float, param: float = 0.0) -> float:
    t = x / L
    return R * (2 * t - param * t ** 2) / (2 - param)


def elliptical(x: float, L: float, R: float, param: float = 0.0) -> float:
    # Measured from the base the curve is R*sqrt(1 - x^2/L^2)
    from_base = L - x
    return R * math.sqrt(max(1 - from_base ** 2 / L ** 2, 0.0))


def power_series(x: float, L: float, R: float, param: float = 0.0) -> float:
    return R * (x / L) ** param


PROFILES: Dict[ShapeKind, ProfileFunction] = {
    ShapeKind.CONIC: conic,
    ShapeKind.HAACK: haack,
    ShapeKind.TANGENT_OGIVE: tangent_ogive,
    ShapeKind.PARABOLIC: parabolic,
    ShapeKind.ELLIPTICAL: elliptical,
    ShapeKind.POWER_SERIES: power_series,
}

SHAPE_PARAMETER_DOMAINS: Dict[ShapeKind, Tuple[float, float]] = {
    ShapeKind.HAACK: (0.0, 2.0 / 3.0),
    ShapeKind.PARABOLIC: (0.0, 1.0),
    ShapeKind.POWER_SERIES: (0.0, 1.0),
}


def radius(shape: ShapeKind, x: float, L: float, R: float, param: float = 0.0) -> float:
    """
    Evaluate the profile of *shape* at axial distance *x* from the apex.

    Args:
        shape: Shape family
        x: Distance from the apex (0..L)
        L: Cone length
        R: Base radius
        param: Shape parameter (ignored by Conic, TangentOgive, Elliptical)

    Returns:
        Outer radius at *x*
    """
    return PROFILES[shape](x, L, R, param)


def validate_shape_parameter(shape: ShapeKind, value: float) -> None:
    """
    Check *value* against the documented domain of *shape*.

    Raises:
        InvalidShapeParameterError: If the value is outside the domain
    """
    domain = shape.parameter_domain
    if domain is None:
        return
    lower, upper = domain
    if not (lower <= value <= upper + DOMAIN_TOLERANCE):
        raise InvalidShapeParameterError(
            f"Shape parameter {value} outside [{lower:g}, {upper:.4g}] for {shape.value}",
            shape=shape.value,
            value=value,
        )


@dataclass(frozen=True)
class ConeSpec:
    """
    Geometry of the cone surface to be walked.

    Attributes:
        base_radius: Radius at the base (mm), measured to the wall centre
        cone_length: Axial length from base to apex (mm)
        shape: Profile family
        shape_parameter: Family parameter (C, K or n)
        resolution: Maximum chord length per segment (mm)
    """

    base_radius: float
    cone_length: float
    shape: ShapeKind = ShapeKind.CONIC
    shape_parameter: float = 0.0
    resolution: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", ShapeKind.parse(self.shape))
        for name in ("base_radius", "cone_length", "resolution"):
            if not getattr(self, name) > 0:
                raise GeometryError(
                    f"{name} must be positive",
                    details={name: getattr(self, name)},
                )
        validate_shape_parameter(self.shape, self.shape_parameter)
        if self.shape is ShapeKind.TANGENT_OGIVE and self.cone_length < self.base_radius:
            raise GeometryError(
                "Tangent ogive requires a cone length of at least the base radius",
                details={"cone_length": self.cone_length, "base_radius": self.base_radius},
            )

    def radius_at(self, x: float) -> float:
        """Profile radius at distance *x* from the apex, with *x* clamped to [0, L]."""
        x = min(max(x, 0.0), self.cone_length)
        return radius(self.shape, x, self.cone_length, self.base_radius, self.shape_parameter)
