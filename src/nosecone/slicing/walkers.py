"""
Discretization of circles and of the cone spiral into bounded chords.

Both walkers compute every angle from the step index and the total span,
never from a running sum, so the last point of a ring lands exactly on the
requested end angle however many steps it takes.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np
from compas.geometry import Point

from nosecone.core.logging import get_logger
from nosecone.geometry.circle import arc_length, circumference, point_on_circle
from nosecone.geometry.profiles import ConeSpec

logger = get_logger(__name__)

# Below this radius the spiral is treated as having reached the apex (mm)
MIN_SPIRAL_RADIUS = 1e-6

# Largest angular advance of a single spiral step (degrees)
MAX_ANGULAR_STEP = 360.0


class CircularWalker:
    """
    Splits an arc into N equal-angle chords, N = floor(arc length / resolution).

    The height may be interpolated along the arc, which turns a flat ring into
    one turn of a helix.
    """

    def __init__(self, resolution: float):
        if resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        self.resolution = resolution

    def step_count(self, radius: float, span: float) -> int:
        """Number of chords for an arc of *span* degrees at *radius*."""
        return int(arc_length(radius, span) // self.resolution)

    def walk(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float = 0.0,
        end: float = 360.0,
        z_start: float = 0.0,
        z_end: Optional[float] = None,
    ) -> List[Point]:
        """
        Points at the end of each chord of the arc from *start* to *end* degrees.

        The start point itself is not included. An arc too short for a single
        step of *resolution* collapses to one direct step to the end point.

        Args:
            cx, cy: Arc centre (mm)
            radius: Arc radius (mm)
            start: Start angle (degrees)
            end: End angle (degrees)
            z_start: Height at the start angle (mm)
            z_end: Height at the end angle (mm), defaults to *z_start*

        Returns:
            List of chord end points, the last one at exactly *end*
        """
        if z_end is None:
            z_end = z_start

        span = end - start
        n = self.step_count(radius, span)
        if n == 0:
            logger.debug("degenerate_arc", radius=radius, span=span, resolution=self.resolution)
            return [point_on_circle(cx, cy, radius, end, z_end)]

        fractions = np.arange(1, n + 1) / n
        angles = start + span * fractions
        heights = z_start + (z_end - z_start) * fractions
        return [
            point_on_circle(cx, cy, radius, float(a), float(z))
            for a, z in zip(angles, heights)
        ]


@dataclass
class SpiralCursor:
    """
    Progress along the cone spiral.

    ``cone_z`` is derived from the completed turns and the angle into the
    current turn, so it can never drift from the layer count.
    """

    layer_height: float
    spiral_angle: float = 0.0
    completed_turns: int = 0

    @property
    def cone_z(self) -> float:
        return self.layer_height * self.completed_turns + self.layer_height * self.spiral_angle / 360.0

    def advance(self, step: float) -> bool:
        """
        Rotate by *step* degrees (at most one full turn).

        Returns:
            True if a full turn was completed
        """
        self.spiral_angle += step
        if self.spiral_angle >= 360.0:
            self.spiral_angle -= 360.0
            self.completed_turns += 1
            return True
        return False


@dataclass(frozen=True)
class SpiralStep:
    """
    One point of the cone spiral.

    Attributes:
        point: Nozzle position
        radius: Profile radius at this height (mm)
        cone_z: Height above the cone base (mm)
        remaining: Axial distance left to the apex (mm)
        turn: Completed spiral turns before this point
        new_layer: True for the first point of a turn after the first
    """

    point: Point
    radius: float
    cone_z: float
    remaining: float
    turn: int
    new_layer: bool


class SpiralWalker:
    """
    Walks the cone surface as a single continuous helix.

    Each angular step is chosen so the chord is about *resolution* long, so
    the step grows as the radius shrinks toward the apex.
    """

    def __init__(
        self,
        cone: ConeSpec,
        layer_height: float,
        cx: float,
        cy: float,
        z_base: float = 0.0,
    ):
        """
        Args:
            cone: Cone geometry, including the chord resolution
            layer_height: Rise per full turn (mm)
            cx, cy: Cone axis position (mm)
            z_base: Build height of the cone base (mm)
        """
        if layer_height <= 0:
            raise ValueError(f"layer_height must be positive, got {layer_height}")
        self.cone = cone
        self.layer_height = layer_height
        self.cx = cx
        self.cy = cy
        self.z_base = z_base

    def angular_step(self, radius: float) -> float:
        """Angle (degrees) subtending a chord of about *resolution* at *radius*."""
        if radius < MIN_SPIRAL_RADIUS:
            return MAX_ANGULAR_STEP
        return min(360.0 * self.cone.resolution / circumference(radius), MAX_ANGULAR_STEP)

    def walk(self, cursor: Optional[SpiralCursor] = None) -> Iterator[SpiralStep]:
        """
        Yield spiral points from the current cursor position up to the apex.

        The cursor is advanced in place. The walk stops before ``cone_z``
        reaches the cone length, so no point lies above the apex.

        Args:
            cursor: Starting cursor (a fresh one at the base if None)

        Yields:
            SpiralStep for every point of the spiral
        """
        if cursor is None:
            cursor = SpiralCursor(layer_height=self.layer_height)

        length = self.cone.cone_length
        new_layer = False
        clamped = False

        while length - cursor.cone_z > 0:
            cone_z = cursor.cone_z
            remaining = length - cone_z
            r = self.cone.radius_at(remaining)
            point = point_on_circle(self.cx, self.cy, r, cursor.spiral_angle, self.z_base + cone_z)
            yield SpiralStep(
                point=point,
                radius=r,
                cone_z=cone_z,
                remaining=remaining,
                turn=cursor.completed_turns,
                new_layer=new_layer,
            )

            step = self.angular_step(r)
            if step >= MAX_ANGULAR_STEP and not clamped:
                clamped = True
                logger.debug("spiral_step_clamped", radius=r, remaining=remaining)
            new_layer = cursor.advance(step)
