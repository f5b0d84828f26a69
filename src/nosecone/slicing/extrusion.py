"""
Extrusion accounting: travel distance to filament feed.

The bead is approximated by a constant rectangular cross-section
(layer height x wall thickness). Feeding a length of filament of known
diameter deposits the same volume, so the feed per millimeter of travel is
the ratio of the two cross-sections.

Close to the apex the programmed bead is wider than the remaining cone
radius, so the bead cross-section is scaled down inside the taper zone:

    ratio = (taper_zone / 2) / remaining + 0.5

which is 1 at the edge of the zone and grows without bound at the tip.
"""

from dataclasses import dataclass
from typing import Optional

from compas.geometry import Point

from nosecone.geometry.circle import area, distance

# Closest distance to the apex used for taper compensation (mm)
MIN_TAPER_DISTANCE = 1e-3


@dataclass
class ToolState:
    """
    Nozzle position and cumulative filament feed for a single run.

    Attributes:
        x, y, z: Current nozzle position (mm)
        e: Cumulative filament fed (mm), never decreases
        resolution: Maximum chord length for the run (mm)
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    e: float = 0.0
    resolution: float = 0.5

    @property
    def position(self) -> Point:
        return Point(self.x, self.y, self.z)

    def is_at(self, point: Point) -> bool:
        return self.x == point.x and self.y == point.y and self.z == point.z

    def place_at(self, point: Point) -> None:
        self.x, self.y, self.z = point.x, point.y, point.z


class ExtrusionAccountant:
    """Converts printed travel into filament feed, with apex taper compensation."""

    def __init__(
        self,
        layer_height: float,
        wall_thickness: float,
        filament_diameter: float,
        taper_zone: float = 8.0,
    ):
        """
        Args:
            layer_height: Bead height (mm)
            wall_thickness: Bead width (mm)
            filament_diameter: Filament diameter (mm)
            taper_zone: Distance below the apex where extrusion is reduced (mm)
        """
        self.layer_height = layer_height
        self.wall_thickness = wall_thickness
        self.filament_diameter = filament_diameter
        self.taper_zone = taper_zone

        self.filament_area = area(filament_diameter / 2)
        self.nominal_bead_area = layer_height * wall_thickness

    def taper_ratio(self, remaining: Optional[float]) -> float:
        """
        Divisor applied to the bead cross-section at *remaining* mm below the apex.

        Returns 1.0 outside the taper zone or when *remaining* is None.
        Distances at or below zero are clamped to ``MIN_TAPER_DISTANCE``.
        """
        if remaining is None or remaining >= self.taper_zone:
            return 1.0
        remaining = max(remaining, MIN_TAPER_DISTANCE)
        return (self.taper_zone / 2) / remaining + 0.5

    def bead_area(self, remaining: Optional[float] = None) -> float:
        """Bead cross-section (mm^2) at *remaining* mm below the apex."""
        return self.nominal_bead_area / self.taper_ratio(remaining)

    def extrusion_ratio(self, remaining: Optional[float] = None) -> float:
        """Filament feed per millimeter of travel."""
        return self.bead_area(remaining) / self.filament_area

    def extrude(self, state: ToolState, point: Point, remaining: Optional[float] = None) -> float:
        """
        Print from the current position to *point*.

        This is the only place the cumulative feed of *state* changes.

        Args:
            state: Tool state to update
            point: Target point
            remaining: Axial distance to the apex, for taper compensation

        Returns:
            Filament fed for this segment (mm)
        """
        delta = self.extrusion_ratio(remaining) * distance(state.position, point)
        state.e += delta
        state.place_at(point)
        return delta

    @staticmethod
    def travel(state: ToolState, point: Point) -> None:
        """Move to *point* without feeding filament."""
        state.place_at(point)
