"""
Toolpath builder for a spiral-printed nose cone.

Runs the print through a fixed sequence of phases:

    PRIMING -> SKIRT_BRIM -> CYLINDER -> CONE -> LIFT_OFF -> DONE

The base tube and the cone are printed as one continuous spiral so there is
no step or seam between layers. Priming and lift-off are fixed machine
sequences; the builder only marks them and leaves the commands to the post
processor.
"""

from dataclasses import asdict, dataclass
from typing import List, Optional

from nosecone.core.config import NoseConeParameters
from nosecone.core.exceptions import GeometryError, SlicingError
from nosecone.core.logging import get_logger
from nosecone.geometry.circle import point_on_circle
from nosecone.geometry.profiles import ConeSpec, ShapeKind
from nosecone.slicing.extrusion import ExtrusionAccountant, ToolState
from nosecone.slicing.toolpath import (
    BuildPhase,
    FanSpeed,
    FeatureMarker,
    LayerMarker,
    Move,
    PhaseChange,
    Print,
    Toolpath,
)
from nosecone.slicing.walkers import CircularWalker, SpiralCursor, SpiralWalker

logger = get_logger(__name__)

SKIRT_OFFSETS = (8.0, 6.0)  # mm outside the wall centre, printed outermost first
BRIM_PITCH_FACTOR = 0.7  # ring spacing as a fraction of the wall thickness
FIRST_LAYER_TRAVEL_LIFT = 0.05  # mm above the first layer for the approach move
FAN_RAMP = (85, 170, 255)  # fan duty for global layers 0, 1, 2 at 100 %


@dataclass(frozen=True)
class ConeLayout:
    """
    Derived geometry of the print.

    Attributes:
        radius: Radius to the centre of the wall (mm)
        cone_height: Axial length of the cone (mm)
        cylinder_layer_count: Number of base tube layers
        cone_layer_count: Approximate number of spiral turns in the cone
        cx, cy: Part centre on the build plate (mm)
        z_base: Build height where the cone starts (mm)
    """

    radius: float
    cone_height: float
    cylinder_layer_count: int
    cone_layer_count: int
    cx: float
    cy: float
    z_base: float

    @classmethod
    def from_parameters(cls, params: NoseConeParameters) -> "ConeLayout":
        # The diameter is external; the nozzle follows the middle of the wall
        r = (params.diameter - params.wall_thickness) / 2
        if r <= 0:
            raise GeometryError(
                "Wall thickness must be smaller than the cone diameter",
                details={"diameter": params.diameter, "wall_thickness": params.wall_thickness},
            )
        cone_height = params.height_ratio * r * 2
        cylinder_layer_count = round(params.base_height / params.layer_height)
        return cls(
            radius=r,
            cone_height=cone_height,
            cylinder_layer_count=cylinder_layer_count,
            cone_layer_count=round(cone_height / params.layer_height),
            cx=params.build_plate_width / 2,
            cy=params.build_plate_depth / 2,
            z_base=(cylinder_layer_count + 1) * params.layer_height,
        )

    @property
    def total_layers(self) -> int:
        return self.cylinder_layer_count + self.cone_layer_count


class ToolpathBuilder:
    """
    Builds the complete toolpath for one nose cone.

    The shape is resolved and the geometry validated on construction, so an
    invalid shape fails before any event is produced.

    Example:
        >>> toolpath = ToolpathBuilder(NoseConeParameters(shape="Conic")).build()
        >>> toolpath.get_filament_used()
    """

    def __init__(self, params: NoseConeParameters):
        self.params = params
        self.shape = ShapeKind.parse(params.shape)
        self.layout = ConeLayout.from_parameters(params)
        self.cone = ConeSpec(
            base_radius=self.layout.radius,
            cone_length=self.layout.cone_height,
            shape=self.shape,
            shape_parameter=params.shape_parameter,
            resolution=params.resolution,
        )
        self.accountant = ExtrusionAccountant(
            layer_height=params.layer_height,
            wall_thickness=params.wall_thickness,
            filament_diameter=params.filament_diameter,
            taper_zone=params.taper_zone,
        )
        self.circles = CircularWalker(params.resolution)
        self._phase: Optional[BuildPhase] = None

    @property
    def phase(self) -> Optional[BuildPhase]:
        return self._phase

    def build(self) -> Toolpath:
        """
        Generate the full toolpath.

        Returns:
            Toolpath whose events run from priming to lift-off

        Raises:
            SlicingError: If the phases are driven out of order
        """
        self._phase = None
        state = ToolState(resolution=self.params.resolution)
        toolpath = Toolpath(
            layer_height=self.params.layer_height,
            metadata={
                "shape": self.shape.value,
                "shape_parameter": self.params.shape_parameter,
                **asdict(self.layout),
                "total_layers": self.layout.total_layers,
            },
        )

        self._enter(toolpath, BuildPhase.PRIMING)
        toolpath.add(FanSpeed(0))

        self._print_skirt_or_brim(toolpath, state)
        self._print_cylinder(toolpath, state)
        self._print_cone(toolpath, state)

        self._enter(toolpath, BuildPhase.LIFT_OFF)
        self._enter(toolpath, BuildPhase.DONE)

        toolpath.metadata["filament_used"] = state.e
        logger.info(
            "toolpath_built",
            shape=self.shape.value,
            events=len(toolpath),
            layers=toolpath.total_layers,
            filament_mm=round(state.e, 3),
        )
        return toolpath

    def fan_value(self, layer_index: int) -> Optional[int]:
        """Fan duty to set at the start of global layer *layer_index*, if it changes."""
        if layer_index >= len(FAN_RAMP):
            return None
        return round(FAN_RAMP[layer_index] * self.params.fan_speed / 100)

    def brim_radii(self) -> List[float]:
        """Radii of the brim rings, outermost first."""
        pitch = self.params.wall_thickness * BRIM_PITCH_FACTOR
        brim_radius = self.params.brim / 2 + self.params.wall_thickness / 2
        num_rings = int(brim_radius / pitch)
        return [self.layout.radius + ring * pitch for ring in range(num_rings, 0, -1)]

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _enter(self, toolpath: Toolpath, phase: BuildPhase) -> None:
        if self._phase is not None and phase.order <= self._phase.order:
            raise SlicingError(
                f"Cannot enter {phase.value} after {self._phase.value}",
                details={"from": self._phase.value, "to": phase.value},
            )
        self._phase = phase
        toolpath.add(PhaseChange(phase))
        logger.debug("phase_entered", phase=phase.value)

    def _print_skirt_or_brim(self, toolpath: Toolpath, state: ToolState) -> None:
        self._enter(toolpath, BuildPhase.SKIRT_BRIM)
        layout = self.layout
        z = self.params.layer_height

        if self.params.brim is not None:
            toolpath.add(FeatureMarker("BRIM"))
            radii = self.brim_radii()
        else:
            toolpath.add(FeatureMarker("SKIRT"))
            radii = [layout.radius + offset for offset in SKIRT_OFFSETS]

        if radii:
            approach = point_on_circle(layout.cx, layout.cy, radii[0], 0.0, z + FIRST_LAYER_TRAVEL_LIFT)
            self._travel(toolpath, state, approach)

        for ring_radius in radii:
            self._print_ring(toolpath, state, ring_radius, z)

        self._travel(toolpath, state, point_on_circle(layout.cx, layout.cy, layout.radius, 0.0, z))

    def _print_cylinder(self, toolpath: Toolpath, state: ToolState) -> None:
        self._enter(toolpath, BuildPhase.CYLINDER)
        layout = self.layout
        layer_height = self.params.layer_height

        for layer_index in range(layout.cylinder_layer_count):
            self._start_layer(toolpath, layer_index)
            z_start = (layer_index + 1) * layer_height
            points = self.circles.walk(
                layout.cx, layout.cy, layout.radius,
                z_start=z_start, z_end=z_start + layer_height,
            )
            for point in points:
                self.accountant.extrude(state, point)
                toolpath.add(Print(point, state.e))

    def _print_cone(self, toolpath: Toolpath, state: ToolState) -> None:
        self._enter(toolpath, BuildPhase.CONE)
        layout = self.layout
        walker = SpiralWalker(
            self.cone,
            self.params.layer_height,
            layout.cx,
            layout.cy,
            z_base=layout.z_base,
        )
        cursor = SpiralCursor(layer_height=self.params.layer_height)

        self._start_layer(toolpath, layout.cylinder_layer_count)
        for step in walker.walk(cursor):
            if step.new_layer:
                self._start_layer(toolpath, layout.cylinder_layer_count + step.turn)
            self.accountant.extrude(state, step.point, remaining=step.remaining)
            toolpath.add(Print(step.point, state.e))

        logger.debug("cone_complete", turns=cursor.completed_turns, cone_z=round(cursor.cone_z, 4))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _start_layer(self, toolpath: Toolpath, layer_index: int) -> None:
        toolpath.add(LayerMarker(layer_index))
        toolpath.add(FeatureMarker("WALL-OUTER"))
        fan = self.fan_value(layer_index)
        if fan is not None:
            toolpath.add(FanSpeed(fan))

    def _travel(self, toolpath: Toolpath, state: ToolState, point) -> None:
        if state.is_at(point):
            return
        self.accountant.travel(state, point)
        toolpath.add(Move(point))

    def _print_ring(self, toolpath: Toolpath, state: ToolState, ring_radius: float, z: float) -> None:
        layout = self.layout
        self._travel(toolpath, state, point_on_circle(layout.cx, layout.cy, ring_radius, 0.0, z))
        for point in self.circles.walk(layout.cx, layout.cy, ring_radius, z_start=z):
            self.accountant.extrude(state, point)
            toolpath.add(Print(point, state.e))


def build_toolpath(params: NoseConeParameters) -> Toolpath:
    """Build the toolpath for *params* in one call."""
    return ToolpathBuilder(params).build()
