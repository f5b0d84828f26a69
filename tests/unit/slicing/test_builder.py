"""
Unit tests for the toolpath builder.
"""

import math

import pytest

from nosecone.core.config import NoseConeParameters
from nosecone.core.exceptions import GeometryError, InvalidShapeError, InvalidShapeParameterError
from nosecone.slicing.builder import (
    FAN_RAMP,
    SKIRT_OFFSETS,
    ConeLayout,
    ToolpathBuilder,
    build_toolpath,
)
from nosecone.slicing.toolpath import (
    BuildPhase,
    EventType,
    FanSpeed,
    FeatureMarker,
    LayerMarker,
    Move,
    PhaseChange,
    Print,
)

CONIC = dict(
    shape="Conic",
    diameter=21.0,
    height_ratio=2.75,
    wall_thickness=1.0,
    base_height=0.0,
    layer_height=0.2,
    resolution=0.5,
)

SMALL = dict(
    shape="Haack",
    shape_parameter=1 / 3,
    diameter=11.0,
    height_ratio=1.5,
    wall_thickness=1.0,
    base_height=0.6,
    layer_height=0.3,
    resolution=1.0,
)


@pytest.fixture(scope="module")
def conic_toolpath():
    return build_toolpath(NoseConeParameters(**CONIC))


@pytest.fixture(scope="module")
def small_toolpath():
    return build_toolpath(NoseConeParameters(**SMALL))


def _radius(point, cx=110.0, cy=110.0):
    return math.hypot(point.x - cx, point.y - cy)


class TestConeLayout:
    """Tests for derived print geometry."""

    def test_conic_layout(self):
        layout = ConeLayout.from_parameters(NoseConeParameters(**CONIC))
        assert layout.radius == pytest.approx(10.0)
        assert layout.cone_height == pytest.approx(55.0)
        assert layout.cylinder_layer_count == 0
        assert layout.cone_layer_count == 275
        assert (layout.cx, layout.cy) == (110.0, 110.0)
        assert layout.z_base == pytest.approx(0.2)

    def test_base_tube_layout(self):
        layout = ConeLayout.from_parameters(NoseConeParameters(**SMALL))
        assert layout.radius == pytest.approx(5.0)
        assert layout.cone_height == pytest.approx(15.0)
        assert layout.cylinder_layer_count == 2
        assert layout.z_base == pytest.approx(0.9)
        assert layout.total_layers == 2 + 50

    def test_centre_uses_plate_depth(self):
        params = NoseConeParameters(**{**CONIC, "build_plate_width": 300, "build_plate_depth": 200})
        layout = ConeLayout.from_parameters(params)
        assert (layout.cx, layout.cy) == (150.0, 100.0)

    def test_wall_thicker_than_cone(self):
        with pytest.raises(GeometryError):
            ConeLayout.from_parameters(NoseConeParameters(diameter=2.0, wall_thickness=2.0))


class TestBuilderValidation:
    """Tests for failures raised before any event is produced."""

    def test_unknown_shape(self):
        with pytest.raises(InvalidShapeError):
            ToolpathBuilder(NoseConeParameters(**{**CONIC, "shape": "Bogus"}))

    def test_bad_shape_parameter(self):
        with pytest.raises(InvalidShapeParameterError):
            ToolpathBuilder(NoseConeParameters(**{**CONIC, "shape": "Haack", "shape_parameter": 1.0}))


class TestPhases:
    """Tests for the build phase sequence."""

    def test_phase_sequence(self, conic_toolpath):
        phases = [e.phase for e in conic_toolpath.events if isinstance(e, PhaseChange)]
        assert phases == list(BuildPhase)

    def test_starts_with_priming_and_fan_off(self, conic_toolpath):
        assert conic_toolpath.events[0] == PhaseChange(BuildPhase.PRIMING)
        assert conic_toolpath.events[1] == FanSpeed(0)

    def test_ends_with_lift_off(self, conic_toolpath):
        assert conic_toolpath.events[-2:] == [
            PhaseChange(BuildPhase.LIFT_OFF),
            PhaseChange(BuildPhase.DONE),
        ]

    def test_builder_phase_done(self):
        builder = ToolpathBuilder(NoseConeParameters(**SMALL))
        assert builder.phase is None
        builder.build()
        assert builder.phase is BuildPhase.DONE

    def test_builder_is_reusable(self):
        """Test a second build restarts the phase sequence."""
        builder = ToolpathBuilder(NoseConeParameters(**SMALL))
        first = builder.build()
        second = builder.build()
        assert first.as_tuples() == second.as_tuples()


class TestSkirtAndBrim:
    """Tests for the first-layer outline."""

    def test_skirt_by_default(self, conic_toolpath):
        names = [e.name for e in conic_toolpath.events if isinstance(e, FeatureMarker)]
        assert "SKIRT" in names
        assert "BRIM" not in names

    def test_skirt_approach(self, conic_toolpath):
        """Test the first move goes just above the outermost skirt ring."""
        first = conic_toolpath.get_motion_events()[0]
        assert isinstance(first, Move)
        assert first.point.x == pytest.approx(110.0 + 10.0 + SKIRT_OFFSETS[0])
        assert first.point.z == pytest.approx(0.25)

    def test_skirt_rings_on_first_layer(self, conic_toolpath):
        skirt = []
        for event in conic_toolpath.events:
            if isinstance(event, LayerMarker):
                break
            if isinstance(event, Print):
                skirt.append(event)
        radii = {round(_radius(e.point), 6) for e in skirt}
        assert radii == {18.0, 16.0}
        assert all(e.point.z == pytest.approx(0.2) for e in skirt)

    def test_brim_rings(self):
        params = NoseConeParameters(**{**SMALL, "brim": 4.0})
        builder = ToolpathBuilder(params)
        assert builder.brim_radii() == pytest.approx([7.1, 6.4, 5.7])

        toolpath = builder.build()
        names = [e.name for e in toolpath.events if isinstance(e, FeatureMarker)]
        assert "BRIM" in names
        assert "SKIRT" not in names

    def test_zero_brim_has_no_rings(self):
        params = NoseConeParameters(**{**SMALL, "brim": 0.0})
        assert ToolpathBuilder(params).brim_radii() == []
        toolpath = build_toolpath(params)
        assert isinstance(toolpath.get_motion_events()[0], Move)


class TestLayers:
    """Tests for layer markers and the base tube."""

    def test_layer_markers_sequential(self, small_toolpath):
        indices = [e.index for e in small_toolpath.events if isinstance(e, LayerMarker)]
        assert indices == list(range(len(indices)))
        assert small_toolpath.total_layers == len(indices)

    def test_cylinder_is_helical(self, small_toolpath):
        """Test the base tube rises one layer per turn at constant radius."""
        cylinder = []
        in_cylinder = False
        for event in small_toolpath.events:
            if isinstance(event, PhaseChange):
                in_cylinder = event.phase is BuildPhase.CYLINDER
            elif in_cylinder and isinstance(event, Print):
                cylinder.append(event)
        assert all(_radius(e.point) == pytest.approx(5.0) for e in cylinder)
        assert cylinder[-1].point.z == pytest.approx(0.9)
        zs = [e.point.z for e in cylinder]
        assert zs == sorted(zs)

    def test_no_layer_jumps(self, small_toolpath):
        """Test consecutive print moves never rise by more than a layer."""
        prints = small_toolpath.get_events_by_type(EventType.PRINT)
        for a, b in zip(prints, prints[1:]):
            assert b.point.z - a.point.z <= 0.3 + 1e-9

    def test_fan_ramp(self, conic_toolpath):
        values = [e.value for e in conic_toolpath.events if isinstance(e, FanSpeed)]
        assert values == [0, *FAN_RAMP]

    def test_fan_ramp_scaled(self):
        builder = ToolpathBuilder(NoseConeParameters(**{**SMALL, "fan_speed": 0}))
        assert [builder.fan_value(i) for i in range(4)] == [0, 0, 0, None]


class TestConeSpiral:
    """Tests for the cone spiral on a 10 mm x 55 mm conic cone."""

    def test_first_cone_point_at_base_radius(self, conic_toolpath):
        first = conic_toolpath.get_events_by_type(EventType.PRINT)[0]
        skirt_end = [e for e in conic_toolpath.events if isinstance(e, LayerMarker)]
        assert skirt_end
        index = conic_toolpath.events.index(skirt_end[0])
        cone_first = next(e for e in conic_toolpath.events[index:] if isinstance(e, Print))
        assert _radius(cone_first.point) == pytest.approx(10.0)
        assert cone_first.point.z == pytest.approx(0.2)
        assert _radius(first.point) == pytest.approx(18.0)

    def test_ends_near_apex(self, conic_toolpath):
        last = conic_toolpath.get_events_by_type(EventType.PRINT)[-1]
        assert _radius(last.point) < 0.1
        assert last.point.z < 0.2 + 55.0
        assert last.point.z >= 0.2 + 55.0 - 0.2 - 1e-9

    def test_extrusion_monotonic(self, conic_toolpath):
        es = [e.e for e in conic_toolpath.get_events_by_type(EventType.PRINT)]
        assert all(b >= a for a, b in zip(es, es[1:]))
        assert es[-1] > 0

    def test_metadata(self, conic_toolpath):
        meta = conic_toolpath.metadata
        assert meta["shape"] == "Conic"
        assert meta["total_layers"] == 275
        assert meta["filament_used"] == pytest.approx(conic_toolpath.get_filament_used())

    def test_stays_inside_profile(self, conic_toolpath):
        """Test no cone point lies outside the conic envelope."""
        for event in conic_toolpath.get_events_by_type(EventType.PRINT)[::200]:
            if event.point.z > 0.2 + 1e-9:
                remaining = 55.0 - (event.point.z - 0.2)
                assert _radius(event.point) <= remaining * 10.0 / 55.0 + 1e-6

    def test_deterministic(self):
        """Test identical parameters give identical output."""
        params = NoseConeParameters(**SMALL)
        assert build_toolpath(params).as_tuples() == build_toolpath(params).as_tuples()
