"""
Toolpath data structures for the nose cone print.

A toolpath is an ordered stream of tagged events: travel and print moves,
plus annotations (layer, fan, feature and phase markers) that a post
processor turns into G-code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, List, Tuple, Union

from compas.geometry import Point

from nosecone.geometry.circle import distance


class EventType(Enum):
    """Type of toolpath event."""

    MOVE = "move"  # Non-printing travel
    PRINT = "print"  # Printing move
    LAYER = "layer"  # Layer boundary annotation
    FAN = "fan"  # Part cooling fan change
    FEATURE = "feature"  # Slicer preview feature type
    PHASE = "phase"  # Builder state machine transition
    FAIL = "fail"  # Terminal failure


class BuildPhase(Enum):
    """Stages of a toolpath run, in the only order they may occur."""

    PRIMING = "priming"
    SKIRT_BRIM = "skirt_brim"
    CYLINDER = "cylinder"
    CONE = "cone"
    LIFT_OFF = "lift_off"
    DONE = "done"

    @property
    def order(self) -> int:
        return list(BuildPhase).index(self)


@dataclass(frozen=True)
class Move:
    """Travel to *point* without extruding."""

    point: Point
    type: ClassVar[EventType] = EventType.MOVE


@dataclass(frozen=True)
class Print:
    """Print to *point*; *e* is the cumulative filament feed after the move (mm)."""

    point: Point
    e: float
    type: ClassVar[EventType] = EventType.PRINT


@dataclass(frozen=True)
class LayerMarker:
    index: int
    type: ClassVar[EventType] = EventType.LAYER


@dataclass(frozen=True)
class FanSpeed:
    """Part cooling fan duty, 0-255."""

    value: int
    type: ClassVar[EventType] = EventType.FAN


@dataclass(frozen=True)
class FeatureMarker:
    name: str
    type: ClassVar[EventType] = EventType.FEATURE


@dataclass(frozen=True)
class PhaseChange:
    phase: BuildPhase
    type: ClassVar[EventType] = EventType.PHASE


@dataclass(frozen=True)
class Fail:
    reason: str
    type: ClassVar[EventType] = EventType.FAIL


ToolpathEvent = Union[Move, Print, LayerMarker, FanSpeed, FeatureMarker, PhaseChange, Fail]


@dataclass
class Toolpath:
    """
    Complete event stream for one nose cone print.

    Attributes:
        events: Ordered toolpath events
        layer_height: Height of each layer (mm)
        total_layers: Number of layer markers seen
        metadata: Derived geometry and run information
    """

    events: List[ToolpathEvent] = field(default_factory=list)
    layer_height: float = 0.2
    total_layers: int = 0
    metadata: dict = field(default_factory=dict)

    def add(self, event: ToolpathEvent) -> None:
        """Append an event to the toolpath."""
        self.events.append(event)
        if isinstance(event, LayerMarker):
            self.total_layers = max(self.total_layers, event.index + 1)

    def extend(self, events: Iterable[ToolpathEvent]) -> None:
        for event in events:
            self.add(event)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def failed(self) -> bool:
        return any(isinstance(event, Fail) for event in self.events)

    def get_events_by_type(self, event_type: EventType) -> List[ToolpathEvent]:
        """Get all events of a specific type."""
        return [event for event in self.events if event.type == event_type]

    def get_motion_events(self) -> List[Union[Move, Print]]:
        return [event for event in self.events if isinstance(event, (Move, Print))]

    def get_filament_used(self) -> float:
        """Cumulative filament feed at the last print move (mm)."""
        for event in reversed(self.events):
            if isinstance(event, Print):
                return event.e
        return 0.0

    def get_print_length(self) -> float:
        """Total length of printing moves (mm)."""
        total = 0.0
        previous = None
        for event in self.get_motion_events():
            if isinstance(event, Print) and previous is not None:
                total += distance(previous, event.point)
            previous = event.point
        return total

    def get_bounds(self) -> Tuple[Point, Point]:
        """
        Get bounding box of all motion events.

        Returns:
            Tuple of (min_point, max_point)
        """
        points = [event.point for event in self.get_motion_events()]
        if not points:
            raise ValueError("Toolpath has no motion events")

        xs = [p.x for p in points]
        ys = [p.y for p in points]
        zs = [p.z for p in points]
        return Point(min(xs), min(ys), min(zs)), Point(max(xs), max(ys), max(zs))

    def as_tuples(self) -> List[Tuple[float, float, float, float]]:
        """
        Motion events as ``(x, y, z, e)`` tuples.

        Travel moves carry the feed value they leave unchanged.
        """
        e = 0.0
        rows = []
        for event in self.get_motion_events():
            if isinstance(event, Print):
                e = event.e
            p = event.point
            rows.append((p.x, p.y, p.z, e))
        return rows
