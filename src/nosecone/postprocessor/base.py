"""
PostProcessorBase: abstract base class for toolpath post processors.

Walks the toolpath event stream and asks the subclass for the machine code
of each event. Users can inject custom code at key points in the program
(start, end, layer change, before/after each print move) through event
hooks.

Template variables available in event hooks:
  {layerIndex}  - current layer number (0-based)
  {x}, {y}, {z} - current point position (mm)
  {e}           - cumulative filament feed (mm)
  {speed}       - feed rate for this move (mm/min)
  {pointIndex}  - index of the move in the program
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from nosecone.core.config import NoseConeParameters
from nosecone.core.exceptions import ConfigurationError, NoseConeError
from nosecone.core.logging import get_logger
from nosecone.slicing.toolpath import (
    BuildPhase,
    Fail,
    FanSpeed,
    FeatureMarker,
    LayerMarker,
    Move,
    PhaseChange,
    Print,
    Toolpath,
)

logger = get_logger(__name__)


@dataclass
class EventHooks:
    """
    Customizable code snippets injected at event points.
    Each string may contain template variables like {x}, {y}, {z}, {e}.
    """
    program_start: str = ""
    program_end: str = ""
    layer_start: str = ""
    layer_end: str = ""
    before_print: str = ""   # injected before each printing move
    after_print: str = ""    # injected after each printing move

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EventHooks':
        return cls(**_checked_fields(cls, d, "hooks"))


@dataclass
class PostProcessorConfig:
    """Configuration for a post processor instance."""
    format_name: str = "marlin"
    line_ending: str = "\n"

    # Feed rates (mm/min)
    print_speed: float = 600.0
    travel_speed: float = 7500.0

    # Number formatting
    position_decimals: int = 4
    extrusion_decimals: int = 5

    # Event hooks
    hooks: EventHooks = field(default_factory=EventHooks)

    # Metadata
    program_name: str = "Nose Cone Generator"
    comment_prefix: str = ";"
    include_timestamp: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PostProcessorConfig':
        """
        Build a config from a mapping such as a parsed settings file.

        Raises:
            ConfigurationError: If a key is not a config field or hook name
        """
        d = dict(d)
        hooks_data = d.pop('hooks', None) or {}
        if not isinstance(hooks_data, dict):
            raise ConfigurationError("hooks must be a mapping of hook name to code")
        config = cls(**_checked_fields(cls, d, "post processor"))
        config.hooks = EventHooks.from_dict(hooks_data)
        return config

    @classmethod
    def from_file(cls, path: Path) -> 'PostProcessorConfig':
        """
        Load post processor settings from a YAML file.

        Example file::

            print_speed: 900
            hooks:
              layer_start: "M117 Layer {layerIndex}"

        Raises:
            ConfigurationError: If the file is missing, malformed or has unknown keys
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Post processor settings not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse post processor settings: {path}",
                details={"error": str(e)},
            )
        if not isinstance(data, dict):
            raise ConfigurationError(f"Post processor settings must contain a mapping: {path}")
        return cls.from_dict(data)


def _checked_fields(cls, d: Dict[str, Any], what: str) -> Dict[str, Any]:
    valid_fields = {f.name for f in fields(cls)}
    unknown = sorted(set(d) - valid_fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown {what} settings: {', '.join(unknown)}",
            details={"valid": sorted(valid_fields)},
        )
    return d


@dataclass
class PointData:
    """Data for a single motion event, passed to event hooks."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    e: float = 0.0
    speed: float = 600.0
    layer_index: int = 0
    point_index: int = 0

    def template_vars(self) -> Dict[str, Any]:
        return {
            'x': f"{self.x:.3f}",
            'y': f"{self.y:.3f}",
            'z': f"{self.z:.3f}",
            'e': f"{self.e:.5f}",
            'speed': f"{self.speed:.1f}",
            'layerIndex': str(self.layer_index),
            'pointIndex': str(self.point_index),
        }


class PostProcessorBase(ABC):
    """
    Abstract base class for post processors.

    Subclasses implement format-specific methods:
    - header() / footer()
    - travel_move() / print_move()
    - priming_code() / lift_off_code()
    - fan_code() / comment()
    """

    def __init__(self, config: Optional[PostProcessorConfig] = None):
        self.config = config or PostProcessorConfig()
        self._lines: List[str] = []
        self._current_layer: int = -1

    @property
    def format_name(self) -> str:
        return self.config.format_name

    # ── Abstract methods (must be implemented by subclasses) ───────────

    @abstractmethod
    def header(self, toolpath: Toolpath, params: NoseConeParameters) -> List[str]:
        """Generate program header lines."""
        ...

    @abstractmethod
    def footer(self, toolpath: Toolpath, params: NoseConeParameters) -> List[str]:
        """Generate program footer lines."""
        ...

    @abstractmethod
    def travel_move(self, pt: PointData) -> List[str]:
        """Generate a non-printing move command."""
        ...

    @abstractmethod
    def print_move(self, pt: PointData) -> List[str]:
        """Generate a printing move command."""
        ...

    @abstractmethod
    def fan_code(self, value: int) -> List[str]:
        """Set the part cooling fan duty (0-255)."""
        ...

    @abstractmethod
    def comment(self, text: str) -> str:
        """Format a comment line."""
        ...

    # ── Optional overrides ────────────────────────────────────────────

    def priming_code(self, params: NoseConeParameters) -> List[str]:
        """Nozzle priming sequence, run before the first ring."""
        return []

    def first_layer_code(self, params: NoseConeParameters) -> List[str]:
        """Code run just before the skirt or brim."""
        return []

    def lift_off_code(self, params: NoseConeParameters) -> List[str]:
        """Retract, raise and park sequence after the last move."""
        return []

    def layer_change_code(self, layer: int) -> List[str]:
        """Code injected at layer transitions."""
        return [self.comment(f"Layer {layer}")]

    def feature_code(self, name: str) -> List[str]:
        """Code marking the start of a feature (skirt, brim, wall)."""
        return [self.comment(name)]

    # ── Hook expansion ────────────────────────────────────────────────

    def _expand_hook(self, hook_template: str, pt: Optional[PointData] = None) -> List[str]:
        """Expand template variables in a hook string."""
        if not hook_template.strip():
            return []
        template_vars = pt.template_vars() if pt else {'layerIndex': str(self._current_layer)}
        try:
            expanded = hook_template.format(**template_vars)
        except (KeyError, IndexError):
            expanded = hook_template  # Leave unresolved variables as-is
        except ValueError as e:
            raise NoseConeError(
                "Malformed event hook template",
                details={"hook": hook_template, "error": str(e)},
            )
        return [line for line in expanded.split('\n') if line.strip()]

    # ── Main generation pipeline ──────────────────────────────────────

    def generate(self, toolpath: Toolpath, params: NoseConeParameters) -> str:
        """
        Generate the complete post-processed program.

        Parameters:
            toolpath: Built toolpath
            params: Parameters the toolpath was built from

        Returns:
            Complete program as a string.

        Raises:
            NoseConeError: If the toolpath ended in a failure
        """
        self._lines = []
        self._current_layer = -1

        if not toolpath.events:
            return ""

        self._lines.extend(self.header(toolpath, params))
        self._lines.extend(self._expand_hook(self.config.hooks.program_start))

        point_index = 0
        for event in toolpath.events:
            if isinstance(event, Print):
                pt = self._point_data(event.point, event.e, self.config.print_speed, point_index)
                self._lines.extend(self._expand_hook(self.config.hooks.before_print, pt))
                self._lines.extend(self.print_move(pt))
                self._lines.extend(self._expand_hook(self.config.hooks.after_print, pt))
                point_index += 1
            elif isinstance(event, Move):
                pt = self._point_data(event.point, 0.0, self.config.travel_speed, point_index)
                self._lines.extend(self.travel_move(pt))
                point_index += 1
            elif isinstance(event, LayerMarker):
                if self._current_layer >= 0:
                    self._lines.extend(self._expand_hook(self.config.hooks.layer_end))
                self._current_layer = event.index
                self._lines.extend(self.layer_change_code(event.index))
                self._lines.extend(self._expand_hook(self.config.hooks.layer_start))
            elif isinstance(event, FeatureMarker):
                self._lines.extend(self.feature_code(event.name))
            elif isinstance(event, FanSpeed):
                self._lines.extend(self.fan_code(event.value))
            elif isinstance(event, PhaseChange):
                self._lines.extend(self._phase_code(event.phase, params))
            elif isinstance(event, Fail):
                raise NoseConeError(
                    "Cannot post-process a failed toolpath",
                    details={"reason": event.reason},
                )

        if self._current_layer >= 0:
            self._lines.extend(self._expand_hook(self.config.hooks.layer_end))

        self._lines.extend(self._expand_hook(self.config.hooks.program_end))
        self._lines.extend(self.footer(toolpath, params))

        logger.debug("post_processed", format=self.format_name, lines=len(self._lines))
        return self.config.line_ending.join(self._lines) + self.config.line_ending

    def _phase_code(self, phase: BuildPhase, params: NoseConeParameters) -> List[str]:
        if phase is BuildPhase.PRIMING:
            return self.priming_code(params)
        if phase is BuildPhase.SKIRT_BRIM:
            return self.first_layer_code(params)
        if phase is BuildPhase.LIFT_OFF:
            return self.lift_off_code(params)
        return []

    def _point_data(self, point, e: float, speed: float, point_index: int) -> PointData:
        return PointData(
            x=point.x,
            y=point.y,
            z=point.z,
            e=e,
            speed=speed,
            layer_index=max(self._current_layer, 0),
            point_index=point_index,
        )
