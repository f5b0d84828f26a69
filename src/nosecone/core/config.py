"""
Configuration management for the nose cone generator.

Handles loading, unit normalization and validation of cone parameter files,
and access to a directory of named parameter profiles.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nosecone.core.exceptions import ConfigurationError
from nosecone.core.units import to_celsius, to_millimeters

PROFILE_SUFFIXES = (".yaml", ".yml", ".json")

# Keys used by older parameter files
_KEY_ALIASES = {
    "ratio": "height_ratio",
    "brim_width": "brim",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_LENGTH_FIELDS = (
    "diameter",
    "wall_thickness",
    "base_height",
    "layer_height",
    "resolution",
    "filament_diameter",
    "build_plate_width",
    "build_plate_depth",
    "brim",
    "taper_zone",
)

_TEMPERATURE_FIELDS = ("bed_temperature", "extruder_temperature")


class NoseConeParameters(BaseModel):
    """
    Print parameters for one nose cone, normalized to mm and C.

    Length fields accept a number (mm) or a string with a unit suffix,
    temperature fields a number (C) or a string with a ``C``/``F``/``K`` suffix.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    shape: str = "Haack"
    shape_parameter: float = 0.0
    diameter: float = Field(default=26.6, gt=0)
    height_ratio: float = Field(default=5.5, gt=0)
    wall_thickness: float = Field(default=1.0, gt=0)
    base_height: float = Field(default=0.0, ge=0)
    layer_height: float = Field(default=0.2, gt=0)
    resolution: float = Field(default=0.5, gt=0)
    filament_diameter: float = Field(default=1.75, gt=0)
    bed_temperature: float = 60.0
    extruder_temperature: float = 230.0
    build_plate_width: float = Field(default=220.0, gt=0)
    build_plate_depth: float = Field(default=220.0, gt=0)
    brim: Optional[Annotated[float, Field(ge=0)]] = None
    fan_speed: int = Field(default=100, ge=0, le=100)
    taper_zone: float = Field(default=8.0, gt=0)

    @field_validator(*_LENGTH_FIELDS, mode="before")
    @classmethod
    def _normalize_length(cls, value: Any) -> Any:
        if value is None:
            return None
        return to_millimeters(value)

    @field_validator(*_TEMPERATURE_FIELDS, mode="before")
    @classmethod
    def _normalize_temperature(cls, value: Any) -> Any:
        return to_celsius(value)


def normalize_key(key: str) -> str:
    """Map ``WallThickness`` / ``wallThickness`` / ``wall-thickness`` to ``wall_thickness``."""
    snake = _CAMEL_BOUNDARY.sub("_", key.strip()).replace("-", "_").lower()
    return _KEY_ALIASES.get(snake, snake)


def parameters_from_dict(data: dict[str, Any], source: str = "<dict>") -> NoseConeParameters:
    """
    Build validated parameters from a raw mapping.

    Args:
        data: Raw key/value pairs, keys in any supported case style.
        source: Where the data came from, reported in errors.

    Returns:
        NoseConeParameters instance

    Raises:
        ConfigurationError: If keys are unknown or values invalid
    """
    normalized = {normalize_key(str(k)): v for k, v in data.items()}
    try:
        return NoseConeParameters(**normalized)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid parameters in {source}",
            details={"errors": [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ]},
        )


def load_parameters(path: Path) -> NoseConeParameters:
    """
    Load a parameter file (YAML or JSON).

    Args:
        path: Parameter file path

    Returns:
        NoseConeParameters instance

    Raises:
        ConfigurationError: If the file is missing, empty or invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Parameters file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse parameters file: {path}",
            details={"error": str(e)},
        )

    if data is None:
        raise ConfigurationError(f"Parameters file is empty: {path}")
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Parameters file must contain a mapping: {path}",
            details={"type": type(data).__name__},
        )

    return parameters_from_dict(data, source=str(path))


@dataclass
class ConfigManager:
    """
    Library of named cone profiles stored as parameter files in a directory.

    Profiles are discovered by file name and parsed on first use, so one
    broken file only affects requests for that profile.

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> params = config.get_profile("von_karman")
    """

    config_dir: Path
    _paths: dict[str, Path] = field(default_factory=dict, init=False)
    _profiles: dict[str, NoseConeParameters] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(
                f"Configuration directory not found: {self.config_dir}"
            )

    def load(self) -> None:
        """Discover the profile files in the ``cones`` subdirectory."""
        self._paths.clear()
        self._profiles.clear()
        cones_dir = self.config_dir / "cones"
        if cones_dir.exists():
            for config_file in sorted(cones_dir.iterdir()):
                if config_file.suffix.lower() in PROFILE_SUFFIXES:
                    self._paths.setdefault(config_file.stem, config_file)
        self._loaded = True

    def get_profile(self, name: str) -> NoseConeParameters:
        """
        Get a cone profile by name.

        Args:
            name: Profile file name without extension

        Returns:
            NoseConeParameters instance

        Raises:
            ConfigurationError: If the profile does not exist or its file is invalid
        """
        if not self._loaded:
            self.load()

        if name not in self._paths:
            raise ConfigurationError(
                f"Cone profile not found: {name}",
                details={"available": list(self._paths.keys())},
            )
        if name not in self._profiles:
            self._profiles[name] = load_parameters(self._paths[name])
        return self._profiles[name]

    def list_profiles(self) -> list[str]:
        """List available cone profiles, whether or not their files are valid."""
        if not self._loaded:
            self.load()
        return list(self._paths.keys())
