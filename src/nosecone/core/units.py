"""
Length and temperature units for parameter files.

The generator works in millimeters and degrees Celsius. Parameter files may
give a bare number (already mm / C) or a string with a unit suffix such as
``"26.6mm"``, ``"1.05 in"`` or ``"140F"``.
"""

import re
from enum import Enum
from typing import Union

_QUANTITY_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-zA-Z°]*)\s*$")

Quantity = Union[int, float, str]


class LengthUnit(Enum):
    """Supported length units and their size in millimeters."""

    MM = "mm"
    CM = "cm"
    M = "m"
    INCH = "in"

    @property
    def mm_per_unit(self) -> float:
        return _MM_PER_UNIT[self]

    def to_mm(self, value: float) -> float:
        return value * self.mm_per_unit

    @classmethod
    def parse(cls, label: str) -> "LengthUnit":
        key = label.strip().lower()
        if key in _LENGTH_ALIASES:
            return _LENGTH_ALIASES[key]
        raise ValueError(f"Unknown length unit: {label!r}")


_MM_PER_UNIT = {
    LengthUnit.MM: 1.0,
    LengthUnit.CM: 10.0,
    LengthUnit.M: 1000.0,
    LengthUnit.INCH: 25.4,
}

_LENGTH_ALIASES = {
    "": LengthUnit.MM,
    "mm": LengthUnit.MM,
    "cm": LengthUnit.CM,
    "m": LengthUnit.M,
    "in": LengthUnit.INCH,
    "inch": LengthUnit.INCH,
    "inches": LengthUnit.INCH,
}


class TemperatureUnit(Enum):
    """Supported temperature scales."""

    C = "C"
    F = "F"
    K = "K"

    def to_celsius(self, value: float) -> float:
        if self is TemperatureUnit.F:
            return (value - 32.0) * 5.0 / 9.0
        if self is TemperatureUnit.K:
            return value - 273.15
        return value

    @classmethod
    def parse(cls, label: str) -> "TemperatureUnit":
        key = label.strip().lstrip("°").upper()
        if key in ("", "C"):
            return cls.C
        if key == "F":
            return cls.F
        if key == "K":
            return cls.K
        raise ValueError(f"Unknown temperature unit: {label!r}")


def _split_quantity(value: Quantity) -> tuple[float, str]:
    """Split a number or ``"<number><unit>"`` string into value and unit label."""
    if isinstance(value, bool):
        raise ValueError(f"Expected a quantity, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value), ""
    if isinstance(value, str):
        match = _QUANTITY_RE.match(value)
        if match is None:
            raise ValueError(f"Cannot parse quantity: {value!r}")
        return float(match.group(1)), match.group(2)
    raise ValueError(f"Expected a number or string quantity, got {type(value).__name__}")


def to_millimeters(value: Quantity) -> float:
    """
    Normalize a length to millimeters.

    Args:
        value: Bare number (mm) or string with a length unit suffix.

    Returns:
        Length in millimeters.

    Raises:
        ValueError: If the value or its unit cannot be parsed.
    """
    number, label = _split_quantity(value)
    return LengthUnit.parse(label).to_mm(number)


def to_celsius(value: Quantity) -> float:
    """
    Normalize a temperature to degrees Celsius.

    Args:
        value: Bare number (C) or string with a ``C``, ``F`` or ``K`` suffix.

    Returns:
        Temperature in degrees Celsius.

    Raises:
        ValueError: If the value or its unit cannot be parsed.
    """
    number, label = _split_quantity(value)
    return TemperatureUnit.parse(label).to_celsius(number)
