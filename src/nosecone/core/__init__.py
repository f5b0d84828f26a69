"""
Core module - Shared configuration, units, logging and exceptions.
"""

from nosecone.core.config import (
    ConfigManager,
    NoseConeParameters,
    load_parameters,
    parameters_from_dict,
)
from nosecone.core.exceptions import (
    NoseConeError,
    ConfigurationError,
    GeometryError,
    InvalidShapeError,
    InvalidShapeParameterError,
    SlicingError,
)
from nosecone.core.units import to_celsius, to_millimeters

__all__ = [
    # Config
    "ConfigManager",
    "NoseConeParameters",
    "load_parameters",
    "parameters_from_dict",
    # Exceptions
    "NoseConeError",
    "ConfigurationError",
    "GeometryError",
    "InvalidShapeError",
    "InvalidShapeParameterError",
    "SlicingError",
    # Units
    "to_celsius",
    "to_millimeters",
]
