"""
Pytest configuration and shared fixtures.
"""

import logging
import tempfile
from pathlib import Path

import pytest
import structlog

from nosecone.core.config import NoseConeParameters
from nosecone.core.logging import LOGGER_NAME


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def conic_params():
    """Conic cone with a 10 mm wall-centre radius and 55 mm length, no base tube."""
    return NoseConeParameters(
        shape="Conic",
        diameter=21.0,
        height_ratio=2.75,
        wall_thickness=1.0,
        base_height=0.0,
        layer_height=0.2,
        resolution=0.5,
        filament_diameter=1.75,
    )


@pytest.fixture
def small_params():
    """Small, fast cone with a short base tube."""
    return NoseConeParameters(
        shape="Haack",
        shape_parameter=1 / 3,
        diameter=11.0,
        height_ratio=1.5,
        wall_thickness=1.0,
        base_height=0.6,
        layer_height=0.3,
        resolution=1.0,
    )


@pytest.fixture
def sample_params_file(temp_dir):
    """Write a YAML parameter file with unit-suffixed values."""
    params_file = temp_dir / "cone.yaml"
    params_file.write_text(
        """
# Small LV-Haack cone
shape: Haack
shape_parameter: 0.333
diameter: 1.1cm
height_ratio: 1.5
wall_thickness: 1mm
base_height: 0.6
layer_height: 0.3mm
resolution: 1mm
bed_temperature: 140F
"""
    )
    return params_file


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a configuration directory with two cone profiles."""
    config_dir = temp_dir / "config"
    (config_dir / "cones").mkdir(parents=True)

    (config_dir / "cones" / "tiny_conic.yaml").write_text(
        """
shape: Conic
diameter: 9mm
height_ratio: 1
layer_height: 0.4mm
resolution: 1mm
"""
    )
    (config_dir / "cones" / "tiny_ogive.json").write_text(
        '{"Shape": "TangentOgive", "Diameter": "9mm", "Ratio": 1.5, '
        '"LayerHeight": "0.4mm", "Resolution": "1mm"}'
    )
    (config_dir / "cones" / "notes.txt").write_text("not a profile")
    return config_dir


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging so no handler outlives the test that created it."""
    yield
    structlog.contextvars.clear_contextvars()
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
    structlog.reset_defaults()
