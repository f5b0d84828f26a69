"""
Unit tests for configuration management.
"""

import pytest

from nosecone.core.config import (
    ConfigManager,
    NoseConeParameters,
    load_parameters,
    normalize_key,
    parameters_from_dict,
)
from nosecone.core.exceptions import ConfigurationError


class TestNoseConeParameters:
    """Tests for the NoseConeParameters model."""

    def test_defaults(self):
        """Test defaults match a 26.6 mm Von Karman cone."""
        params = NoseConeParameters()
        assert params.shape == "Haack"
        assert params.shape_parameter == 0.0
        assert params.diameter == 26.6
        assert params.height_ratio == 5.5
        assert params.layer_height == 0.2
        assert params.resolution == 0.5
        assert params.filament_diameter == 1.75
        assert params.brim is None
        assert params.fan_speed == 100
        assert params.taper_zone == 8.0

    def test_length_units_normalized(self):
        """Test length strings are converted to millimeters."""
        params = NoseConeParameters(diameter="1in", wall_thickness="0.1cm", base_height="0.01m")
        assert params.diameter == pytest.approx(25.4)
        assert params.wall_thickness == pytest.approx(1.0)
        assert params.base_height == pytest.approx(10.0)

    def test_temperature_units_normalized(self):
        """Test temperature strings are converted to Celsius."""
        params = NoseConeParameters(bed_temperature="140F", extruder_temperature="503.15K")
        assert params.bed_temperature == pytest.approx(60.0)
        assert params.extruder_temperature == pytest.approx(230.0)

    def test_brim_accepts_units(self):
        """Test the optional brim width is normalized when present."""
        params = NoseConeParameters(brim="0.5cm")
        assert params.brim == pytest.approx(5.0)

    def test_rejects_non_positive_resolution(self):
        """Test validation of positive lengths."""
        with pytest.raises(ValueError):
            NoseConeParameters(resolution=0)

    def test_is_frozen(self):
        """Test parameters cannot be modified after creation."""
        params = NoseConeParameters()
        with pytest.raises(ValueError):
            params.diameter = 10.0


class TestParameterLoading:
    """Tests for parameter file loading."""

    def test_normalize_key(self):
        """Test key styles map to field names."""
        assert normalize_key("WallThickness") == "wall_thickness"
        assert normalize_key("wallThickness") == "wall_thickness"
        assert normalize_key("build-plate-width") == "build_plate_width"
        assert normalize_key("Ratio") == "height_ratio"
        assert normalize_key("shape_parameter") == "shape_parameter"

    def test_from_dict_pascal_case(self):
        """Test PascalCase keys from older parameter files."""
        params = parameters_from_dict({"Shape": "Conic", "Diameter": "30mm", "Ratio": 3})
        assert params.shape == "Conic"
        assert params.diameter == 30.0
        assert params.height_ratio == 3.0

    def test_from_dict_unknown_key(self):
        """Test unknown keys are reported."""
        with pytest.raises(ConfigurationError) as exc_info:
            parameters_from_dict({"diamter": 30})
        assert "errors" in exc_info.value.details

    def test_from_dict_bad_unit(self):
        """Test an unknown unit is a configuration error."""
        with pytest.raises(ConfigurationError):
            parameters_from_dict({"diameter": "3 furlongs"})

    def test_load_yaml(self, sample_params_file):
        """Test loading a YAML parameter file."""
        params = load_parameters(sample_params_file)
        assert params.shape == "Haack"
        assert params.diameter == pytest.approx(11.0)
        assert params.layer_height == pytest.approx(0.3)
        assert params.bed_temperature == pytest.approx(60.0)

    def test_load_json(self, temp_dir):
        """Test JSON files load through the same path."""
        path = temp_dir / "cone.json"
        path.write_text('{"Shape": "Elliptical", "Diameter": "20mm", "LayerHeight": "0.25mm"}')
        params = load_parameters(path)
        assert params.shape == "Elliptical"
        assert params.layer_height == 0.25

    def test_load_missing_file(self, temp_dir):
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_parameters(temp_dir / "missing.yaml")

    def test_load_empty_file(self, temp_dir):
        """Test an empty file raises ConfigurationError."""
        path = temp_dir / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="empty"):
            load_parameters(path)

    def test_load_non_mapping(self, temp_dir):
        """Test a list document is rejected."""
        path = temp_dir / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError):
            load_parameters(path)

    def test_load_malformed_yaml(self, temp_dir):
        """Test a syntax error is wrapped."""
        path = temp_dir / "bad.yaml"
        path.write_text("shape: [Conic\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_parameters(path)
        assert "error" in exc_info.value.details


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_init_with_invalid_dir(self, temp_dir):
        """Test initialization with non-existent directory."""
        with pytest.raises(ConfigurationError):
            ConfigManager(temp_dir / "nonexistent")

    def test_list_profiles(self, sample_config_dir):
        """Test only parameter files are listed."""
        manager = ConfigManager(sample_config_dir)
        assert manager.list_profiles() == ["tiny_conic", "tiny_ogive"]

    def test_get_profile(self, sample_config_dir):
        """Test getting a profile by name."""
        manager = ConfigManager(sample_config_dir)
        params = manager.get_profile("tiny_ogive")
        assert params.shape == "TangentOgive"
        assert params.height_ratio == 1.5

    def test_get_profile_not_found(self, sample_config_dir):
        """Test getting a non-existent profile."""
        manager = ConfigManager(sample_config_dir)
        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_profile("nonexistent")
        assert "available" in exc_info.value.details

    def test_empty_config_dir(self, temp_dir):
        """Test a directory without a cones folder has no profiles."""
        manager = ConfigManager(temp_dir)
        assert manager.list_profiles() == []

    def test_invalid_profile_is_isolated(self, temp_dir):
        """Test a broken profile file does not hide the valid ones."""
        cones = temp_dir / "cones"
        cones.mkdir()
        (cones / "good.yaml").write_text("shape: Conic\ndiameter: 9mm\n")
        (cones / "zbad.yaml").write_text("shape: Conic\nnose_colour: red\n")

        manager = ConfigManager(temp_dir)
        assert manager.list_profiles() == ["good", "zbad"]
        assert manager.get_profile("good").shape == "Conic"
        with pytest.raises(ConfigurationError, match="zbad"):
            manager.get_profile("zbad")

    def test_profile_parsed_once(self, sample_config_dir):
        manager = ConfigManager(sample_config_dir)
        assert manager.get_profile("tiny_conic") is manager.get_profile("tiny_conic")
