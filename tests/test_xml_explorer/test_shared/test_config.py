"""Tests for the exploration configuration system."""

import json
from dataclasses import FrozenInstanceError

import pytest

from xml_explorer.shared.config import (
    AnalysisConfig,
    ConfigError,
    ConfigValidationError,
    ExplorerConfig,
    ExtractionConfig,
    FormatterMode,
    GlobalConfig,
    PathMode,
    SearchConfig,
    SizeLimits,
    TreeConfig,
)


class TestComponentConfigs:
    """Test suite for component configuration sections."""

    def test_tree_defaults(self):
        """Test default tree configuration values."""
        config = TreeConfig()
        assert config.path_mode is PathMode.NAME_CHAIN
        assert config.expand_single_text_elements is True
        assert config.max_depth is None

    def test_tree_rejects_non_positive_depth(self):
        """Test that max_depth must be positive."""
        with pytest.raises(ValueError, match="max_depth"):
            TreeConfig(max_depth=0)

    def test_search_rejects_non_positive_match_cap(self):
        """Test that max_matches must be positive."""
        with pytest.raises(ValueError, match="max_matches"):
            SearchConfig(max_matches=-1)

    def test_analysis_defaults(self):
        """Test default analysis configuration values."""
        config = AnalysisConfig()
        assert config.count_text_depth is True
        assert config.top_n == 10

    def test_extraction_defaults(self):
        """Test default extraction configuration values."""
        config = ExtractionConfig()
        assert config.formatter_mode is FormatterMode.STRUCTURAL
        assert config.indent_width == 2
        assert config.default_filename == "data.xml"
        assert config.download_prefix == "extracted-"
        assert config.mime_type == "application/xml"
        assert config.include_declaration is False

    def test_extraction_validation(self):
        """Test extraction configuration validation failures."""
        with pytest.raises(ValueError, match="indent_width"):
            ExtractionConfig(indent_width=-1)
        with pytest.raises(ValueError, match="default_filename"):
            ExtractionConfig(default_filename="")

    def test_size_limits_ordering(self):
        """Test that the warn threshold cannot exceed the reject threshold."""
        limits = SizeLimits()
        assert limits.warn_bytes == 10 * 1024 * 1024
        assert limits.reject_bytes == 20 * 1024 * 1024
        with pytest.raises(ValueError, match="warn_bytes"):
            SizeLimits(warn_bytes=200, reject_bytes=100)

    def test_global_logging_level(self):
        """Test logging level validation."""
        assert GlobalConfig().logging_level == "INFO"
        with pytest.raises(ValueError, match="logging_level"):
            GlobalConfig(logging_level="VERBOSE")


class TestExplorerConfig:
    """Test suite for the complete exploration configuration."""

    def test_is_frozen(self):
        """Test that the top-level configuration is immutable."""
        config = ExplorerConfig()
        with pytest.raises(FrozenInstanceError):
            config.version = "2.0.0"

    def test_override_component_field(self):
        """Test overriding a nested field returns a new configuration."""
        config = ExplorerConfig()
        positional = config.override(tree__path_mode=PathMode.POSITIONAL)

        assert positional.tree.path_mode is PathMode.POSITIONAL
        assert config.tree.path_mode is PathMode.NAME_CHAIN

    def test_override_top_level_field(self):
        """Test overriding a top-level field."""
        config = ExplorerConfig().override(name="custom")
        assert config.name == "custom"

    def test_override_global_section(self):
        """Test overriding the underscore-suffixed global section."""
        config = ExplorerConfig().override(global___logging_level="DEBUG")
        assert config.global_.logging_level == "DEBUG"

    def test_override_unknown_section(self):
        """Test that unknown sections are rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ExplorerConfig().override(parser__strict=True)
        assert exc_info.value.field_name == "parser__strict"
        assert "tree" in exc_info.value.suggestions

    def test_override_invalid_value(self):
        """Test that invalid override values raise validation errors."""
        with pytest.raises(ConfigValidationError):
            ExplorerConfig().override(analysis__top_n=0)

    def test_validation_error_is_config_error(self):
        """Test exception hierarchy."""
        assert issubclass(ConfigValidationError, ConfigError)

    def test_to_dict_uses_enum_names(self):
        """Test dictionary serialization of enum fields."""
        data = ExplorerConfig.strict_paths().to_dict()
        assert data["tree"]["path_mode"] == "POSITIONAL"
        assert data["extraction"]["formatter_mode"] == "STRUCTURAL"
        assert data["name"] == "strict_paths"

    def test_json_round_trip(self):
        """Test that configuration survives JSON serialization."""
        config = ExplorerConfig.compatibility()
        restored = ExplorerConfig.from_json(config.to_json())
        assert restored == config

    def test_from_dict_accepts_enum_values(self):
        """Test enum coercion from values as well as names."""
        config = ExplorerConfig.from_dict({
            "tree": {"path_mode": "positional"},
            "extraction": {"formatter_mode": "COMPAT", "indent_width": 4},
        })
        assert config.tree.path_mode is PathMode.POSITIONAL
        assert config.extraction.formatter_mode is FormatterMode.COMPAT
        assert config.extraction.indent_width == 4

    def test_from_dict_ignores_unknown_keys(self):
        """Test that unknown keys do not break loading."""
        config = ExplorerConfig.from_dict({"unknown": 1, "search": {"max_matches": 5}})
        assert config.search.max_matches == 5

    def test_from_dict_invalid_data(self):
        """Test that invalid values surface as validation errors."""
        with pytest.raises(ConfigValidationError):
            ExplorerConfig.from_dict({"tree": {"path_mode": "sideways"}})

    def test_from_json_invalid(self):
        """Test malformed JSON handling."""
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ExplorerConfig.from_json("{not json")
        with pytest.raises(ConfigValidationError, match="must be an object"):
            ExplorerConfig.from_json(json.dumps([1, 2]))


class TestPresets:
    """Test suite for configuration presets."""

    def test_default_preset(self):
        """Test the default preset."""
        config = ExplorerConfig.default()
        assert config.name == "default"
        assert config.tree.path_mode is PathMode.NAME_CHAIN
        assert config.analysis.count_text_depth is True

    def test_strict_paths_preset(self):
        """Test the positional path preset."""
        config = ExplorerConfig.strict_paths()
        assert config.tree.path_mode is PathMode.POSITIONAL

    def test_compatibility_preset(self):
        """Test the legacy behavior preset."""
        config = ExplorerConfig.compatibility()
        assert config.tree.path_mode is PathMode.NAME_CHAIN
        assert config.analysis.count_text_depth is True
        assert config.extraction.formatter_mode is FormatterMode.COMPAT
