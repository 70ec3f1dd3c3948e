"""Configuration classes for XML exploration.

This module provides configuration objects for every exploration component,
enabling control over path addressing, search, analysis, extraction output
and input size advisories.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

_MEGABYTE = 1024 * 1024
_COMPONENTS = ["tree", "search", "analysis", "extraction", "limits", "global_"]


class PathMode(Enum):
    """How node paths are rendered."""

    NAME_CHAIN = "name_chain"   # Tag-name chain, same-tagged siblings collide
    POSITIONAL = "positional"   # Ordinal-disambiguated, unique per node


class FormatterMode(Enum):
    """How extraction output is indented."""

    STRUCTURAL = "structural"   # Printed directly from the in-memory tree
    COMPAT = "compat"           # Bracket-adjacency text heuristic


@dataclass
class TreeConfig:
    """Configuration for document model building."""

    path_mode: PathMode = PathMode.NAME_CHAIN
    expand_single_text_elements: bool = True
    max_depth: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("max_depth must be > 0 or None")


@dataclass
class SearchConfig:
    """Configuration for the search and match engine."""

    max_matches: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate search configuration."""
        if self.max_matches is not None and self.max_matches <= 0:
            raise ValueError("max_matches must be > 0 or None")


@dataclass
class AnalysisConfig:
    """Configuration for structural statistics."""

    # Whether text, comment and CDATA nodes push max_depth past their element
    count_text_depth: bool = True
    top_n: int = 10

    def __post_init__(self) -> None:
        """Validate analysis configuration."""
        if self.top_n <= 0:
            raise ValueError("top_n must be > 0")


@dataclass
class ExtractionConfig:
    """Configuration for extraction and result serialization."""

    formatter_mode: FormatterMode = FormatterMode.STRUCTURAL
    indent_width: int = 2
    preview_sample_size: int = 5
    default_filename: str = "data.xml"
    download_prefix: str = "extracted-"
    mime_type: str = "application/xml"
    include_declaration: bool = False

    def __post_init__(self) -> None:
        """Validate extraction configuration."""
        if self.indent_width < 0:
            raise ValueError("indent_width must be >= 0")
        if self.preview_sample_size < 0:
            raise ValueError("preview_sample_size must be >= 0")
        if not self.default_filename:
            raise ValueError("default_filename cannot be empty")


@dataclass
class SizeLimits:
    """Advisory input size thresholds reported back to callers."""

    warn_bytes: int = 10 * _MEGABYTE
    reject_bytes: int = 20 * _MEGABYTE

    def __post_init__(self) -> None:
        """Validate size limits."""
        if self.warn_bytes <= 0:
            raise ValueError("warn_bytes must be > 0")
        if self.reject_bytes <= 0:
            raise ValueError("reject_bytes must be > 0")
        if self.warn_bytes > self.reject_bytes:
            raise ValueError("warn_bytes must be <= reject_bytes")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ExplorerConfig:
    """Complete configuration for all exploration components.

    Immutable at the top level; component sections are plain dataclasses and
    are replaced rather than mutated by ``override``.
    """

    tree: TreeConfig = field(default_factory=TreeConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    limits: SizeLimits = field(default_factory=SizeLimits)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    version: str = "1.0.0"
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ExplorerConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: ``section__field`` keys for component fields, plain keys
                for top-level fields

        Returns:
            New ExplorerConfig instance with overrides applied

        Example:
            >>> config = ExplorerConfig()
            >>> config.override(tree__path_mode=PathMode.POSITIONAL).tree.path_mode
            <PathMode.POSITIONAL: 'positional'>
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = _split_override_key(key)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration section: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS:
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExplorerConfig":
        """Create configuration from dictionary.

        Unknown keys are ignored; enum members may be given by name or value.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                field_type = field_info.type

                if hasattr(field_type, "__dataclass_fields__"):
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                elif isinstance(field_type, type) and issubclass(field_type, Enum):
                    field_values[field_name] = _coerce_enum(field_type, value)
                else:
                    field_values[field_name] = value

            return target_class(**field_values)

        try:
            result = _dict_to_dataclass(data, cls)
        except (TypeError, ValueError, KeyError) as e:
            raise ConfigValidationError(f"Invalid configuration data: {e}") from e
        return result

    @classmethod
    def from_json(cls, json_str: str) -> "ExplorerConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ExplorerConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def strict_paths(cls) -> "ExplorerConfig":
        """Create preset where every node path is unique."""
        return cls(
            tree=TreeConfig(path_mode=PathMode.POSITIONAL),
            name="strict_paths",
            description="Positional paths: same-tagged siblings are addressed separately",
        )

    @classmethod
    def compatibility(cls) -> "ExplorerConfig":
        """Create preset reproducing the legacy path and formatting behavior."""
        return cls(
            tree=TreeConfig(path_mode=PathMode.NAME_CHAIN),
            analysis=AnalysisConfig(count_text_depth=True),
            extraction=ExtractionConfig(formatter_mode=FormatterMode.COMPAT),
            name="compatibility",
            description="Name-chain paths and bracket-adjacency formatting",
        )


def _split_override_key(key: str) -> Tuple[str, str]:
    """Split a ``section__field`` key, honoring sections that end in an underscore."""
    for component in _COMPONENTS:
        prefix = component + "__"
        if key.startswith(prefix):
            return component, key[len(prefix):]
    component, field_name = key.split("__", 1)
    return component, field_name


def _coerce_enum(enum_type: Any, value: Any) -> Any:
    """Resolve an enum member from a member, name or value."""
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str) and value in enum_type.__members__:
        return enum_type[value]
    return enum_type(value)
