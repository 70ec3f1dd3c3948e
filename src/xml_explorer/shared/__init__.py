"""Shared utilities for XML exploration.

This module provides the error taxonomy, result envelopes, configuration
objects and logging helpers used across all exploration components.
"""

from .errors import (
    ExplorerError,
    InvalidPatternError,
    MissingInputError,
    ParseError,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    OperationResult,
    PerformanceMetrics,
)
from .config import (
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
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
    new_correlation_id,
)

__all__ = [
    "ExplorerError",
    "InvalidPatternError",
    "MissingInputError",
    "ParseError",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "OperationResult",
    "PerformanceMetrics",
    "AnalysisConfig",
    "ConfigError",
    "ConfigValidationError",
    "ExplorerConfig",
    "ExtractionConfig",
    "FormatterMode",
    "GlobalConfig",
    "PathMode",
    "SearchConfig",
    "SizeLimits",
    "TreeConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "new_correlation_id",
]
