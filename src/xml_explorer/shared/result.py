"""Result objects and diagnostic types for XML exploration.

Every core operation returns a result object derived from ``OperationResult``
instead of raising: failures are reported through ``success``, ``error`` and
the attached diagnostics.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from xml_explorer.shared.errors import ExplorerError


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "details": self.details or {},
        }


@dataclass
class PerformanceMetrics:
    """Timing and size counters for a single operation."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    characters_processed: int = 0
    nodes_visited: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def nodes_per_second(self) -> float:
        """Calculate nodes visited per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.nodes_visited * 1000.0) / self.processing_time_ms


@dataclass
class OperationResult:
    """Common success/failure envelope shared by all core operations."""

    success: bool = True
    error: Optional[ExplorerError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def fail(self, error: ExplorerError, component: str) -> None:
        """Mark the result as failed and record the error as a diagnostic."""
        self.success = False
        self.error = error
        self.add_diagnostic(
            DiagnosticSeverity.ERROR,
            error.message,
            component,
            details={"error_type": type(error).__name__, **error.details},
        )

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def raise_for_error(self) -> None:
        """Re-raise the recorded error, if any."""
        if self.error is not None:
            raise self.error

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms
