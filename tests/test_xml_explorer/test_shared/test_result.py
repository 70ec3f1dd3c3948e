"""Tests for result envelopes, diagnostics and the error taxonomy."""

import pytest

from xml_explorer.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ExplorerError,
    InvalidPatternError,
    MissingInputError,
    OperationResult,
    ParseError,
    PerformanceMetrics,
)


class TestErrors:
    """Test the error taxonomy."""

    def test_parse_error_location(self):
        """Test that parse errors carry line and column details."""
        error = ParseError("mismatched tag", line=1, column=8)
        assert error.message == "mismatched tag"
        assert error.line == 1
        assert error.column == 8
        assert error.details == {"line": 1, "column": 8}
        assert isinstance(error, ExplorerError)

    def test_parse_error_without_location(self):
        """Test parse errors raised before the parser runs."""
        error = ParseError("Document is empty")
        assert error.details == {}

    def test_invalid_pattern_message(self):
        """Test the invalid pattern message format."""
        error = InvalidPatternError("[a-", "unterminated character set")
        assert error.message == "Invalid regular expression '[a-': unterminated character set"
        assert error.details["pattern"] == "[a-"

    def test_missing_input_default_message(self):
        """Test the generated message for missing input."""
        error = MissingInputError("term")
        assert error.message == "Missing required input: term"
        assert error.field_name == "term"

    def test_to_dict(self):
        """Test error dictionary representation."""
        data = MissingInputError("tree", "No XML document loaded").to_dict()
        assert data == {
            "type": "MissingInputError",
            "message": "No XML document loaded",
            "details": {"field": "tree"},
        }


class TestDiagnosticEntry:
    """Test diagnostic entries."""

    def test_validation(self):
        """Test that message and component are required."""
        with pytest.raises(ValueError, match="message"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "tree_builder")
        with pytest.raises(ValueError, match="component"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "note", "")

    def test_to_dict(self):
        """Test diagnostic dictionary representation."""
        entry = DiagnosticEntry(DiagnosticSeverity.WARNING, "large", "tree_builder")
        assert entry.to_dict() == {
            "severity": "WARNING",
            "message": "large",
            "component": "tree_builder",
            "details": {},
        }


class TestPerformanceMetrics:
    """Test performance metric calculations."""

    def test_rates(self):
        """Test per-second rates."""
        metrics = PerformanceMetrics(
            processing_time_ms=500.0, characters_processed=1000, nodes_visited=50
        )
        assert metrics.characters_per_second == 2000.0
        assert metrics.nodes_per_second == 100.0

    def test_rates_without_time(self):
        """Test that zero time yields zero rates."""
        metrics = PerformanceMetrics(characters_processed=1000)
        assert metrics.characters_per_second == 0.0
        assert metrics.nodes_per_second == 0.0


class TestOperationResult:
    """Test the common result envelope."""

    def test_default_is_success(self):
        """Test a fresh result reports success."""
        result = OperationResult()
        assert result.success is True
        assert result.error is None
        assert not result.has_errors()
        result.raise_for_error()

    def test_fail_records_error(self):
        """Test that failing records the error and an ERROR diagnostic."""
        result = OperationResult(correlation_id="abc")
        error = ParseError("bad", line=2, column=3)
        result.fail(error, "tree_builder")

        assert result.success is False
        assert result.error is error
        assert result.has_errors()
        errors = result.get_diagnostics_by_severity(DiagnosticSeverity.ERROR)
        assert len(errors) == 1
        assert errors[0].details == {"error_type": "ParseError", "line": 2, "column": 3}
        assert errors[0].correlation_id == "abc"

    def test_raise_for_error(self):
        """Test re-raising the recorded error."""
        result = OperationResult()
        result.fail(MissingInputError("term"), "search_engine")
        with pytest.raises(MissingInputError):
            result.raise_for_error()

    def test_warnings_are_not_errors(self):
        """Test that warnings do not count as errors."""
        result = OperationResult()
        result.add_diagnostic(DiagnosticSeverity.WARNING, "capped", "search_engine")
        assert not result.has_errors()
        assert result.success is True
