"""Error taxonomy for XML exploration operations.

Core entry points never let these escape in normal operation: they are caught
at the component boundary and attached to the returned result object. Callers
that prefer exceptions can use ``raise_for_error()`` on any result.
"""

from typing import Any, Dict, Optional


class ExplorerError(Exception):
    """Base exception for all XML explorer errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "details": dict(self.details),
        }


class ParseError(ExplorerError):
    """Raised when the input document is not well-formed XML.

    The message is the underlying parser's error text, reported verbatim.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        super().__init__(message, details)
        self.line = line
        self.column = column


class InvalidPatternError(ExplorerError):
    """Raised when a search term used as a regular expression does not compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(
            f"Invalid regular expression {pattern!r}: {reason}",
            {"pattern": pattern, "reason": reason},
        )
        self.pattern = pattern
        self.reason = reason


class MissingInputError(ExplorerError):
    """Raised when a required term or document is absent."""

    def __init__(self, field_name: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Missing required input: {field_name}",
            {"field": field_name},
        )
        self.field_name = field_name
