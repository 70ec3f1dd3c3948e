"""Search and match engine for XML exploration."""

from .matcher import (
    SearchOptions,
    SearchResult,
    SearchScope,
    XMLSearchEngine,
    compile_matcher,
    matching_nodes,
    node_matches,
    search,
    validate_pattern,
)

__all__ = [
    "SearchOptions",
    "SearchResult",
    "SearchScope",
    "XMLSearchEngine",
    "compile_matcher",
    "matching_nodes",
    "node_matches",
    "search",
    "validate_pattern",
]
