"""Search and match engine.

Evaluates a search term against every node of a document tree and reports
the paths of matching nodes together with the ancestor paths a tree view
needs to expand in order to reveal them.
"""

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern, Set, Union

from xml_explorer.shared import (
    DiagnosticSeverity,
    ExplorerConfig,
    ExplorerError,
    InvalidPatternError,
    MissingInputError,
    get_logger,
)
from xml_explorer.shared.result import OperationResult
from xml_explorer.tree.nodes import XMLDocumentTree, XMLNode
from xml_explorer.tree.paths import ancestor_prefixes

MS_PER_SECOND = 1000

# Word boundaries that also hold for terms starting or ending in punctuation
_WHOLE_WORD_TEMPLATE = r"(?<!\w)(?:{})(?!\w)"


class SearchScope(Enum):
    """Which parts of a node a search term is tested against."""

    ALL = "all"
    ELEMENTS = "elements"
    ATTRIBUTES = "attributes"
    VALUES = "values"


@dataclass
class SearchOptions:
    """Options refining how a search term is matched."""

    case_sensitive: bool = False
    whole_word: bool = False
    search_in: SearchScope = SearchScope.ALL
    use_regex: bool = False

    def __post_init__(self) -> None:
        """Accept scope names as plain strings."""
        if not isinstance(self.search_in, SearchScope):
            try:
                self.search_in = SearchScope(str(self.search_in).lower())
            except ValueError as e:
                valid = [scope.value for scope in SearchScope]
                raise ValueError(f"search_in must be one of {valid}") from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchOptions":
        """Create options from a dict using either snake_case or camelCase keys."""
        def _pick(snake: str, camel: str, default: Any) -> Any:
            return data.get(snake, data.get(camel, default))

        return cls(
            case_sensitive=bool(_pick("case_sensitive", "caseSensitive", False)),
            whole_word=bool(_pick("whole_word", "wholeWord", False)),
            search_in=_pick("search_in", "searchIn", SearchScope.ALL),
            use_regex=bool(_pick("use_regex", "useRegex", False)),
        )


@dataclass
class SearchResult(OperationResult):
    """Result of a search over a document tree."""

    term: str = ""
    options: SearchOptions = field(default_factory=SearchOptions)
    matched_paths: Set[str] = field(default_factory=set)
    ancestor_expansion_paths: Set[str] = field(default_factory=set)
    matched_indices: List[int] = field(default_factory=list)
    truncated: bool = False

    @property
    def match_count(self) -> int:
        """Number of matching nodes (not paths, which may collide)."""
        return len(self.matched_indices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "term": self.term,
            "search_in": self.options.search_in.value,
            "match_count": self.match_count,
            "matched_paths": sorted(self.matched_paths),
            "ancestor_expansion_paths": sorted(self.ancestor_expansion_paths),
            "truncated": self.truncated,
            "error": self.error.to_dict() if self.error else None,
        }


def compile_matcher(term: str, options: SearchOptions) -> Callable[[str], bool]:
    """Build the text predicate for ``term`` under ``options``.

    Raises:
        MissingInputError: If the term is empty or blank
        InvalidPatternError: If ``use_regex`` is set and the term does not compile
    """
    if term is None or not term.strip():
        raise MissingInputError("term", "Please enter a search term")

    flags = 0 if options.case_sensitive else re.IGNORECASE

    if options.use_regex or options.whole_word:
        source = term if options.use_regex else re.escape(term)
        if options.whole_word:
            source = _WHOLE_WORD_TEMPLATE.format(source)
        try:
            regex: Pattern[str] = re.compile(source, flags)
        except re.error as e:
            raise InvalidPatternError(term, str(e)) from e
        return lambda text: regex.search(text) is not None

    if options.case_sensitive:
        return lambda text: term in text

    folded = term.lower()
    return lambda text: folded in text.lower()


def validate_pattern(term: str, options: Optional[SearchOptions] = None) -> Optional[ExplorerError]:
    """Check a term without searching; returns the error it would raise, if any."""
    try:
        compile_matcher(term, options or SearchOptions())
    except ExplorerError as e:
        return e
    return None


def node_matches(
    node: XMLNode,
    scope: SearchScope,
    contains: Callable[[str], bool],
) -> bool:
    """Decide whether a single node contains the term within ``scope``."""
    if node.is_element:
        if scope in (SearchScope.ALL, SearchScope.ELEMENTS) and contains(node.name):
            return True
        if scope in (SearchScope.ALL, SearchScope.ATTRIBUTES):
            return any(
                contains(name) or contains(value)
                for name, value in node.attributes.items()
            )
        return False

    if scope in (SearchScope.ALL, SearchScope.VALUES):
        return contains(node.value)
    return False


class XMLSearchEngine:
    """Searches document trees.

    Stateless between calls: every search builds its own match sets, so any
    number of searches over the same tree are independent.
    """

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ExplorerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "search_engine")

    def search(
        self,
        tree: Optional[XMLDocumentTree],
        term: str,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None,
    ) -> SearchResult:
        """Search ``tree`` for ``term``.

        Args:
            tree: Document tree to search
            term: Substring, or pattern when ``options.use_regex`` is set
            options: Search options (object or dict)

        Returns:
            SearchResult with matched paths and ancestor expansion paths
        """
        start_time = time.time()
        if isinstance(options, dict):
            options = SearchOptions.from_dict(options)
        options = options or SearchOptions()
        result = SearchResult(
            correlation_id=self.correlation_id, term=term or "", options=options
        )

        try:
            if tree is None:
                raise MissingInputError("tree", "No XML document loaded")
            contains = compile_matcher(term, options)
        except ExplorerError as e:
            result.fail(e, "search_engine")
            self.logger.warning(
                "Search rejected", extra={"error": e.message, "error_type": type(e).__name__}
            )
            return result

        self.logger.info(
            "Starting search",
            extra={
                "search_in": options.search_in.value,
                "case_sensitive": options.case_sensitive,
                "whole_word": options.whole_word,
                "use_regex": options.use_regex,
            }
        )

        max_matches = self.config.search.max_matches
        for node in tree.iter_nodes():
            result.performance.nodes_visited += 1
            if not node_matches(node, options.search_in, contains):
                continue
            if max_matches is not None and len(result.matched_indices) >= max_matches:
                result.truncated = True
                result.add_diagnostic(
                    DiagnosticSeverity.WARNING,
                    f"Search stopped after {max_matches} matches",
                    "search_engine",
                    details={"max_matches": max_matches},
                )
                break
            path = tree.path_of(node)
            result.matched_indices.append(node.index)
            result.matched_paths.add(path)
            result.ancestor_expansion_paths.update(ancestor_prefixes(path))

        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        self.logger.info(
            "Search completed",
            extra={
                "match_count": result.match_count,
                "distinct_paths": len(result.matched_paths),
            }
        )
        return result


def search(
    tree: Optional[XMLDocumentTree],
    term: str,
    options: Optional[Union[SearchOptions, Dict[str, Any]]] = None,
    config: Optional[ExplorerConfig] = None,
) -> SearchResult:
    """Search a document tree.

    Examples:
        >>> from xml_explorer.tree import build
        >>> tree = build('<lib><year>1997</year></lib>').tree
        >>> search(tree, "1997", SearchOptions(search_in=SearchScope.VALUES)).matched_paths
        {'lib/year/text()[0]'}
    """
    return XMLSearchEngine(config).search(tree, term, options)


def matching_nodes(tree: XMLDocumentTree, result: SearchResult) -> List[XMLNode]:
    """Resolve a search result's matched indices back to nodes."""
    return [tree.get(index) for index in result.matched_indices]
