"""Session API for interactive XML exploration.

This module provides the top of the progressive-disclosure API: module-level
functions re-exported from the components, and the ``XMLExplorer`` session
class which holds the single current document together with the state a
browsing user accumulates (last search, selection).
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from xml_explorer.analysis import AnalysisResult, XMLStructureAnalyzer
from xml_explorer.extraction import (
    ExtractionQuery,
    ExtractionResult,
    PreviewResult,
    XMLExtractionEngine,
)
from xml_explorer.search import SearchOptions, SearchResult, XMLSearchEngine
from xml_explorer.shared import ExplorerConfig, get_logger, new_correlation_id
from xml_explorer.tree import BuildResult, XMLDocumentTree, XMLNode, XMLTreeBuilder
from xml_explorer.tree.builder import PASTED_CONTENT_FILENAME

SAMPLE_FILENAME = "sample-bookstore.xml"

SAMPLE_BOOKSTORE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<bookstore>
  <book category="fiction">
    <title lang="en">Harry Potter and the Philosopher's Stone</title>
    <author>J.K. Rowling</author>
    <year>1997</year>
    <price>24.99</price>
  </book>
  <book category="fiction">
    <title lang="en">The Lord of the Rings</title>
    <author>J.R.R. Tolkien</author>
    <year>1954</year>
    <price>29.99</price>
  </book>
  <book category="technical">
    <title lang="en">XML Processing with Python</title>
    <author>John Smith</author>
    <year>2018</year>
    <price>49.95</price>
  </book>
  <book category="technical">
    <title lang="en">Learning XML</title>
    <author>Erik T. Ray</author>
    <year>2003</year>
    <price>39.95</price>
  </book>
</bookstore>"""


def load_sample(config: Optional[ExplorerConfig] = None) -> BuildResult:
    """Build the bundled bookstore sample document.

    Examples:
        >>> tree = load_sample().tree
        >>> tree.filename
        'sample-bookstore.xml'
        >>> len(tree.root.element_children)
        4
    """
    return XMLTreeBuilder(config).build(SAMPLE_BOOKSTORE_XML, filename=SAMPLE_FILENAME)


class XMLExplorer:
    """Exploration session over one current document.

    Loading a document replaces the current tree and resets search and
    selection state. A load that fails leaves the previous document in place.

    Attributes:
        config: Configuration shared by all components of the session
        tree: Current document tree, if any
        last_search: Result of the most recent search on the current tree
        selected_path: Path most recently selected through ``select``

    Examples:
        >>> explorer = XMLExplorer()
        >>> explorer.load_sample().success
        True
        >>> explorer.search("fiction").match_count
        2
        >>> explorer.analyze().element_counts["book"]
        4
    """

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize exploration session.

        Args:
            config: Exploration configuration (defaults when omitted)
            clock: Timestamp source passed to the extraction engine
        """
        self.config = config or ExplorerConfig()
        self.clock = clock
        self.correlation_id: Optional[str] = None
        self.tree: Optional[XMLDocumentTree] = None
        self.last_search: Optional[SearchResult] = None
        self.selected_path: Optional[str] = None

        self._load_count = 0
        self._failed_loads = 0
        self.logger = get_logger(__name__, None, "explorer")

    @property
    def filename(self) -> Optional[str]:
        return self.tree.filename if self.tree else None

    @property
    def has_document(self) -> bool:
        return self.tree is not None

    @property
    def expanded_paths(self) -> set:
        """Paths a tree view shows expanded: initial set plus last search ancestors."""
        if self.tree is None:
            return set()
        expanded = set(self.tree.expanded_paths)
        if self.last_search is not None and self.last_search.success:
            expanded.update(self.last_search.ancestor_expansion_paths)
        return expanded

    # Loading

    def _accept(self, result: BuildResult, correlation_id: Optional[str]) -> BuildResult:
        self._load_count += 1
        if not result.success:
            self._failed_loads += 1
            self.logger.warning(
                "Load failed, keeping current document",
                extra={
                    "error": result.error.message if result.error else None,
                    "has_document": self.tree is not None,
                }
            )
            return result

        self.tree = result.tree
        self.correlation_id = correlation_id
        self.logger = self.logger.bind(correlation_id)
        self.last_search = None
        self.selected_path = None
        self.logger.info(
            "Document loaded",
            extra={
                "document_name": self.tree.filename,
                "node_count": self.tree.node_count,
            }
        )
        return result

    def _new_session_id(self) -> Optional[str]:
        if not self.config.global_.enable_correlation_tracking:
            return None
        return new_correlation_id()

    def load_text(self, xml_text: str, filename: Optional[str] = None) -> BuildResult:
        """Load a document from XML text (pasted content when unnamed)."""
        correlation_id = self._new_session_id()
        builder = XMLTreeBuilder(self.config, correlation_id)
        result = builder.build(xml_text, filename or PASTED_CONTENT_FILENAME)
        return self._accept(result, correlation_id)

    def load_file(self, file_path: Union[str, Path]) -> BuildResult:
        """Load a document from an ``.xml`` file."""
        correlation_id = self._new_session_id()
        result = XMLTreeBuilder(self.config, correlation_id).build_file(file_path)
        return self._accept(result, correlation_id)

    def load_sample(self) -> BuildResult:
        """Load the bundled bookstore sample."""
        return self.load_text(SAMPLE_BOOKSTORE_XML, SAMPLE_FILENAME)

    def clear(self) -> None:
        """Drop the current document and all state derived from it."""
        self.tree = None
        self.correlation_id = None
        self.last_search = None
        self.selected_path = None
        self.logger = self.logger.bind(None)
        self.logger.info("Session cleared")

    # Operations on the current document

    def search(
        self,
        term: str,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None,
    ) -> SearchResult:
        """Search the current document and remember the result."""
        result = XMLSearchEngine(self.config, self.correlation_id).search(
            self.tree, term, options
        )
        self.last_search = result
        return result

    def analyze(self) -> AnalysisResult:
        return XMLStructureAnalyzer(self.config, self.correlation_id).analyze(self.tree)

    def _extraction_engine(self) -> XMLExtractionEngine:
        return XMLExtractionEngine(self.config, self.correlation_id, self.clock)

    @staticmethod
    def _coerce_query(query: Union[ExtractionQuery, Dict[str, Any]]) -> ExtractionQuery:
        if isinstance(query, dict):
            return ExtractionQuery.from_dict(query)
        return query

    def preview(self, query: Union[ExtractionQuery, Dict[str, Any]]) -> PreviewResult:
        return self._extraction_engine().preview(self.tree, self._coerce_query(query))

    def extract(self, query: Union[ExtractionQuery, Dict[str, Any]]) -> ExtractionResult:
        return self._extraction_engine().extract(self.tree, self._coerce_query(query))

    def save_extraction(
        self,
        result: ExtractionResult,
        directory: Union[str, Path] = ".",
    ) -> Path:
        """Write an extraction result into ``directory`` under its download name."""
        target = result.save(directory)
        self.logger.info("Extraction saved", extra={"target": str(target)})
        return target

    def select(self, path: str) -> List[XMLNode]:
        """Select the nodes addressed by ``path`` in the current document.

        An unknown path clears the selection and returns an empty list.
        """
        if self.tree is None:
            self.selected_path = None
            return []
        nodes = self.tree.find_by_path(path)
        self.selected_path = path if nodes else None
        return nodes

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get session usage statistics."""
        return {
            "total_loads": self._load_count,
            "failed_loads": self._failed_loads,
            "has_document": self.has_document,
            "filename": self.filename,
            "correlation_id": self.correlation_id,
        }
