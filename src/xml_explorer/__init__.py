"""XML Explorer Toolkit.

Load an XML document into an addressable node tree, then search it, compute
structural statistics over it and extract matching elements into a new
document.

Progressive API Disclosure:
- Level 1: Simple functions - build(), search(), analyze(), extract()
- Level 2: Session class - XMLExplorer
- Level 3: Components - XMLTreeBuilder, XMLSearchEngine, XMLStructureAnalyzer,
  XMLExtractionEngine with ExplorerConfig
"""

__version__ = "0.1.0"
__author__ = "XML Explorer Toolkit Team"

# Progressive API disclosure - Level 1: Simple functions
from .api import (
    SAMPLE_BOOKSTORE_XML,
    XMLExplorer,
    analyze,
    build,
    build_file,
    extract,
    load_sample,
    preview,
    search,
    validate_pattern,
)

# Components and configuration for advanced usage
from .analysis import AnalysisResult, XMLStructureAnalyzer
from .extraction import (
    ExtractionBasis,
    ExtractionQuery,
    ExtractionResult,
    PreviewResult,
    XMLExtractionEngine,
    format_xml,
    pretty_print,
    serialize,
)
from .search import SearchOptions, SearchResult, SearchScope, XMLSearchEngine
from .shared import (
    ExplorerConfig,
    ExplorerError,
    InvalidPatternError,
    MissingInputError,
    ParseError,
    PathMode,
)

# Core result objects and data structures
from .tree import BuildResult, NodeKind, XMLDocumentTree, XMLNode, XMLTreeBuilder

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "build",
    "build_file",
    "search",
    "validate_pattern",
    "analyze",
    "preview",
    "extract",
    "load_sample",
    "SAMPLE_BOOKSTORE_XML",

    # Level 2: Session class
    "XMLExplorer",

    # Level 3: Components
    "XMLTreeBuilder",
    "XMLSearchEngine",
    "XMLStructureAnalyzer",
    "XMLExtractionEngine",

    # Result objects and data structures
    "BuildResult",
    "SearchResult",
    "AnalysisResult",
    "PreviewResult",
    "ExtractionResult",
    "XMLDocumentTree",
    "XMLNode",
    "NodeKind",

    # Options and configuration
    "SearchOptions",
    "SearchScope",
    "ExtractionQuery",
    "ExtractionBasis",
    "ExplorerConfig",
    "PathMode",

    # Formatting
    "serialize",
    "format_xml",
    "pretty_print",

    # Errors
    "ExplorerError",
    "ParseError",
    "InvalidPatternError",
    "MissingInputError",
]
