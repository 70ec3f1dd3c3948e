"""Document model builder.

This module turns raw XML text into an ``XMLDocumentTree``. Character-level
parsing is delegated to the standard library's expat-backed DOM builder;
this module only converts the resulting DOM into the exploration model,
assigns addresses and computes the initial display expansion set.

Parsing is atomic: either a complete tree is returned or a ``ParseError``
is reported through the result, never a partial tree.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union
from xml.dom import Node, minidom
from xml.parsers.expat import ExpatError

import psutil

from xml_explorer.shared import (
    DiagnosticSeverity,
    ExplorerConfig,
    ExplorerError,
    ParseError,
    SizeLimits,
    get_logger,
)
from xml_explorer.shared.result import OperationResult
from xml_explorer.tree.nodes import NodeKind, XMLDocumentTree, XMLNode, assign_addresses

MS_PER_SECOND = 1000
XML_FILE_SUFFIX = ".xml"
PASTED_CONTENT_FILENAME = "pasted-content.xml"


class SizeLevel(Enum):
    """Advisory classification of an input's size."""

    OK = "ok"
    WARN = "warn"
    REJECT = "reject"


@dataclass
class SizeReport:
    """Size heuristics reported back to callers of ``build``.

    The builder never refuses input because of its size; the level lets the
    surrounding caller decide whether to warn or defer.
    """

    byte_length: int = 0
    node_count: int = 0
    element_count: int = 0
    level: SizeLevel = SizeLevel.OK

    @classmethod
    def measure(cls, byte_length: int, limits: SizeLimits) -> "SizeReport":
        if byte_length > limits.reject_bytes:
            level = SizeLevel.REJECT
        elif byte_length > limits.warn_bytes:
            level = SizeLevel.WARN
        else:
            level = SizeLevel.OK
        return cls(byte_length=byte_length, level=level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byte_length": self.byte_length,
            "node_count": self.node_count,
            "element_count": self.element_count,
            "level": self.level.value,
        }


@dataclass
class BuildResult(OperationResult):
    """Result of building a document tree."""

    tree: Optional[XMLDocumentTree] = None
    size_report: SizeReport = field(default_factory=SizeReport)

    @property
    def expanded_paths(self) -> Set[str]:
        return set(self.tree.expanded_paths) if self.tree else set()


class XMLTreeBuilder:
    """Builds document trees from raw XML text.

    Each call to ``build`` is independent; the builder holds only its
    configuration and logger.
    """

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Exploration configuration (defaults when omitted)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ExplorerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")

    def build(self, xml_text: str, filename: Optional[str] = None) -> BuildResult:
        """Build a document tree from already-materialized XML text.

        Args:
            xml_text: Complete XML document
            filename: Name the document was loaded under, if any

        Returns:
            BuildResult with the tree on success or a ParseError on failure
        """
        start_time = time.time()
        process = psutil.Process()
        memory_before = process.memory_info().rss

        result = BuildResult(correlation_id=self.correlation_id)
        text = xml_text or ""
        result.performance.characters_processed = len(text)
        result.size_report = SizeReport.measure(
            len(text.encode("utf-8")), self.config.limits
        )

        self.logger.info(
            "Starting tree building",
            extra={"content_length": len(text), "document_name": filename}
        )

        try:
            tree = self._build_tree(text, filename)
        except ParseError as e:
            result.fail(e, "tree_builder")
            self.logger.warning(
                "Document is not well-formed",
                extra={"error": e.message, **e.details}
            )
        except Exception as e:
            # Never-fail guarantee
            self.logger.exception("Tree building failed")
            result.fail(ExplorerError(f"Tree building failed: {e}"), "tree_builder")
        else:
            result.tree = tree
            result.size_report.node_count = tree.node_count
            result.size_report.element_count = tree.element_count
            result.performance.nodes_visited = tree.node_count
            self.logger.info(
                "Tree building completed",
                extra={
                    "node_count": tree.node_count,
                    "element_count": tree.element_count,
                    "expanded_paths": len(tree.expanded_paths),
                }
            )

        if result.size_report.level is not SizeLevel.OK:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Input size {result.size_report.byte_length} bytes exceeds the "
                f"{result.size_report.level.value} threshold",
                "tree_builder",
                details=result.size_report.to_dict(),
            )

        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        result.performance.memory_used_bytes = max(
            0, process.memory_info().rss - memory_before
        )
        return result

    def build_file(
        self,
        file_path: Union[str, Path],
        encoding: str = "utf-8",
    ) -> BuildResult:
        """Read an ``.xml`` file and build its tree.

        Extension and read failures are reported as ``ParseError`` results.
        """
        path = Path(file_path)
        if path.suffix.lower() != XML_FILE_SUFFIX:
            return self._failed_result(
                ParseError(f"Not an XML file (expected .xml extension): {path.name}")
            )
        try:
            content = path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(
                "Could not read XML file", extra={"file": str(path), "error": str(e)}
            )
            return self._failed_result(ParseError(f"Could not read file {path.name}: {e}"))
        return self.build(content, filename=path.name)

    def _failed_result(self, error: ParseError) -> BuildResult:
        result = BuildResult(correlation_id=self.correlation_id)
        result.fail(error, "tree_builder")
        return result

    def _build_tree(self, text: str, filename: Optional[str]) -> XMLDocumentTree:
        if not text.strip():
            raise ParseError("Document is empty")

        try:
            dom = minidom.parseString(text)
        except ExpatError as e:
            raise ParseError(str(e), line=e.lineno, column=e.offset) from e

        # The DOM is left to the garbage collector; Node.unlink() recurses
        root = self._convert(dom.documentElement)

        tree = XMLDocumentTree(
            root=root,
            nodes=assign_addresses(root),
            path_mode=self.config.tree.path_mode,
            filename=filename,
            source_length=len(text),
        )
        tree.expanded_paths = self._initial_expansion(tree)
        return tree

    def _convert(self, dom_root: Any) -> XMLNode:
        """Convert the DOM rooted at the document element, without recursion."""
        max_depth = self.config.tree.max_depth
        root = self._element_from_dom(dom_root)
        stack = [(dom_root, root, 0)]

        while stack:
            dom_element, element, depth = stack.pop()
            if max_depth is not None and depth >= max_depth and any(
                dom_child.nodeType == Node.ELEMENT_NODE for dom_child in dom_element.childNodes
            ):
                raise ParseError(
                    f"Document nesting exceeds maximum depth of {max_depth}"
                )
            for position, dom_child in enumerate(dom_element.childNodes):
                child = self._child_from_dom(dom_child)
                if child is None:
                    if dom_child.nodeType == Node.TEXT_NODE:
                        element.whitespace_runs[position] = dom_child.data
                    continue
                child.position = position
                element.children.append(child)
                if child.is_element:
                    stack.append((dom_child, child, depth + 1))

        return root

    def _element_from_dom(self, dom_element: Any) -> XMLNode:
        return XMLNode.element(
            dom_element.nodeName,
            attributes=dict(dom_element.attributes.items()),
        )

    def _child_from_dom(self, dom_node: Any) -> Optional[XMLNode]:
        node_type = dom_node.nodeType
        if node_type == Node.ELEMENT_NODE:
            return self._element_from_dom(dom_node)
        if node_type == Node.CDATA_SECTION_NODE:
            return XMLNode.cdata(dom_node.data)
        if node_type == Node.TEXT_NODE:
            stripped = dom_node.data.strip()
            if not stripped:
                return None
            return XMLNode.text(stripped, raw_value=dom_node.data)
        if node_type == Node.COMMENT_NODE:
            return XMLNode.comment(dom_node.data)
        # Processing instructions and entity nodes are not modeled
        return None

    def _initial_expansion(self, tree: XMLDocumentTree) -> Set[str]:
        """Paths that start expanded: the root and single-text-child elements."""
        expanded = {tree.path_of(tree.root)}
        if not self.config.tree.expand_single_text_elements:
            return expanded
        for element in tree.iter_elements():
            if len(element.children) == 1 and element.children[0].kind is NodeKind.TEXT:
                expanded.add(tree.path_of(element))
        return expanded


def build(
    xml_text: str,
    filename: Optional[str] = None,
    config: Optional[ExplorerConfig] = None,
    correlation_id: Optional[str] = None,
) -> BuildResult:
    """Build a document tree from XML text.

    Examples:
        >>> result = build('<bookstore><book><year>1997</year></book></bookstore>')
        >>> result.success
        True
        >>> result.tree.root.name
        'bookstore'

        >>> build('<a><b></a>').success
        False
    """
    return XMLTreeBuilder(config, correlation_id).build(xml_text, filename)


def build_file(
    file_path: Union[str, Path],
    config: Optional[ExplorerConfig] = None,
    correlation_id: Optional[str] = None,
) -> BuildResult:
    """Build a document tree from an ``.xml`` file."""
    return XMLTreeBuilder(config, correlation_id).build_file(file_path)


def count_node_kinds(nodes: List[XMLNode]) -> Dict[str, int]:
    """Count nodes per kind, used for tree summaries."""
    counts: Dict[str, int] = {kind.value: 0 for kind in NodeKind}
    for node in nodes:
        counts[node.kind.value] += 1
    return counts
