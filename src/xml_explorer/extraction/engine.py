"""Criteria-driven extraction engine.

Selects elements matching an extraction query, optionally rebuilds their
ancestor context, and assembles a new ``extraction-results`` document that
shares no nodes with the source tree.

Matching is a plain case-sensitive substring check and ignores search
options.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from xml_explorer.shared import (
    ExplorerConfig,
    ExplorerError,
    FormatterMode,
    MissingInputError,
    PathMode,
    get_logger,
)
from xml_explorer.shared.result import OperationResult
from xml_explorer.extraction.formatter import (
    XML_DECLARATION,
    format_xml,
    pretty_print,
    serialize,
)
from xml_explorer.tree.nodes import NodeKind, XMLDocumentTree, XMLNode, assign_addresses
from xml_explorer.tree.paths import name_chain_key

MS_PER_SECOND = 1000
RESULT_ROOT_NAME = "extraction-results"


class ExtractionBasis(Enum):
    """Dimension an extraction query is matched against."""

    ELEMENT_NAME = "element"
    ATTRIBUTE = "attribute"
    CONTENT = "content"

    @classmethod
    def parse(cls, value: Union[str, "ExtractionBasis"]) -> "ExtractionBasis":
        """Resolve a basis from a member, its value, or a common alias."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().replace("_", "").replace("-", "").lower()
        aliases = {
            "element": cls.ELEMENT_NAME,
            "elementname": cls.ELEMENT_NAME,
            "attribute": cls.ATTRIBUTE,
            "content": cls.CONTENT,
        }
        if normalized not in aliases:
            raise ValueError(
                f"basis must be one of {[basis.value for basis in cls]}, got {value!r}"
            )
        return aliases[normalized]


@dataclass
class ExtractionQuery:
    """Criteria for selecting and shaping extracted elements."""

    term: str
    basis: ExtractionBasis = ExtractionBasis.ELEMENT_NAME
    specific_element: Optional[str] = None
    specific_attribute: Optional[str] = None
    include_ancestors: bool = True
    preserve_structure: bool = True

    def __post_init__(self) -> None:
        """Normalize basis and blank optional filters."""
        self.basis = ExtractionBasis.parse(self.basis)
        self.specific_element = self.specific_element or None
        self.specific_attribute = self.specific_attribute or None

    @property
    def reconstructs_ancestors(self) -> bool:
        return self.include_ancestors and self.preserve_structure

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractionQuery":
        """Create a query from a dict using either snake_case or camelCase keys."""
        def _pick(snake: str, camel: str, default: Any) -> Any:
            return data.get(snake, data.get(camel, default))

        return cls(
            term=_pick("term", "term", ""),
            basis=_pick("basis", "basis", ExtractionBasis.ELEMENT_NAME),
            specific_element=_pick("specific_element", "specificElement", None),
            specific_attribute=_pick("specific_attribute", "specificAttribute", None),
            include_ancestors=bool(_pick("include_ancestors", "includeAncestors", True)),
            preserve_structure=bool(_pick("preserve_structure", "preserveStructure", True)),
        )


@dataclass
class PreviewResult(OperationResult):
    """Dry run of an extraction: counts and samples, nothing assembled."""

    match_count: int = 0
    sample_nodes: List[XMLNode] = field(default_factory=list)
    sample_paths: List[str] = field(default_factory=list)
    element_counts: Dict[str, int] = field(default_factory=dict)
    attribute_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "match_count": self.match_count,
            "sample_paths": list(self.sample_paths),
            "element_counts": dict(self.element_counts),
            "attribute_counts": dict(self.attribute_counts),
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class ExtractionResult(OperationResult):
    """Assembled extraction output ready to be offered for download."""

    document: Optional[XMLNode] = None
    xml_text: str = ""
    matched_count: int = 0
    source: str = ""
    extracted_at: str = ""
    download_name: str = ""
    mime_type: str = "application/xml"

    @property
    def result_count(self) -> int:
        """Top-level children of the result document."""
        return len(self.document.children) if self.document else 0

    def save(self, directory: Union[str, Path]) -> Path:
        """Write the formatted output into ``directory`` under its download name."""
        if not self.success or self.document is None:
            raise MissingInputError("document", "No extraction output to save")
        target = Path(directory) / self.download_name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.xml_text, encoding="utf-8")
        return target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "matched_count": self.matched_count,
            "result_count": self.result_count,
            "source": self.source,
            "extracted": self.extracted_at,
            "download_name": self.download_name,
            "mime_type": self.mime_type,
            "error": self.error.to_dict() if self.error else None,
        }


def iso_timestamp(moment: datetime) -> str:
    """Render a moment as UTC ISO-8601 with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class XMLExtractionEngine:
    """Runs extraction queries against document trees."""

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        correlation_id: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize extraction engine.

        Args:
            config: Exploration configuration (defaults when omitted)
            correlation_id: Optional correlation ID for request tracking
            clock: Source of the extraction timestamp (UTC now by default)
        """
        self.config = config or ExplorerConfig()
        self.correlation_id = correlation_id
        self.clock = clock or _utc_now
        self.logger = get_logger(__name__, correlation_id, "extraction_engine")

    # Selection

    def select(self, tree: XMLDocumentTree, query: ExtractionQuery) -> List[XMLNode]:
        """Select matching elements in document order.

        Only elements are ever selected; text-like nodes are consulted
        through their parent's text content.
        """
        term = query.term
        if query.basis is ExtractionBasis.ATTRIBUTE:
            return [
                node for node in tree.iter_elements()
                if self._attribute_matches(node, query.specific_attribute, term)
            ]

        texts = self._text_content_index(tree)
        if query.basis is ExtractionBasis.CONTENT:
            return [
                node for node in tree.iter_elements()
                if not node.has_element_children
                and texts[node.index]
                and term in texts[node.index]
            ]

        return [
            node for node in tree.iter_elements()
            if (query.specific_element is None or node.name == query.specific_element)
            and (term in node.name or term in texts[node.index])
        ]

    @staticmethod
    def _attribute_matches(node: XMLNode, specific_attribute: Optional[str], term: str) -> bool:
        if specific_attribute is not None:
            value = node.attributes.get(specific_attribute)
            return value is not None and term in value
        return any(
            term in name or term in value for name, value in node.attributes.items()
        )

    @staticmethod
    def _text_content_index(tree: XMLDocumentTree) -> List[str]:
        """Text content of every node, computed children-first in one pass."""
        texts = [""] * tree.node_count
        # Pre-order arena: every child has a higher index than its parent
        for node in reversed(tree.nodes):
            if node.kind is NodeKind.TEXT:
                texts[node.index] = node.raw_value if node.raw_value is not None else node.value
            elif node.kind is NodeKind.CDATA:
                texts[node.index] = node.value
            elif node.kind is NodeKind.ELEMENT:
                texts[node.index] = "".join(
                    item if isinstance(item, str) else texts[item.index]
                    for item in node.content_sequence()
                )
        return texts

    # Reconstruction

    def _structure_key(self, tree: XMLDocumentTree, node: XMLNode) -> str:
        if tree.path_mode is PathMode.POSITIONAL:
            return node.position_path
        return name_chain_key(tree.lineage_names(node))

    def _with_ancestor_chain(self, tree: XMLDocumentTree, node: XMLNode) -> XMLNode:
        """Deep copy of ``node`` hung below attribute-only copies of its ancestors."""
        current = node.deep_copy()
        for ancestor in tree.ancestors(node):
            skeleton = XMLNode.element(ancestor.name, ancestor.attributes)
            skeleton.children.append(current)
            current = skeleton
        return current

    def _with_parent(self, tree: XMLDocumentTree, node: XMLNode) -> XMLNode:
        copy = node.deep_copy()
        parent = tree.parent(node)
        if parent is None:
            return copy
        return XMLNode.element(parent.name, parent.attributes, [copy])

    def shape(self, tree: XMLDocumentTree, matched: List[XMLNode], query: ExtractionQuery) -> List[XMLNode]:
        """Turn selected nodes into independent result subtrees.

        With ancestor reconstruction only the first node per structural path
        is kept; later nodes sharing that path are dropped.
        """
        if query.reconstructs_ancestors:
            seen_keys = set()
            shaped = []
            for node in matched:
                key = self._structure_key(tree, node)
                if key in seen_keys:
                    continue
                seen_keys.add(key)
                shaped.append(self._with_ancestor_chain(tree, node))
            return shaped
        if query.include_ancestors:
            return [self._with_parent(tree, node) for node in matched]
        return [node.deep_copy() for node in matched]

    # Entry points

    def _validate(self, tree: Optional[XMLDocumentTree], query: Optional[ExtractionQuery]) -> None:
        if tree is None:
            raise MissingInputError("tree", "Please provide an XML document")
        if query is None or not query.term:
            raise MissingInputError("term", "Please provide a search term")

    def preview(
        self,
        tree: Optional[XMLDocumentTree],
        query: Optional[ExtractionQuery],
    ) -> PreviewResult:
        """Run selection only and summarize what an extraction would contain."""
        start_time = time.time()
        result = PreviewResult(correlation_id=self.correlation_id)
        try:
            self._validate(tree, query)
        except ExplorerError as e:
            result.fail(e, "extraction_engine")
            self.logger.warning("Preview rejected", extra={"error": e.message})
            return result

        matched = self.select(tree, query)
        result.match_count = len(matched)
        result.sample_nodes = matched[:self.config.extraction.preview_sample_size]
        result.sample_paths = [tree.path_of(node) for node in result.sample_nodes]
        for node in matched:
            result.element_counts[node.name] = result.element_counts.get(node.name, 0) + 1
            for attribute_name in node.attributes:
                result.attribute_counts[attribute_name] = (
                    result.attribute_counts.get(attribute_name, 0) + 1
                )
        result.performance.nodes_visited = tree.node_count
        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        self.logger.info(
            "Preview completed",
            extra={"basis": query.basis.value, "match_count": result.match_count}
        )
        return result

    def extract(
        self,
        tree: Optional[XMLDocumentTree],
        query: Optional[ExtractionQuery],
        source_filename: Optional[str] = None,
    ) -> ExtractionResult:
        """Extract matching elements into a new ``extraction-results`` document.

        Args:
            tree: Source document tree (never modified)
            query: Extraction criteria
            source_filename: Name recorded in the ``source`` attribute;
                defaults to the tree's filename

        Returns:
            ExtractionResult with the result document and its formatted text
        """
        start_time = time.time()
        extraction_config = self.config.extraction
        result = ExtractionResult(
            correlation_id=self.correlation_id, mime_type=extraction_config.mime_type
        )
        try:
            self._validate(tree, query)
        except ExplorerError as e:
            result.fail(e, "extraction_engine")
            self.logger.warning("Extraction rejected", extra={"error": e.message})
            return result

        source = source_filename if source_filename is not None else (tree.filename or "")
        self.logger.info(
            "Starting extraction",
            extra={
                "basis": query.basis.value,
                "include_ancestors": query.include_ancestors,
                "preserve_structure": query.preserve_structure,
            }
        )

        try:
            matched = self.select(tree, query)
            shaped = self.shape(tree, matched, query)
            extracted_at = iso_timestamp(self.clock())
            root = XMLNode.element(
                RESULT_ROOT_NAME,
                {
                    "source": source,
                    "extracted": extracted_at,
                    "search-term": query.term,
                },
                shaped,
            )
            assign_addresses(root)
            xml_text = self.render(root)
        except Exception as e:
            # Never-fail guarantee
            self.logger.exception("Extraction failed")
            result.fail(ExplorerError(f"Extraction failed: {e}"), "extraction_engine")
            return result

        result.source = source
        result.extracted_at = extracted_at
        result.document = root
        result.matched_count = len(matched)
        result.xml_text = xml_text
        result.download_name = (
            extraction_config.download_prefix + (source or extraction_config.default_filename)
        )
        result.performance.nodes_visited = tree.node_count
        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

        self.logger.info(
            "Extraction completed",
            extra={
                "matched_count": result.matched_count,
                "result_count": result.result_count,
                "processing_time_ms": result.performance.processing_time_ms,
            }
        )
        return result

    def render(self, root: XMLNode) -> str:
        """Serialize and indent a result document per the configured formatter."""
        extraction_config = self.config.extraction
        if extraction_config.formatter_mode is FormatterMode.COMPAT:
            text = format_xml(serialize(root), extraction_config.indent_width)
        else:
            text = pretty_print(root, extraction_config.indent_width)
        if extraction_config.include_declaration:
            text = f"{XML_DECLARATION}\n{text}"
        return text


def preview(
    tree: Optional[XMLDocumentTree],
    query: Optional[ExtractionQuery],
    config: Optional[ExplorerConfig] = None,
) -> PreviewResult:
    """Dry-run an extraction query."""
    return XMLExtractionEngine(config).preview(tree, query)


def extract(
    tree: Optional[XMLDocumentTree],
    query: Optional[ExtractionQuery],
    source_filename: Optional[str] = None,
    config: Optional[ExplorerConfig] = None,
) -> ExtractionResult:
    """Extract matching elements from a document tree."""
    return XMLExtractionEngine(config).extract(tree, query, source_filename)
