"""Structural analyzer.

A single pre-order traversal that tallies element names, attribute names and
elements per depth level, along with totals and the maximum depth reached.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from xml_explorer.shared import (
    ExplorerConfig,
    ExplorerError,
    MissingInputError,
    get_logger,
)
from xml_explorer.shared.result import OperationResult
from xml_explorer.tree.nodes import XMLDocumentTree

MS_PER_SECOND = 1000


def rank_counts(counts: Dict[Any, int]) -> List[Tuple[Any, int]]:
    """Order counts by frequency, descending; ties keep first-seen order."""
    return sorted(counts.items(), key=lambda item: -item[1])


@dataclass
class AnalysisResult(OperationResult):
    """Statistics record for one document.

    The count dicts preserve first-seen (document) order; the ``sorted_*``
    views rank them by frequency for chart and list consumers.
    """

    element_counts: Dict[str, int] = field(default_factory=dict)
    attribute_counts: Dict[str, int] = field(default_factory=dict)
    depth_counts: Dict[int, int] = field(default_factory=dict)
    max_depth: int = 0
    total_elements: int = 0
    total_attributes: int = 0

    @property
    def sorted_elements(self) -> List[Tuple[str, int]]:
        return rank_counts(self.element_counts)

    @property
    def sorted_attributes(self) -> List[Tuple[str, int]]:
        return rank_counts(self.attribute_counts)

    @property
    def sorted_depths(self) -> List[Tuple[int, int]]:
        """Depth buckets ordered by level, ascending."""
        return sorted(self.depth_counts.items())

    def top_elements(self, limit: int = 10) -> List[Tuple[str, int]]:
        return self.sorted_elements[:limit]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
            "element_counts": dict(self.element_counts),
            "attribute_counts": dict(self.attribute_counts),
            "depth_counts": {str(level): count for level, count in self.sorted_depths},
            "error": self.error.to_dict() if self.error else None,
        }

    def to_dataframe(self, kind: str = "elements") -> Any:
        """Convert one of the rankings to a pandas DataFrame.

        Args:
            kind: ``elements``, ``attributes`` or ``depths``

        Returns:
            DataFrame with ``name``/``count`` (or ``level``/``count``) columns

        Raises:
            ImportError: If pandas is not installed (``pip install xml-explorer-toolkit[pandas]``)
        """
        import pandas as pd  # noqa: PLC0415

        if kind == "elements":
            return pd.DataFrame(self.sorted_elements, columns=["name", "count"])
        if kind == "attributes":
            return pd.DataFrame(self.sorted_attributes, columns=["name", "count"])
        if kind == "depths":
            return pd.DataFrame(self.sorted_depths, columns=["level", "count"])
        raise ValueError("kind must be 'elements', 'attributes' or 'depths'")


class XMLStructureAnalyzer:
    """Computes structural statistics for document trees."""

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ExplorerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "structure_analyzer")

    def analyze(self, tree: Optional[XMLDocumentTree]) -> AnalysisResult:
        """Analyze ``tree`` in one traversal starting at the root with depth 0.

        Only elements are tallied. Text, comment and CDATA nodes are walked
        through and count toward ``max_depth`` unless
        ``analysis.count_text_depth`` is disabled.
        """
        start_time = time.time()
        result = AnalysisResult(correlation_id=self.correlation_id)

        if tree is None:
            error: ExplorerError = MissingInputError("tree", "No XML document loaded")
            result.fail(error, "structure_analyzer")
            self.logger.warning("Analysis rejected", extra={"error": error.message})
            return result

        count_text_depth = self.config.analysis.count_text_depth
        element_counts = result.element_counts
        attribute_counts = result.attribute_counts
        depth_counts = result.depth_counts
        max_depth = 0

        for node, depth in tree.walk():
            result.performance.nodes_visited += 1
            if not node.is_element:
                if count_text_depth and depth > max_depth:
                    max_depth = depth
                continue

            if depth > max_depth:
                max_depth = depth
            element_counts[node.name] = element_counts.get(node.name, 0) + 1
            depth_counts[depth] = depth_counts.get(depth, 0) + 1
            result.total_elements += 1
            for attribute_name in node.attributes:
                attribute_counts[attribute_name] = attribute_counts.get(attribute_name, 0) + 1
                result.total_attributes += 1

        result.max_depth = max_depth
        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        self.logger.info(
            "Analysis completed",
            extra={
                "total_elements": result.total_elements,
                "total_attributes": result.total_attributes,
                "distinct_elements": len(element_counts),
                "max_depth": max_depth,
            }
        )
        return result


def analyze(
    tree: Optional[XMLDocumentTree],
    config: Optional[ExplorerConfig] = None,
) -> AnalysisResult:
    """Compute structural statistics for a document tree."""
    return XMLStructureAnalyzer(config).analyze(tree)
