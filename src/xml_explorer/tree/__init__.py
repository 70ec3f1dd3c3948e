"""Document model and builder for XML exploration.

Key Components:
    XMLTreeBuilder: Converts raw XML text into an addressable node tree
    XMLDocumentTree: Immutable root container with an arena of all nodes
    XMLNode: Element, text, comment or CDATA node
    BuildResult: Tree plus diagnostics and the input size report
"""

from .builder import (
    BuildResult,
    SizeLevel,
    SizeReport,
    XMLTreeBuilder,
    build,
    build_file,
    count_node_kinds,
)
from .nodes import NodeKind, XMLDocumentTree, XMLNode, assign_addresses
from .paths import ancestor_prefixes, join_path

__all__ = [
    "BuildResult",
    "SizeLevel",
    "SizeReport",
    "XMLTreeBuilder",
    "build",
    "build_file",
    "count_node_kinds",
    "NodeKind",
    "XMLDocumentTree",
    "XMLNode",
    "assign_addresses",
    "ancestor_prefixes",
    "join_path",
]
