"""In-memory document model for XML exploration.

Nodes form a closed tagged variant (``NodeKind``) over elements, text,
comments and CDATA sections. A built document is wrapped in an
``XMLDocumentTree`` which owns an arena of all nodes in pre-order, so every
node has a stable integer index and a parent index in addition to its
rendered paths.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from xml_explorer.shared.config import PathMode
from xml_explorer.tree.paths import element_segment, join_path, text_like_segment


class NodeKind(Enum):
    """Kinds of node represented in the document model."""

    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    CDATA = "cdata"

    @property
    def is_text_like(self) -> bool:
        return self is not NodeKind.ELEMENT


@dataclass(eq=False)
class XMLNode:
    """Single node of the document model.

    Elements carry ``name``, ``attributes`` (document order) and ``children``;
    text, comment and CDATA nodes carry ``value``. Addressing fields
    (``path``, ``position_path``, ``index``, ``parent_index``) are filled in by
    ``assign_addresses`` once the tree is complete.
    """

    kind: NodeKind
    name: Optional[str] = None
    value: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["XMLNode"] = field(default_factory=list)

    # Position among the parent's child nodes in the source document
    position: Optional[int] = None
    # Untrimmed character data of text nodes, used for text content
    raw_value: Optional[str] = None
    # Whitespace-only text elided from ``children``, keyed by source position
    whitespace_runs: Dict[int, str] = field(default_factory=dict)

    path: str = ""
    position_path: str = ""
    index: int = -1
    parent_index: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate node shape against its kind."""
        if self.kind is NodeKind.ELEMENT:
            if not self.name:
                raise ValueError("Element name cannot be empty")
        else:
            if self.value is None:
                raise ValueError(f"{self.kind.value} node requires a value")
            if self.children or self.attributes:
                raise ValueError(
                    f"{self.kind.value} node cannot have children or attributes"
                )

    @classmethod
    def element(
        cls,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        children: Optional[List["XMLNode"]] = None,
    ) -> "XMLNode":
        return cls(
            NodeKind.ELEMENT,
            name=name,
            attributes=dict(attributes or {}),
            children=list(children or []),
        )

    @classmethod
    def text(cls, value: str, raw_value: Optional[str] = None) -> "XMLNode":
        return cls(NodeKind.TEXT, value=value, raw_value=raw_value)

    @classmethod
    def comment(cls, value: str) -> "XMLNode":
        return cls(NodeKind.COMMENT, value=value)

    @classmethod
    def cdata(cls, value: str) -> "XMLNode":
        return cls(NodeKind.CDATA, value=value)

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    @property
    def is_text_like(self) -> bool:
        return self.kind.is_text_like

    @property
    def label(self) -> str:
        """Display label: tag name for elements, kind name otherwise."""
        return self.name if self.is_element else self.kind.value

    @property
    def element_children(self) -> List["XMLNode"]:
        return [child for child in self.children if child.is_element]

    @property
    def has_element_children(self) -> bool:
        return any(child.is_element for child in self.children)

    @property
    def has_inline_text(self) -> bool:
        """Whether this element holds mixed content.

        True when it has a text child, or whitespace between children that
        does not break the line (``<b>x</b> <i>y</i>``).
        """
        return any(child.kind is NodeKind.TEXT for child in self.children) or any(
            "\n" not in run for run in self.whitespace_runs.values()
        )

    def content_sequence(self) -> List[Union["XMLNode", str]]:
        """Children interleaved with elided whitespace runs, in source order."""
        if not self.whitespace_runs or any(
            child.position is None for child in self.children
        ):
            return list(self.children)
        entries: List[Tuple[int, Union["XMLNode", str]]] = list(self.whitespace_runs.items())
        entries.extend((child.position, child) for child in self.children)
        entries.sort(key=lambda entry: entry[0])
        return [item for _, item in entries]

    @property
    def text_content(self) -> str:
        """Concatenated text and CDATA of this node and all descendants.

        Follows DOM ``textContent``: comments are excluded and text, including
        whitespace runs between children, is joined in document order.
        """
        if self.kind is NodeKind.COMMENT:
            return ""
        parts: List[str] = []
        stack: List[Union[XMLNode, str]] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
            elif item.kind is NodeKind.TEXT:
                parts.append(item.raw_value if item.raw_value is not None else item.value)
            elif item.kind is NodeKind.CDATA:
                parts.append(item.value)
            elif item.is_element:
                stack.extend(reversed(item.content_sequence()))
        return "".join(parts)

    def iter_subtree(self) -> Iterator["XMLNode"]:
        """Iterate over this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def path_for(self, mode: PathMode) -> str:
        if mode is PathMode.POSITIONAL:
            return self.position_path
        return self.path

    def shallow_copy(self) -> "XMLNode":
        """Copy the node without children and without addressing."""
        return XMLNode(
            self.kind,
            name=self.name,
            value=self.value,
            attributes=dict(self.attributes),
            position=self.position,
            raw_value=self.raw_value,
            whitespace_runs=dict(self.whitespace_runs),
        )

    def deep_copy(self) -> "XMLNode":
        """Copy the node and its whole subtree as an independent structure."""
        clone = self.shallow_copy()
        stack = [(self, clone)]
        while stack:
            source, target = stack.pop()
            for child in source.children:
                child_clone = child.shallow_copy()
                target.children.append(child_clone)
                if child.children:
                    stack.append((child, child_clone))
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert node and subtree to dictionary representation."""
        result = self._own_dict()
        stack = [(self, result)]
        while stack:
            node, data = stack.pop()
            if not node.children:
                continue
            data["children"] = []
            for child in node.children:
                child_data = child._own_dict()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return result

    def _own_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.kind.value, "path": self.path}
        if self.is_element:
            data["name"] = self.name
            data["attributes"] = dict(self.attributes)
        else:
            data["value"] = self.value
        return data


def assign_addresses(root: XMLNode) -> List[XMLNode]:
    """Assign paths and arena indices to every node under ``root``.

    Args:
        root: Root element of a complete tree

    Returns:
        All nodes in pre-order; a node's position in the list is its index
    """
    if not root.is_element:
        raise ValueError("Tree root must be an element")

    nodes: List[XMLNode] = []
    root.path = root.name
    root.position_path = root.name
    root.parent_index = None

    stack = [root]
    while stack:
        node = stack.pop()
        node.index = len(nodes)
        nodes.append(node)
        if not node.children:
            continue

        tag_totals = Counter(child.name for child in node.children if child.is_element)
        tag_seen: Counter = Counter()
        for offset, child in enumerate(node.children):
            child.parent_index = node.index
            if child.is_element:
                tag_seen[child.name] += 1
                child.path = join_path(node.path, child.name)
                child.position_path = join_path(
                    node.position_path,
                    element_segment(child.name, tag_seen[child.name], tag_totals[child.name]),
                )
            else:
                position = child.position if child.position is not None else offset
                segment = text_like_segment(child.kind.value, position)
                child.path = join_path(node.path, segment)
                child.position_path = join_path(node.position_path, segment)
        stack.extend(reversed(node.children))

    return nodes


@dataclass(eq=False)
class XMLDocumentTree:
    """Root container of a built document.

    Never modified after construction; search, analysis and extraction only
    read from it.
    """

    root: XMLNode
    nodes: List[XMLNode]
    path_mode: PathMode = PathMode.NAME_CHAIN
    expanded_paths: Set[str] = field(default_factory=set)
    filename: Optional[str] = None
    source_length: int = 0

    @classmethod
    def from_root(
        cls,
        root: XMLNode,
        path_mode: PathMode = PathMode.NAME_CHAIN,
        filename: Optional[str] = None,
    ) -> "XMLDocumentTree":
        """Address a freshly assembled node structure and wrap it."""
        return cls(root=root, nodes=assign_addresses(root), path_mode=path_mode,
                   filename=filename)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def element_count(self) -> int:
        return sum(1 for node in self.nodes if node.is_element)

    def get(self, index: int) -> XMLNode:
        """Get node by arena index."""
        if not (0 <= index < len(self.nodes)):
            raise IndexError(f"Node index {index} out of range")
        return self.nodes[index]

    def parent(self, node: XMLNode) -> Optional[XMLNode]:
        if node.parent_index is None:
            return None
        return self.nodes[node.parent_index]

    def ancestors(self, node: XMLNode) -> List[XMLNode]:
        """Ancestors of ``node``, nearest first."""
        chain = []
        current = self.parent(node)
        while current is not None:
            chain.append(current)
            current = self.parent(current)
        return chain

    def depth(self, node: XMLNode) -> int:
        """Depth of ``node`` (root = 0)."""
        return len(self.ancestors(node))

    def lineage_names(self, node: XMLNode) -> List[str]:
        """Tag names from the root down to ``node``."""
        chain = [node] + self.ancestors(node)
        return [item.label for item in reversed(chain)]

    def iter_nodes(self) -> Iterator[XMLNode]:
        """Iterate over all nodes in document order."""
        return iter(self.nodes)

    def iter_elements(self) -> Iterator[XMLNode]:
        """Iterate over all elements in document order."""
        return (node for node in self.nodes if node.is_element)

    def walk(self) -> Iterator[Tuple[XMLNode, int]]:
        """Iterate over ``(node, depth)`` pairs in pre-order."""
        stack = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            for child in reversed(node.children):
                stack.append((child, depth + 1))

    def path_of(self, node: XMLNode) -> str:
        """Path of ``node`` under this tree's path mode."""
        return node.path_for(self.path_mode)

    def find_by_path(self, path: str) -> List[XMLNode]:
        """All nodes addressed by ``path`` under this tree's path mode.

        Name-chain paths may address several same-tagged siblings; positional
        paths address at most one node.
        """
        return [node for node in self.nodes if self.path_of(node) == path]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "path_mode": self.path_mode.value,
            "node_count": self.node_count,
            "element_count": self.element_count,
            "root": self.root.to_dict(),
        }
