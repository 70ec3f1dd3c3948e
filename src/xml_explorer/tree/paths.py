"""Path addressing scheme shared by all exploration components.

Two renderings exist for every node:

- name-chain paths (``bookstore/book/title``) built from ancestor tag names
  only. Same-tagged siblings share one path, so a name-chain path identifies
  a structural *kind* of node rather than a single node.
- positional paths (``bookstore/book[2]/title``) where an element segment
  carries its 1-based ordinal among same-tagged siblings whenever more than
  one such sibling exists. These are unique per node.

Text, comment and CDATA children append ``text()[i]``, ``comment()[i]`` or
``cdata()[i]`` to their parent's path, where ``i`` is the child's 0-based
position among all of the parent's child nodes in the source document,
whitespace-only text included.
"""

from typing import List

PATH_SEPARATOR = "/"


def join_path(parent_path: str, segment: str) -> str:
    """Append a segment to a parent path; an empty parent yields the segment."""
    if not parent_path:
        return segment
    return f"{parent_path}{PATH_SEPARATOR}{segment}"


def element_segment(name: str, ordinal: int, sibling_count: int) -> str:
    """Render a positional element segment.

    Args:
        name: Element tag name
        ordinal: 1-based position among siblings sharing ``name``
        sibling_count: Number of siblings sharing ``name``
    """
    if sibling_count > 1:
        return f"{name}[{ordinal}]"
    return name


def text_like_segment(label: str, position: int) -> str:
    """Render the segment of a text, comment or CDATA child."""
    return f"{label}()[{position}]"


def split_path(path: str) -> List[str]:
    if not path:
        return []
    return path.split(PATH_SEPARATOR)


def ancestor_prefixes(path: str) -> List[str]:
    """Return every strictly-shorter prefix of ``path``, nearest first.

    >>> ancestor_prefixes("bookstore/book/title")
    ['bookstore/book', 'bookstore']
    """
    parts = split_path(path)
    prefixes = []
    while len(parts) > 1:
        parts.pop()
        prefixes.append(PATH_SEPARATOR.join(parts))
    return prefixes


def name_chain_key(names: List[str]) -> str:
    """Render a root-to-node list of tag names as an absolute lineage key."""
    return PATH_SEPARATOR + PATH_SEPARATOR.join(names)
