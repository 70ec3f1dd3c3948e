"""XML serialization and indentation.

``serialize`` renders an in-memory node as flat XML text. Two indenters are
provided on top of it:

- ``format_xml`` re-indents flat text by bracket adjacency alone. It never
  parses, so literal ``>``/``<`` sequences inside attribute values or CDATA
  can shift its indentation.
- ``pretty_print`` walks the in-memory tree directly and is not affected by
  the content of values.
"""

import re
from typing import List, Tuple, Union
from xml.sax.saxutils import escape

from xml_explorer.tree.nodes import NodeKind, XMLNode

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}

_BOUNDARY = re.compile(r">\s*<")
_CLOSING_FRAGMENT = re.compile(r"^/\w", re.ASCII)
_OPENING_FRAGMENT = re.compile(r"^<?\w[^>]*[^/]$", re.ASCII)
_SELF_CLOSING_FRAGMENT = re.compile(r"^<?\w[^>]*/>", re.ASCII)


def _open_tag(node: XMLNode, self_closing: bool = False) -> str:
    attributes = "".join(
        f' {name}="{escape(value, _ATTRIBUTE_ENTITIES)}"'
        for name, value in node.attributes.items()
    )
    return f"<{node.name}{attributes}{'/' if self_closing else ''}>"


def _render_text_like(node: XMLNode) -> str:
    if node.kind is NodeKind.TEXT:
        return escape(node.raw_value if node.raw_value is not None else node.value)
    if node.kind is NodeKind.COMMENT:
        return f"<!--{node.value}-->"
    if node.kind is NodeKind.CDATA:
        return "<![CDATA[" + node.value.replace("]]>", "]]]]><![CDATA[>") + "]]>"
    raise ValueError(f"Unsupported node kind: {node.kind}")


def serialize(node: XMLNode) -> str:
    """Serialize ``node`` and its subtree as flat, unindented XML text.

    Text keeps its source whitespace, including the whitespace-only runs
    between children.
    """
    parts: List[str] = []
    stack: List[Tuple[Union[XMLNode, str], bool]] = [(node, False)]
    while stack:
        current, closing = stack.pop()
        if isinstance(current, str):
            parts.append(escape(current))
        elif closing:
            parts.append(f"</{current.name}>")
        elif not current.is_element:
            parts.append(_render_text_like(current))
        elif not current.children and not current.whitespace_runs:
            parts.append(_open_tag(current, self_closing=True))
        else:
            parts.append(_open_tag(current))
            stack.append((current, True))
            stack.extend((item, False) for item in reversed(current.content_sequence()))
    return "".join(parts)


def format_xml(xml_text: str, indent_width: int = 2) -> str:
    """Re-indent flat XML text by bracket adjacency.

    The text is split wherever a ``>`` is followed (after optional
    whitespace) by a ``<``. A fragment starting with ``/`` closes a level
    before it is emitted; a fragment that opens a tag and is not self-closing
    opens a level after it is emitted.

    >>> print(format_xml('<a x="1"><b>t</b><c/></a>'))
    <a x="1">
      <b>t</b>
      <c/>
    </a>
    """
    if not xml_text:
        return ""
    tab = " " * indent_width
    indent = ""
    formatted: List[str] = []
    for fragment in _BOUNDARY.split(xml_text):
        if _CLOSING_FRAGMENT.match(fragment):
            indent = indent[len(tab):]
        formatted.append(f"{indent}<{fragment}>\n")
        if _OPENING_FRAGMENT.match(fragment) and not _SELF_CLOSING_FRAGMENT.match(fragment):
            indent += tab
    # The first fragment keeps its own "<" and the last its own ">"
    return "".join(formatted)[1:-2]


def pretty_print(node: XMLNode, indent_width: int = 2) -> str:
    """Render ``node`` as indented XML text directly from the tree.

    Mixed-content elements are written on one line exactly as ``serialize``
    renders them, so their text is unchanged. Elements whose only child is a
    comment or CDATA node also stay on one line; childless elements are
    self-closing.
    """
    unit = " " * indent_width
    lines: List[str] = []
    stack: List[Tuple[XMLNode, int, bool]] = [(node, 0, False)]
    while stack:
        current, depth, closing = stack.pop()
        pad = unit * depth
        if closing:
            lines.append(f"{pad}</{current.name}>")
        elif not current.is_element:
            lines.append(pad + _render_text_like(current))
        elif current.has_inline_text:
            lines.append(pad + serialize(current))
        elif not current.children:
            lines.append(pad + _open_tag(current, self_closing=True))
        elif len(current.children) == 1 and current.children[0].is_text_like:
            lines.append(
                pad + _open_tag(current)
                + _render_text_like(current.children[0])
                + f"</{current.name}>"
            )
        else:
            lines.append(pad + _open_tag(current))
            stack.append((current, depth, True))
            stack.extend(
                (child, depth + 1, False) for child in reversed(current.children)
            )
    return "\n".join(lines)
