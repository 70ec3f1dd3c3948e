"""Extraction engine and XML output formatting.

Key Components:
    XMLExtractionEngine: Selects, reshapes and assembles extracted elements
    ExtractionQuery: Criteria for one extraction
    serialize / format_xml / pretty_print: Turn result documents into text
"""

from .engine import (
    ExtractionBasis,
    ExtractionQuery,
    ExtractionResult,
    PreviewResult,
    XMLExtractionEngine,
    extract,
    iso_timestamp,
    preview,
)
from .formatter import XML_DECLARATION, format_xml, pretty_print, serialize

__all__ = [
    "ExtractionBasis",
    "ExtractionQuery",
    "ExtractionResult",
    "PreviewResult",
    "XMLExtractionEngine",
    "extract",
    "iso_timestamp",
    "preview",
    "XML_DECLARATION",
    "format_xml",
    "pretty_print",
    "serialize",
]
