"""Public API for XML exploration.

Level 1 functions operate on a tree passed in explicitly; level 2 is the
``XMLExplorer`` session class which keeps the current document.
"""

from xml_explorer.analysis import analyze
from xml_explorer.extraction import extract, preview
from xml_explorer.search import search, validate_pattern
from xml_explorer.tree import build, build_file

from .explorer import SAMPLE_BOOKSTORE_XML, SAMPLE_FILENAME, XMLExplorer, load_sample

__all__ = [
    "analyze",
    "build",
    "build_file",
    "extract",
    "preview",
    "search",
    "validate_pattern",
    "SAMPLE_BOOKSTORE_XML",
    "SAMPLE_FILENAME",
    "XMLExplorer",
    "load_sample",
]
