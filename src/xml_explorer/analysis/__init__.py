"""Structural statistics for XML exploration."""

from .analyzer import AnalysisResult, XMLStructureAnalyzer, analyze, rank_counts

__all__ = [
    "AnalysisResult",
    "XMLStructureAnalyzer",
    "analyze",
    "rank_counts",
]
