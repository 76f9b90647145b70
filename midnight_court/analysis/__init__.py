"""
Analysis package for Midnight Court.

InputAnalyzer inspects case descriptions before generation;
QualityValidator scores decks after generation.
"""

from midnight_court.analysis.input_analyzer import (
    Analysis,
    CaseElements,
    DetectedEntities,
    InputAnalyzer,
    InputValidation,
    empty_analysis,
)
from midnight_court.analysis.quality_validator import (
    CitationReport,
    QualityIssue,
    QualityReport,
    QualityValidator,
)

__all__ = [
    'Analysis',
    'CaseElements',
    'CitationReport',
    'DetectedEntities',
    'InputAnalyzer',
    'InputValidation',
    'QualityIssue',
    'QualityReport',
    'QualityValidator',
    'empty_analysis',
]
