# Compliance comparison services package

from .analysis_store import AnalysisStore
from .normalizer import ComplianceTableNormalizer, classify_row_status, ELEMENT_RANKS
from .delta import compare, count_issues, chain_comparisons
from .document_parser import parse_classifier_output
from .disambiguation import (
    CategoryResolver,
    DisambiguationContext,
    apply_selection,
    build_candidates,
    needs_selection,
)
from .session_service import SessionTracker

__all__ = [
    "AnalysisStore",
    "ComplianceTableNormalizer",
    "classify_row_status",
    "ELEMENT_RANKS",
    "compare",
    "count_issues",
    "chain_comparisons",
    "parse_classifier_output",
    "CategoryResolver",
    "DisambiguationContext",
    "apply_selection",
    "build_candidates",
    "needs_selection",
    "SessionTracker",
]
