# Label compliance models package

from .database import init_db, get_connection, get_db_path
from .enums import (
    ComplianceStatus,
    SectionTopic,
    RecommendationPriority,
    ProductCategory,
    ConfidenceLevel,
    IterationKind,
    DisambiguationState,
)
from .document import (
    SectionResult,
    ComplianceTableRow,
    Recommendation,
    CategoryConflict,
    CategoryOptionData,
    CategoryRecommendation,
    ComplianceDocument,
)
from .category import (
    CategorySelection,
    CategorySelectionEvent,
    CategoryCandidate,
    SelectionResult,
)
from .session import AnalysisSession, Iteration
from .comparison import IssueCounts, ComparisonResult, ComplianceProgress

__all__ = [
    # Database
    "init_db",
    "get_connection",
    "get_db_path",
    # Enums
    "ComplianceStatus",
    "SectionTopic",
    "RecommendationPriority",
    "ProductCategory",
    "ConfidenceLevel",
    "IterationKind",
    "DisambiguationState",
    # Models
    "SectionResult",
    "ComplianceTableRow",
    "Recommendation",
    "CategoryConflict",
    "CategoryOptionData",
    "CategoryRecommendation",
    "ComplianceDocument",
    "CategorySelection",
    "CategorySelectionEvent",
    "CategoryCandidate",
    "SelectionResult",
    "AnalysisSession",
    "Iteration",
    "IssueCounts",
    "ComparisonResult",
    "ComplianceProgress",
]
