"""
Enum definitions for the label compliance engine.
"""

from enum import Enum


class ComplianceStatus(str, Enum):
    """Closed status set shared by sections and the overall assessment."""
    COMPLIANT = "compliant"
    LIKELY_COMPLIANT = "likely_compliant"
    POTENTIALLY_NON_COMPLIANT = "potentially_non_compliant"
    NON_COMPLIANT = "non_compliant"
    NOT_APPLICABLE = "not_applicable"
    WARNING = "warning"


class SectionTopic(str, Enum):
    """Named topics a compliance document can report on."""
    GENERAL_LABELING = "general_labeling"
    INGREDIENT_LABELING = "ingredient_labeling"
    ALLERGEN_LABELING = "allergen_labeling"
    NUTRITION_LABELING = "nutrition_labeling"
    CLAIMS = "claims"
    ADDITIONAL_REQUIREMENTS = "additional_requirements"


class RecommendationPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProductCategory(str, Enum):
    """Regulatory product classes a label can be reviewed under."""
    CONVENTIONAL_FOOD = "CONVENTIONAL_FOOD"
    DIETARY_SUPPLEMENT = "DIETARY_SUPPLEMENT"
    ALCOHOLIC_BEVERAGE = "ALCOHOLIC_BEVERAGE"
    NON_ALCOHOLIC_BEVERAGE = "NON_ALCOHOLIC_BEVERAGE"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IterationKind(str, Enum):
    """Kinds of follow-up activity recorded in a session."""
    CHAT = "chat"  # Follow-up question about the analysis
    TEXT_CHECK = "text_check"  # Alternative label text re-checked without an image
    REVISED_UPLOAD = "revised_upload"  # New label revision, yields a new document


class DisambiguationState(str, Enum):
    """States of the category disambiguation flow."""
    DETECTED = "detected"
    AWAITING_SELECTION = "awaiting_selection"
    COMPARING = "comparing"
    RESOLVED = "resolved"
