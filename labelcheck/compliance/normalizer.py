"""
Normalizer for ordering compliance tables and recommendations for display.
"""

from typing import Iterable, Optional

from labelcheck.models.document import (
    ComplianceDocument,
    ComplianceTableRow,
    Recommendation,
)
from labelcheck.models.enums import ComplianceStatus, RecommendationPriority


# Element name fragments and their display rank, grouped in section bands.
# Order matters: a row takes the rank of the FIRST key it contains, so
# "Manufacturer Address" ranks as "Manufacturer" and "GRAS Ingredient"
# ranks as "Ingredient".
ELEMENT_RANKS: list[tuple[str, int]] = [
    # General labeling
    ("Statement of Identity", 100),
    ("Product Name", 101),
    ("Net Quantity", 110),
    ("Manufacturer", 120),
    ("Manufacturer Address", 121),
    ("Distributor", 122),
    # Ingredient labeling
    ("Ingredient", 200),
    ("Ingredients", 200),
    ("Ingredient List", 201),
    ("Ingredient Declaration", 202),
    ("Ingredient Labeling", 203),
    # Allergen labeling
    ("Allergen", 300),
    ("Major Food Allergen", 301),
    ("Allergen Labeling", 302),
    ("Allergen Declaration", 303),
    ("FALCPA", 304),
    # Nutrition / supplement facts
    ("Nutrition", 400),
    ("Nutrition Facts", 401),
    ("Nutrition Labeling", 402),
    ("Supplement Facts", 410),
    ("Supplement Facts Panel", 411),
    # Claims
    ("Claims", 500),
    ("Structure", 501),
    ("Nutrient Content", 502),
    ("Health Claims", 503),
    # Additional requirements
    ("Fortification", 600),
    ("GRAS", 610),
    ("GRAS Ingredient", 611),
    ("NDI", 620),
    ("New Dietary Ingredient", 621),
    ("cGMP", 630),
]

UNMATCHED_RANK = 999

PRIORITY_RANKS: dict[str, int] = {
    RecommendationPriority.CRITICAL.value: 0,
    RecommendationPriority.HIGH.value: 1,
    RecommendationPriority.MEDIUM.value: 2,
    RecommendationPriority.LOW.value: 3,
}

UNKNOWN_PRIORITY_RANK = len(PRIORITY_RANKS)


class ComplianceTableNormalizer:
    """
    Orders compliance table rows by section band and recommendations by priority.

    Both sorts are stable: rows with equal rank keep their input order.
    Nothing here raises on unexpected input; unknown rows and priorities
    simply sort last.
    """

    def __init__(self, element_ranks: Optional[Iterable[tuple[str, int]]] = None):
        ranks = ELEMENT_RANKS if element_ranks is None else list(element_ranks)
        self.element_ranks = [(key.lower(), rank) for key, rank in ranks]

    def element_rank(self, element: str) -> int:
        """
        Rank a table element by the first lookup key it contains.

        Args:
            element: The row's element label, any casing

        Returns:
            Band rank, or UNMATCHED_RANK when no key matches
        """
        element_lower = (element or "").lower()
        for key, rank in self.element_ranks:
            if key in element_lower:
                return rank
        return UNMATCHED_RANK

    def sort_table(self, rows: list[ComplianceTableRow]) -> list[ComplianceTableRow]:
        """Return a new list of rows ordered by band."""
        return sorted(rows, key=lambda row: self.element_rank(row.element))

    @staticmethod
    def priority_rank(priority) -> int:
        """Rank a recommendation priority; anything unrecognized ranks last."""
        if not isinstance(priority, str):
            return UNKNOWN_PRIORITY_RANK
        return PRIORITY_RANKS.get(priority.strip().lower(), UNKNOWN_PRIORITY_RANK)

    def sort_recommendations(
        self, recommendations: list[Recommendation]
    ) -> list[Recommendation]:
        """Return a new list of recommendations, critical first."""
        return sorted(recommendations, key=lambda rec: self.priority_rank(rec.priority))

    def normalize_document(self, document: ComplianceDocument) -> ComplianceDocument:
        """Return a copy of the document with both lists in display order."""
        return document.model_copy(
            update={
                "compliance_table": self.sort_table(document.compliance_table),
                "recommendations": self.sort_recommendations(document.recommendations),
            }
        )


def classify_row_status(status_text: Optional[str]) -> Optional[ComplianceStatus]:
    """
    Map a free-form table status to the closed status set.

    Handles the wording the classifier uses in tables ("Compliant",
    "Potentially Non-compliant", "Non-compliant", "Not Applicable") in any
    casing or separator style.

    Returns:
        ComplianceStatus, or None if the text is not recognized
    """
    if not status_text:
        return None

    text = status_text.strip().lower().replace("-", " ").replace("_", " ")
    text = " ".join(text.split())

    if text.startswith("potentially"):
        return ComplianceStatus.POTENTIALLY_NON_COMPLIANT
    if text.startswith("likely"):
        return ComplianceStatus.LIKELY_COMPLIANT
    if text in ("non compliant", "noncompliant"):
        return ComplianceStatus.NON_COMPLIANT
    if text in ("not applicable", "n/a", "na"):
        return ComplianceStatus.NOT_APPLICABLE
    if text == "compliant":
        return ComplianceStatus.COMPLIANT
    if text == "warning":
        return ComplianceStatus.WARNING
    return None
