"""
Pydantic models for compliance documents produced by the label classifier.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from .enums import ComplianceStatus, ConfidenceLevel, ProductCategory, SectionTopic


class SectionResult(BaseModel):
    """
    Result for one labeling topic (or one sub-field of a topic).

    Named sub-results that carry their own status live in ``fields``
    (e.g. statement_of_identity inside general labeling). Any other
    classifier output for the topic is kept verbatim in ``extra``.
    """
    status: Optional[ComplianceStatus] = None
    details: str = ""
    regulation_citation: Optional[str] = None
    fields: dict[str, "SectionResult"] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)


class ComplianceTableRow(BaseModel):
    """One row of the classifier's summary table."""
    element: str
    status: str = ""  # Free-form, e.g. "Potentially Non-compliant"
    rationale: str = ""
    normalized_status: Optional[ComplianceStatus] = None  # None when the wording is unrecognized


class Recommendation(BaseModel):
    """A suggested label change. Priority is kept as text so unknown values survive."""
    priority: str = ""
    recommendation: str
    regulation: str = ""
    ingredient: Optional[str] = None


class CategoryConflict(BaseModel):
    """A contradiction between label content and the assigned category."""
    severity: str = "medium"
    conflict: str
    current_category: Optional[str] = None
    violation: str = ""


class CategoryOptionData(BaseModel):
    """What the label would need under one candidate category."""
    current_label_compliant: bool = False
    required_changes: list[str] = Field(default_factory=list)
    allowed_claims: list[str] = Field(default_factory=list)
    prohibited_claims: list[str] = Field(default_factory=list)
    regulatory_requirements: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class CategoryRecommendation(BaseModel):
    """The classifier's suggested category when the label is ambiguous."""
    suggested_category: ProductCategory
    confidence: Optional[str] = None
    reasoning: str = ""
    key_decision_factors: list[str] = Field(default_factory=list)


class ComplianceDocument(BaseModel):
    """One evaluation snapshot of a label.

    ``id`` and ``category`` cannot be reassigned on an instance; a user
    category selection produces a new document via the disambiguation
    resolver.
    """
    id: str = Field(frozen=True)
    product_name: Optional[str] = None
    product_type: Optional[str] = None
    sections: dict[SectionTopic, SectionResult] = Field(default_factory=dict)
    compliance_table: list[ComplianceTableRow] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    overall_status: Optional[ComplianceStatus] = None
    category: Optional[ProductCategory] = Field(default=None, frozen=True)
    category_confidence: Optional[ConfidenceLevel] = None
    category_rationale: Optional[str] = None
    category_alternatives: list[ProductCategory] = Field(default_factory=list)
    category_conflicts: list[CategoryConflict] = Field(default_factory=list)
    category_options: dict[str, CategoryOptionData] = Field(default_factory=dict)
    category_recommendation: Optional[CategoryRecommendation] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def section(self, topic: SectionTopic) -> Optional[SectionResult]:
        """Return the section for a topic, or None when the classifier omitted it."""
        return self.sections.get(topic)
