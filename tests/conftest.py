"""
Shared test fixtures for the labelcheck test suite.
"""

import os
import tempfile
from pathlib import Path

# Keep test runs from writing logs into the working tree
os.environ.setdefault("LABELCHECK_LOG_DIR", tempfile.mkdtemp(prefix="labelcheck-logs-"))

import pytest

from labelcheck.logging_config import configure_logging

configure_logging(log_level="DEBUG", log_to_file=False)

from labelcheck.models.database import init_db
from labelcheck.models.document import ComplianceDocument, SectionResult
from labelcheck.models.enums import ComplianceStatus, SectionTopic


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Provide an initialized temporary SQLite database."""
    path = str(tmp_path / "data" / "labelcheck.db")
    init_db(path)
    return path


@pytest.fixture
def make_document():
    """Build a ComplianceDocument from per-section status lists.

    Each section gets one sub-result per status, which is how the counted
    sections report in practice.
    """

    def _make(
        doc_id: str = "doc-1",
        overall_status=None,
        sections: dict | None = None,
        **kwargs,
    ) -> ComplianceDocument:
        built = {}
        for topic, statuses in (sections or {}).items():
            built[SectionTopic(topic)] = SectionResult(
                fields={
                    f"item_{index}": SectionResult(status=ComplianceStatus(status))
                    for index, status in enumerate(statuses)
                }
            )
        return ComplianceDocument(
            id=doc_id,
            overall_status=ComplianceStatus(overall_status) if overall_status else None,
            sections=built,
            **kwargs,
        )

    return _make


@pytest.fixture
def ambiguous_payload() -> dict:
    """Classifier output for a product that could be a supplement or a food."""
    return {
        "product_name": "Daily Greens Powder",
        "product_type": "powdered drink mix",
        "product_category": "DIETARY_SUPPLEMENT",
        "category_confidence": "medium",
        "category_rationale": "Supplement Facts panel present",
        "category_ambiguity": {
            "is_ambiguous": True,
            "alternative_categories": ["CONVENTIONAL_FOOD", "NON_ALCOHOLIC_BEVERAGE"],
            "label_conflicts": [
                {
                    "severity": "high",
                    "conflict": "Marketed as a beverage",
                    "current_category": "DIETARY_SUPPLEMENT",
                    "violation": "Conventional food representation",
                }
            ],
        },
        "general_labeling": {
            "statement_of_identity": {"status": "compliant", "details": "Present"},
            "net_quantity": {"status": "non_compliant", "details": "Missing metric"},
            "manufacturer_address": {"status": "compliant", "details": "Present"},
        },
        "ingredient_labeling": {
            "status": "non_compliant",
            "ingredients_list": ["spirulina", "wheatgrass"],
        },
        "allergen_labeling": {
            "status": "potentially_non_compliant",
            "potential_allergens": ["wheat"],
        },
        "nutrition_labeling": {"status": "non_compliant", "details": "Panel format"},
        "claims": {"status": "warning", "structure_function_claims": ["supports energy"]},
        "additional_requirements": [
            {"requirement": "cGMP", "status": "not_applicable", "details": ""},
        ],
        "compliance_table": [
            {"element": "Unknown Widget", "status": "Compliant", "rationale": ""},
            {"element": "Allergen Declaration", "status": "Potentially Non-compliant"},
            {"element": "Net Quantity", "status": "Non-compliant"},
        ],
        "recommendations": [
            {"priority": "low", "recommendation": "Tidy layout", "regulation": ""},
            {"priority": "critical", "recommendation": "Add metric net quantity"},
            {"priority": "urgent", "recommendation": "Unknown priority"},
            {"priority": "high", "recommendation": "Declare wheat"},
        ],
        "overall_assessment": {"primary_compliance_status": "non_compliant"},
        "category_options": {
            "DIETARY_SUPPLEMENT": {
                "current_label_compliant": False,
                "required_changes": ["Add disclaimer"],
                "allowed_claims": ["structure/function"],
                "prohibited_claims": ["disease claims"],
                "regulatory_requirements": ["21 CFR 101.36"],
            },
            "CONVENTIONAL_FOOD": {
                "current_label_compliant": True,
                "required_changes": [],
                "allowed_claims": ["nutrient content"],
                "prohibited_claims": ["structure/function without qualification"],
                "regulatory_requirements": ["21 CFR 101.9"],
                "pros": ["Simpler panel"],
                "cons": ["Loses supplement claims"],
            },
        },
        "recommendation": {
            "suggested_category": "CONVENTIONAL_FOOD",
            "confidence": "medium",
            "reasoning": "Beverage presentation",
            "key_decision_factors": ["serving format"],
        },
    }


@pytest.fixture
def revised_payload() -> dict:
    """Classifier output for a fixed revision of the same label."""
    return {
        "product_name": "Daily Greens Powder",
        "product_category": "DIETARY_SUPPLEMENT",
        "general_labeling": {
            "statement_of_identity": {"status": "compliant"},
            "net_quantity": {"status": "compliant"},
            "manufacturer_address": {"status": "compliant"},
        },
        "allergen_labeling": {"status": "compliant"},
        "nutrition_labeling": {"status": "compliant"},
        "claims": {"status": "compliant"},
        "overall_assessment": {"primary_compliance_status": "compliant"},
    }


@pytest.fixture
def simple_payload() -> dict:
    """Unambiguous classifier output with no alternatives."""
    return {
        "product_name": "Sparkling Water",
        "product_category": "NON_ALCOHOLIC_BEVERAGE",
        "category_confidence": "high",
        "general_labeling": {"statement_of_identity": {"status": "compliant"}},
        "overall_assessment": {"primary_compliance_status": "likely_compliant"},
    }
