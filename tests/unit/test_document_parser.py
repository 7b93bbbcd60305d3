"""
Tests for parsing raw classifier output.
"""

from datetime import datetime

import pytest

from labelcheck.compliance.document_parser import (
    parse_category,
    parse_classifier_output,
    parse_section,
    parse_status,
)
from labelcheck.models.enums import (
    ComplianceStatus,
    ConfidenceLevel,
    ProductCategory,
    SectionTopic,
)


class TestParseStatus:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("compliant", ComplianceStatus.COMPLIANT),
            ("Non-Compliant", ComplianceStatus.NON_COMPLIANT),
            ("potentially non compliant", ComplianceStatus.POTENTIALLY_NON_COMPLIANT),
            ("NOT_APPLICABLE", ComplianceStatus.NOT_APPLICABLE),
        ],
    )
    def test_normalizes_wording(self, raw, expected):
        assert parse_status(raw) == expected

    def test_unknown_is_none(self):
        assert parse_status("mostly fine") is None
        assert parse_status(3) is None
        assert parse_status(None) is None


class TestParseCategory:

    def test_case_insensitive(self):
        assert parse_category("dietary_supplement") == ProductCategory.DIETARY_SUPPLEMENT

    def test_unknown_is_none(self):
        assert parse_category("COSMETIC") is None


class TestParseSection:

    def test_status_bearing_children_become_fields(self):
        section = parse_section(
            {
                "statement_of_identity": {"status": "compliant", "details": "ok"},
                "notes": {"color": "green"},
                "status": "warning",
                "details": "Header",
            }
        )

        assert section.status == ComplianceStatus.WARNING
        assert section.details == "Header"
        assert section.fields["statement_of_identity"].status == ComplianceStatus.COMPLIANT
        assert section.extra == {"notes": {"color": "green"}}

    def test_non_string_details_degrade_to_empty(self):
        section = parse_section({"status": "compliant", "details": ["a", "b"]})
        assert section.details == ""


class TestParseClassifierOutput:

    def test_full_payload(self, ambiguous_payload):
        document = parse_classifier_output(ambiguous_payload, analysis_id="a-1")

        assert document.id == "a-1"
        assert document.product_name == "Daily Greens Powder"
        assert document.category == ProductCategory.DIETARY_SUPPLEMENT
        assert document.category_confidence == ConfidenceLevel.MEDIUM
        assert document.overall_status == ComplianceStatus.NON_COMPLIANT
        assert document.category_alternatives == [
            ProductCategory.CONVENTIONAL_FOOD,
            ProductCategory.NON_ALCOHOLIC_BEVERAGE,
        ]
        assert len(document.category_conflicts) == 1
        assert document.category_recommendation.suggested_category == (
            ProductCategory.CONVENTIONAL_FOOD
        )
        assert set(document.category_options) == {"DIETARY_SUPPLEMENT", "CONVENTIONAL_FOOD"}
        assert document.category_options["CONVENTIONAL_FOOD"].current_label_compliant is True

    def test_sections(self, ambiguous_payload):
        document = parse_classifier_output(ambiguous_payload)

        general = document.section(SectionTopic.GENERAL_LABELING)
        assert set(general.fields) == {
            "statement_of_identity",
            "net_quantity",
            "manufacturer_address",
        }
        allergen = document.section(SectionTopic.ALLERGEN_LABELING)
        assert allergen.status == ComplianceStatus.POTENTIALLY_NON_COMPLIANT
        assert allergen.extra["potential_allergens"] == ["wheat"]

        additional = document.section(SectionTopic.ADDITIONAL_REQUIREMENTS)
        assert additional.fields["cGMP"].status == ComplianceStatus.NOT_APPLICABLE

    def test_table_and_recommendations_keep_input_order(self, ambiguous_payload):
        document = parse_classifier_output(ambiguous_payload)

        assert [row.element for row in document.compliance_table] == [
            "Unknown Widget",
            "Allergen Declaration",
            "Net Quantity",
        ]
        assert document.recommendations[0].priority == "low"
        assert document.recommendations[2].priority == "urgent"

    def test_table_rows_classify_free_form_status(self):
        document = parse_classifier_output(
            {
                "compliance_table": [
                    {"element": "Net Quantity", "status": "Non-compliant"},
                    {"element": "Claims", "status": "Needs review"},
                    {"element": "Allergen Declaration"},
                ]
            }
        )

        rows = document.compliance_table
        assert rows[0].status == "Non-compliant"
        assert rows[0].normalized_status == ComplianceStatus.NON_COMPLIANT
        assert rows[1].normalized_status is None
        assert rows[2].status == ""
        assert rows[2].normalized_status is None

    def test_alternatives_drop_detected_unknown_and_duplicates(self):
        document = parse_classifier_output(
            {
                "product_category": "CONVENTIONAL_FOOD",
                "category_ambiguity": {
                    "alternative_categories": [
                        "CONVENTIONAL_FOOD",
                        "DIETARY_SUPPLEMENT",
                        "COSMETIC",
                        "dietary_supplement",
                    ]
                },
            }
        )
        assert document.category_alternatives == [ProductCategory.DIETARY_SUPPLEMENT]

    def test_empty_payload_degrades(self):
        document = parse_classifier_output({})

        assert document.id
        assert document.category is None
        assert document.sections == {}
        assert document.compliance_table == []
        assert document.category_alternatives == []
        assert document.overall_status is None

    def test_non_dict_payload_degrades(self):
        document = parse_classifier_output(["not", "a", "document"])
        assert document.sections == {}

    def test_malformed_entries_are_skipped(self):
        document = parse_classifier_output(
            {
                "compliance_table": [{"status": "Compliant"}, "row", {"element": "Claims"}],
                "recommendations": [{"priority": "high"}, {"recommendation": "Fix it"}],
                "category_options": {"COSMETIC": {}, "DIETARY_SUPPLEMENT": "yes"},
                "recommendation": {"suggested_category": "COSMETIC"},
            }
        )

        assert [row.element for row in document.compliance_table] == ["Claims"]
        assert [rec.recommendation for rec in document.recommendations] == ["Fix it"]
        assert document.category_options == {}
        assert document.category_recommendation is None

    def test_created_at(self):
        created = datetime(2024, 5, 1, 12, 0, 0)
        document = parse_classifier_output({}, created_at=created)
        assert document.created_at == created
