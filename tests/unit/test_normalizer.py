"""
Tests for compliance table and recommendation ordering.
"""

import pytest

from labelcheck.compliance.normalizer import (
    ELEMENT_RANKS,
    UNMATCHED_RANK,
    ComplianceTableNormalizer,
    classify_row_status,
)
from labelcheck.models.document import ComplianceDocument, ComplianceTableRow, Recommendation
from labelcheck.models.enums import ComplianceStatus


@pytest.fixture
def normalizer():
    return ComplianceTableNormalizer()


def rows(*elements):
    return [ComplianceTableRow(element=element) for element in elements]


class TestElementRank:

    def test_exact_key(self, normalizer):
        assert normalizer.element_rank("Statement of Identity") == 100

    def test_case_insensitive_containment(self, normalizer):
        assert normalizer.element_rank("NET QUANTITY of contents") == 110

    def test_first_listed_key_wins(self, normalizer):
        # "Manufacturer" is listed before "Manufacturer Address"
        assert normalizer.element_rank("Manufacturer Address") == 120
        assert normalizer.element_rank("GRAS Ingredient status") == 200

    def test_unmatched(self, normalizer):
        assert normalizer.element_rank("Unknown Widget") == UNMATCHED_RANK
        assert normalizer.element_rank("") == UNMATCHED_RANK

    def test_bands_are_ordered_by_section(self):
        bands = [rank // 100 for _, rank in ELEMENT_RANKS]
        assert bands == sorted(bands)


class TestSortTable:

    def test_orders_general_before_allergen_before_unmatched(self, normalizer):
        ordered = normalizer.sort_table(
            rows("Unknown Widget", "Allergen Declaration", "Net Quantity")
        )
        assert [row.element for row in ordered] == [
            "Net Quantity",
            "Allergen Declaration",
            "Unknown Widget",
        ]

    def test_stable_for_equal_ranks(self, normalizer):
        ordered = normalizer.sort_table(
            rows("Widget B", "Ingredients", "Widget A", "Ingredient")
        )
        assert [row.element for row in ordered] == [
            "Ingredients",
            "Ingredient",
            "Widget B",
            "Widget A",
        ]

    def test_does_not_mutate_input(self, normalizer):
        original = rows("Claims", "Net Quantity")
        normalizer.sort_table(original)
        assert [row.element for row in original] == ["Claims", "Net Quantity"]

    def test_empty(self, normalizer):
        assert normalizer.sort_table([]) == []

    def test_custom_ranks(self):
        custom = ComplianceTableNormalizer(element_ranks=[("Zeta", 1), ("Alpha", 2)])
        ordered = custom.sort_table(rows("Alpha", "Zeta"))
        assert [row.element for row in ordered] == ["Zeta", "Alpha"]


class TestSortRecommendations:

    def test_priority_order_with_unknown_last(self, normalizer):
        recs = [
            Recommendation(priority="low", recommendation="a"),
            Recommendation(priority="bogus", recommendation="b"),
            Recommendation(priority="critical", recommendation="c"),
            Recommendation(priority="medium", recommendation="d"),
            Recommendation(priority="HIGH", recommendation="e"),
        ]
        ordered = normalizer.sort_recommendations(recs)
        assert [rec.recommendation for rec in ordered] == ["c", "e", "d", "a", "b"]

    def test_critical_ranks_first(self, normalizer):
        assert normalizer.priority_rank("critical") == 0

    def test_non_string_priority_ranks_last(self, normalizer):
        assert normalizer.priority_rank(None) == normalizer.priority_rank("unknown")

    def test_stable_within_priority(self, normalizer):
        recs = [
            Recommendation(priority="high", recommendation="first"),
            Recommendation(priority="high", recommendation="second"),
        ]
        ordered = normalizer.sort_recommendations(recs)
        assert [rec.recommendation for rec in ordered] == ["first", "second"]


class TestNormalizeDocument:

    def test_returns_sorted_copy(self, normalizer):
        document = ComplianceDocument(
            id="doc-1",
            compliance_table=rows("Claims", "Net Quantity"),
            recommendations=[
                Recommendation(priority="low", recommendation="later"),
                Recommendation(priority="critical", recommendation="now"),
            ],
        )

        normalized = normalizer.normalize_document(document)

        assert [row.element for row in normalized.compliance_table] == ["Net Quantity", "Claims"]
        assert normalized.recommendations[0].recommendation == "now"
        assert [row.element for row in document.compliance_table] == ["Claims", "Net Quantity"]
        assert normalized.id == document.id


class TestClassifyRowStatus:

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Compliant", ComplianceStatus.COMPLIANT),
            ("Non-compliant", ComplianceStatus.NON_COMPLIANT),
            ("Potentially Non-compliant", ComplianceStatus.POTENTIALLY_NON_COMPLIANT),
            ("likely_compliant", ComplianceStatus.LIKELY_COMPLIANT),
            ("Not Applicable", ComplianceStatus.NOT_APPLICABLE),
            ("Warning", ComplianceStatus.WARNING),
        ],
    )
    def test_known_wording(self, text, expected):
        assert classify_row_status(text) == expected

    def test_unknown_wording(self):
        assert classify_row_status("Needs review") is None
        assert classify_row_status("") is None
        assert classify_row_status(None) is None
