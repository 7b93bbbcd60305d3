"""
Tests for issue counting and before/after comparison.
"""

from labelcheck.compliance.delta import chain_comparisons, compare, count_issues
from labelcheck.compliance.document_parser import parse_classifier_output
from labelcheck.models.document import ComplianceDocument, SectionResult
from labelcheck.models.enums import ComplianceStatus, SectionTopic


class TestCountIssues:

    def test_buckets_by_severity(self, make_document):
        document = make_document(
            sections={
                "general_labeling": ["compliant", "non_compliant"],
                "allergen_labeling": ["potentially_non_compliant"],
                "nutrition_labeling": ["warning", "likely_compliant"],
                "claims": ["not_applicable"],
            }
        )

        counts = count_issues(document)

        assert counts.critical == 1
        assert counts.warning == 2
        assert counts.compliant == 1
        assert counts.issues == 3

    def test_ingredient_and_additional_sections_are_not_counted(self, make_document):
        document = make_document(
            sections={
                "ingredient_labeling": ["non_compliant", "non_compliant"],
                "additional_requirements": ["non_compliant"],
            }
        )
        assert count_issues(document).issues == 0

    def test_section_level_status_is_counted(self):
        document = ComplianceDocument(
            id="doc-1",
            sections={
                SectionTopic.ALLERGEN_LABELING: SectionResult(
                    status=ComplianceStatus.NON_COMPLIANT
                ),
            },
        )
        assert count_issues(document).critical == 1

    def test_empty_document(self):
        counts = count_issues(ComplianceDocument(id="empty"))
        assert counts.issues == 0
        assert counts.compliant == 0


class TestCompare:

    def test_identical_documents(self, make_document):
        document = make_document(
            overall_status="non_compliant",
            sections={"general_labeling": ["non_compliant", "warning"]},
        )

        result = compare(document, document)

        assert result.improvement == 0
        assert result.status_improved is False

    def test_full_fix_improves_status(self, make_document):
        previous = make_document(
            overall_status="non_compliant",
            sections={"general_labeling": ["non_compliant", "non_compliant", "warning"]},
        )
        current = make_document(
            doc_id="doc-2",
            overall_status="compliant",
            sections={"general_labeling": ["compliant", "compliant", "compliant"]},
        )

        result = compare(previous, current)

        assert result.previous_issue_count == 3
        assert result.current_issue_count == 0
        assert result.improvement == 3
        assert result.status_improved is True

    def test_fewer_issues_but_still_non_compliant(self, make_document):
        previous = make_document(
            overall_status="non_compliant",
            sections={
                "general_labeling": ["non_compliant", "non_compliant"],
                "claims": ["warning", "warning"],
            },
        )
        current = make_document(
            doc_id="doc-2",
            overall_status="potentially_non_compliant",
            sections={"claims": ["warning"]},
        )

        result = compare(previous, current)

        assert result.improvement == 3
        assert result.status_improved is False
        assert result.previous_status == ComplianceStatus.NON_COMPLIANT
        assert result.current_status == ComplianceStatus.POTENTIALLY_NON_COMPLIANT

    def test_regression_is_negative(self, make_document):
        previous = make_document(overall_status="compliant")
        current = make_document(
            doc_id="doc-2",
            overall_status="non_compliant",
            sections={"nutrition_labeling": ["non_compliant"]},
        )

        result = compare(previous, current)

        assert result.improvement == -1
        assert result.status_improved is False

    def test_unchanged_compliant_status_is_not_improvement(self, make_document):
        previous = make_document(overall_status="compliant")
        current = make_document(doc_id="doc-2", overall_status="compliant")
        assert compare(previous, current).status_improved is False

    def test_missing_overall_status(self, make_document):
        previous = make_document()
        current = make_document(doc_id="doc-2", overall_status="likely_compliant")
        assert compare(previous, current).status_improved is True

    def test_parsed_classifier_documents(self, ambiguous_payload, revised_payload):
        previous = parse_classifier_output(ambiguous_payload)
        current = parse_classifier_output(revised_payload)

        result = compare(previous, current)

        assert result.previous_counts.critical == 2
        assert result.previous_counts.warning == 2
        assert result.current_issue_count == 0
        assert result.improvement == 4
        assert result.status_improved is True


class TestChainComparisons:

    def test_one_result_per_consecutive_pair(self, make_document):
        documents = [
            make_document(doc_id="a", sections={"claims": ["warning", "warning"]}),
            make_document(doc_id="b", sections={"claims": ["warning"]}),
            make_document(doc_id="c", sections={"claims": ["warning", "non_compliant"]}),
        ]

        results = chain_comparisons(documents)

        assert [result.improvement for result in results] == [1, -1]

    def test_single_document_has_no_comparisons(self, make_document):
        assert chain_comparisons([make_document()]) == []
