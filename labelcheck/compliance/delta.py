"""
Delta engine for before/after compliance comparison of label revisions.
"""

from typing import Optional, Sequence

from labelcheck.models.comparison import ComparisonResult, IssueCounts
from labelcheck.models.document import ComplianceDocument, SectionResult
from labelcheck.models.enums import ComplianceStatus, SectionTopic


# Sections that contribute to issue counts. Ingredient labeling and
# additional requirements are never counted.
COUNTED_SECTIONS = (
    SectionTopic.GENERAL_LABELING,
    SectionTopic.NUTRITION_LABELING,
    SectionTopic.ALLERGEN_LABELING,
    SectionTopic.CLAIMS,
)

CRITICAL_STATUSES = {ComplianceStatus.NON_COMPLIANT}
WARNING_STATUSES = {ComplianceStatus.WARNING, ComplianceStatus.POTENTIALLY_NON_COMPLIANT}
IMPROVED_STATUSES = {ComplianceStatus.COMPLIANT, ComplianceStatus.LIKELY_COMPLIANT}


def _section_statuses(section: Optional[SectionResult]) -> list[ComplianceStatus]:
    """Statuses carried by a section itself and by its direct sub-results."""
    if section is None:
        return []

    statuses = []
    if section.status is not None:
        statuses.append(section.status)
    for sub_result in section.fields.values():
        if sub_result is not None and sub_result.status is not None:
            statuses.append(sub_result.status)
    return statuses


def count_issues(document: ComplianceDocument) -> IssueCounts:
    """
    Bucket the statuses of the counted sections by severity.

    Args:
        document: Document to count; missing sections contribute nothing

    Returns:
        IssueCounts with critical, warning and compliant buckets
    """
    counts = IssueCounts()

    for topic in COUNTED_SECTIONS:
        for status in _section_statuses(document.section(topic)):
            if status in CRITICAL_STATUSES:
                counts.critical += 1
            elif status in WARNING_STATUSES:
                counts.warning += 1
            elif status == ComplianceStatus.COMPLIANT:
                counts.compliant += 1

    return counts


def compare(previous: ComplianceDocument, current: ComplianceDocument) -> ComparisonResult:
    """
    Compare a revised document against the one it replaces.

    ``improvement`` is the drop in issue count (negative means regression).
    ``status_improved`` is only set when the headline status changed AND the
    new status is compliant or likely compliant; moving between two
    non-compliant statuses never sets it, whatever the counts did.
    """
    previous_counts = count_issues(previous)
    current_counts = count_issues(current)

    previous_status = previous.overall_status
    current_status = current.overall_status

    return ComparisonResult(
        previous_issue_count=previous_counts.issues,
        current_issue_count=current_counts.issues,
        improvement=previous_counts.issues - current_counts.issues,
        status_improved=(
            previous_status != current_status and current_status in IMPROVED_STATUSES
        ),
        previous_status=previous_status,
        current_status=current_status,
        previous_counts=previous_counts,
        current_counts=current_counts,
    )


def chain_comparisons(documents: Sequence[ComplianceDocument]) -> list[ComparisonResult]:
    """Single-step comparisons over consecutive pairs of an ordered document sequence."""
    return [
        compare(previous, current)
        for previous, current in zip(documents, documents[1:])
    ]
