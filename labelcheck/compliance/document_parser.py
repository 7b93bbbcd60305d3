"""
Parsing of raw classifier output into ComplianceDocument models.

The classifier returns loosely structured JSON in which almost every field is
optional. Everything here checks for presence explicitly and degrades to
empty/None instead of raising, so a partial document still flows through the
rest of the engine.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from labelcheck.compliance.normalizer import classify_row_status
from labelcheck.logging_config import get_logger
from labelcheck.models.document import (
    CategoryConflict,
    CategoryOptionData,
    CategoryRecommendation,
    ComplianceDocument,
    ComplianceTableRow,
    Recommendation,
    SectionResult,
)
from labelcheck.models.enums import (
    ComplianceStatus,
    ConfidenceLevel,
    ProductCategory,
    SectionTopic,
)

logger = get_logger(__name__)

# Keys the classifier uses on every section; everything else goes to ``extra``
_SECTION_KEYS = {"status", "details", "regulation_citation"}


def parse_status(value: Any) -> Optional[ComplianceStatus]:
    """Coerce a status string into the closed set, or None if unrecognized."""
    if not isinstance(value, str):
        return None
    normalized = "_".join(value.strip().lower().replace("-", " ").split())
    try:
        return ComplianceStatus(normalized)
    except ValueError:
        return None


def parse_category(value: Any) -> Optional[ProductCategory]:
    if not isinstance(value, str):
        return None
    try:
        return ProductCategory(value.strip().upper())
    except ValueError:
        return None


def parse_confidence(value: Any) -> Optional[ConfidenceLevel]:
    if not isinstance(value, str):
        return None
    try:
        return ConfidenceLevel(value.strip().lower())
    except ValueError:
        return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_str_list(value: Any) -> list[str]:
    return [str(item) for item in _as_list(value) if item is not None]


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_section(raw: dict) -> SectionResult:
    """
    Parse one section payload.

    Nested dicts that carry a ``status`` key become sub-results in
    ``fields``; all other keys are kept in ``extra``.
    """
    fields = {}
    extra = {}
    for key, value in raw.items():
        if key in _SECTION_KEYS:
            continue
        if isinstance(value, dict) and "status" in value:
            fields[key] = parse_section(value)
        else:
            extra[key] = value

    citation = raw.get("regulation_citation")
    return SectionResult(
        status=parse_status(raw.get("status")),
        details=_text(raw.get("details")),
        regulation_citation=citation if isinstance(citation, str) else None,
        fields=fields,
        extra=extra,
    )


def _parse_additional_requirements(raw: Any) -> Optional[SectionResult]:
    """Additional requirements arrive as a list; key each entry by its requirement name."""
    items = [item for item in _as_list(raw) if isinstance(item, dict)]
    if not items:
        return None

    fields = {}
    for index, item in enumerate(items):
        name = _text(item.get("requirement")) or f"requirement_{index + 1}"
        if name in fields:
            name = f"{name} ({index + 1})"
        fields[name] = parse_section(
            {key: value for key, value in item.items() if key != "requirement"}
        )
    return SectionResult(fields=fields)


def _parse_sections(payload: dict) -> dict[SectionTopic, SectionResult]:
    sections = {}
    for topic in SectionTopic:
        raw = payload.get(topic.value)
        if topic == SectionTopic.ADDITIONAL_REQUIREMENTS:
            parsed = _parse_additional_requirements(raw)
            if parsed is not None:
                sections[topic] = parsed
            continue
        if not isinstance(raw, dict):
            continue
        sections[topic] = parse_section(raw)
    return sections


def _parse_table(raw: Any) -> list[ComplianceTableRow]:
    rows = []
    for item in _as_list(raw):
        if not isinstance(item, dict) or not isinstance(item.get("element"), str):
            continue
        status = _text(item.get("status"))
        rows.append(
            ComplianceTableRow(
                element=item["element"],
                status=status,
                rationale=_text(item.get("rationale")),
                normalized_status=classify_row_status(status),
            )
        )
    return rows


def _parse_recommendations(raw: Any) -> list[Recommendation]:
    recommendations = []
    for item in _as_list(raw):
        if not isinstance(item, dict) or not isinstance(item.get("recommendation"), str):
            continue
        ingredient = item.get("ingredient")
        recommendations.append(
            Recommendation(
                priority=_text(item.get("priority")),
                recommendation=item["recommendation"],
                regulation=_text(item.get("regulation")),
                ingredient=ingredient if isinstance(ingredient, str) else None,
            )
        )
    return recommendations


def _parse_alternatives(
    raw: Any, detected: Optional[ProductCategory]
) -> list[ProductCategory]:
    """Alternatives in document order, without the detected category or repeats."""
    alternatives = []
    for value in _as_list(raw):
        category = parse_category(value)
        if category is None:
            logger.debug(f"Ignoring unknown alternative category: {value!r}")
            continue
        if category == detected or category in alternatives:
            continue
        alternatives.append(category)
    return alternatives


def _parse_conflicts(raw: Any) -> list[CategoryConflict]:
    conflicts = []
    for item in _as_list(raw):
        if not isinstance(item, dict) or not isinstance(item.get("conflict"), str):
            continue
        current = item.get("current_category")
        conflicts.append(
            CategoryConflict(
                severity=_text(item.get("severity")) or "medium",
                conflict=item["conflict"],
                current_category=current if isinstance(current, str) else None,
                violation=_text(item.get("violation")),
            )
        )
    return conflicts


def parse_category_options(raw: Any) -> dict[str, CategoryOptionData]:
    options = {}
    for key, value in _as_dict(raw).items():
        category = parse_category(key)
        if category is None or not isinstance(value, dict):
            continue
        options[category.value] = CategoryOptionData(
            current_label_compliant=value.get("current_label_compliant") is True,
            required_changes=_as_str_list(value.get("required_changes")),
            allowed_claims=_as_str_list(value.get("allowed_claims")),
            prohibited_claims=_as_str_list(value.get("prohibited_claims")),
            regulatory_requirements=_as_str_list(value.get("regulatory_requirements")),
            pros=_as_str_list(value.get("pros")),
            cons=_as_str_list(value.get("cons")),
        )
    return options


def _parse_category_recommendation(raw: Any) -> Optional[CategoryRecommendation]:
    data = _as_dict(raw)
    suggested = parse_category(data.get("suggested_category"))
    if suggested is None:
        return None
    confidence = data.get("confidence")
    return CategoryRecommendation(
        suggested_category=suggested,
        confidence=confidence if isinstance(confidence, str) else None,
        reasoning=_text(data.get("reasoning")),
        key_decision_factors=_as_str_list(data.get("key_decision_factors")),
    )


def parse_classifier_output(
    payload: dict,
    analysis_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> ComplianceDocument:
    """
    Build a ComplianceDocument from the classifier's JSON response.

    Args:
        payload: Decoded classifier response
        analysis_id: Identifier to assign; generated when omitted
        created_at: Creation time; defaults to now

    Returns:
        ComplianceDocument with the detected category set once
    """
    payload = _as_dict(payload)
    ambiguity = _as_dict(payload.get("category_ambiguity"))
    overall = _as_dict(payload.get("overall_assessment"))

    category = parse_category(payload.get("product_category"))
    product_name = payload.get("product_name")
    product_type = payload.get("product_type")
    rationale = payload.get("category_rationale")

    return ComplianceDocument(
        id=analysis_id or str(uuid.uuid4()),
        product_name=product_name if isinstance(product_name, str) else None,
        product_type=product_type if isinstance(product_type, str) else None,
        sections=_parse_sections(payload),
        compliance_table=_parse_table(payload.get("compliance_table")),
        recommendations=_parse_recommendations(payload.get("recommendations")),
        overall_status=parse_status(overall.get("primary_compliance_status")),
        category=category,
        category_confidence=parse_confidence(payload.get("category_confidence")),
        category_rationale=rationale if isinstance(rationale, str) else None,
        category_alternatives=_parse_alternatives(
            ambiguity.get("alternative_categories"), category
        ),
        category_conflicts=_parse_conflicts(ambiguity.get("label_conflicts")),
        category_options=parse_category_options(payload.get("category_options")),
        category_recommendation=_parse_category_recommendation(payload.get("recommendation")),
        created_at=created_at or datetime.utcnow(),
    )
