"""
Category disambiguation for labels that plausibly fit more than one
regulatory category.

Flow per document: a document with alternatives starts in
awaiting_selection and may move to comparing and back; one without starts
in detected. Selecting a category from any state resolves it.

The detected category is stored once and never changes. A selection only
replaces the category used for the active evaluation.
"""

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from labelcheck.compliance.analysis_store import AnalysisStore
from labelcheck.compliance.document_parser import parse_category_options
from labelcheck.exceptions import (
    DisambiguationStateError,
    InvalidCategoryError,
    UnknownReferenceError,
)
from labelcheck.logging_config import get_logger
from labelcheck.models.category import (
    CategoryCandidate,
    CategorySelection,
    CategorySelectionEvent,
    SelectionResult,
)
from labelcheck.models.document import CategoryOptionData, ComplianceDocument
from labelcheck.models.enums import DisambiguationState, ProductCategory

logger = get_logger(__name__)


def coerce_category(value: Any) -> ProductCategory:
    """
    Validate a category identifier against the closed category set.

    Raises:
        InvalidCategoryError: If the value is not a known category
    """
    if isinstance(value, ProductCategory):
        return value
    if isinstance(value, str):
        try:
            return ProductCategory(value.strip().upper())
        except ValueError:
            pass
    raise InvalidCategoryError(f"Invalid category: {value!r}")


def needs_selection(document: ComplianceDocument) -> bool:
    """True when the classifier reported at least one alternative category."""
    return len(document.category_alternatives) > 0


def _normalize_options(
    options: Optional[Mapping[str, Any]], document: ComplianceDocument
) -> dict[str, CategoryOptionData]:
    if options is None:
        return dict(document.category_options)
    raw = {
        key: value.model_dump() if isinstance(value, CategoryOptionData) else value
        for key, value in options.items()
    }
    return parse_category_options(raw)


def build_candidates(
    document: ComplianceDocument,
    options: Optional[Mapping[str, Any]] = None,
    detected_category: Optional[ProductCategory] = None,
) -> list[CategoryCandidate]:
    """
    Build the side-by-side comparison: detected category first, then
    alternatives in document order.

    Args:
        document: The analysed document
        options: Per-category lookup; defaults to the document's own options.
            A category missing from the lookup gets empty lists and
            ``current_label_compliant=False``.
        detected_category: Category to flag as detected; defaults to the
            document's category

    Returns:
        One candidate per distinct category
    """
    lookup = _normalize_options(options, document)
    detected = detected_category or document.category
    recommended = (
        document.category_recommendation.suggested_category
        if document.category_recommendation
        else None
    )

    categories: list[ProductCategory] = []
    if detected is not None:
        categories.append(detected)
    for alternative in document.category_alternatives:
        if alternative not in categories:
            categories.append(alternative)

    candidates = []
    for category in categories:
        data = lookup.get(category.value) or CategoryOptionData()
        candidates.append(
            CategoryCandidate(
                category=category,
                is_detected=category == detected,
                is_recommended=category == recommended,
                **data.model_dump(),
            )
        )
    return candidates


def apply_selection(
    document: ComplianceDocument, selection: CategorySelection
) -> ComplianceDocument:
    """Return a copy of the document evaluated under the selected category."""
    return document.model_copy(update={"category": selection.selected_category})


class DisambiguationContext:
    """
    Per-document disambiguation state.

    Holds no shared state; create one per request or per viewer.
    """

    def __init__(
        self,
        document: ComplianceDocument,
        detected_category: Optional[ProductCategory] = None,
        options: Optional[Mapping[str, Any]] = None,
        resolved: bool = False,
    ):
        self.document = document
        self.detected_category = detected_category or document.category
        self.options = options
        self.selection: Optional[CategorySelection] = None

        if resolved:
            self.state = DisambiguationState.RESOLVED
        elif needs_selection(document):
            self.state = DisambiguationState.AWAITING_SELECTION
        else:
            self.state = DisambiguationState.DETECTED

    def candidates(self) -> list[CategoryCandidate]:
        return build_candidates(self.document, self.options, self.detected_category)

    def begin_comparison(self) -> None:
        if self.state != DisambiguationState.AWAITING_SELECTION:
            raise DisambiguationStateError(
                f"Cannot open comparison from state '{self.state.value}'"
            )
        self.state = DisambiguationState.COMPARING

    def back_to_selection(self) -> None:
        if self.state != DisambiguationState.COMPARING:
            raise DisambiguationStateError(
                f"Cannot return to selection from state '{self.state.value}'"
            )
        self.state = DisambiguationState.AWAITING_SELECTION

    def select(self, category: Any, reason: Optional[str] = None) -> ComplianceDocument:
        """
        Resolve the flow with a category choice.

        The reason is only kept when the choice differs from the detected
        category.

        Raises:
            InvalidCategoryError: If the category is not in the closed set
        """
        selected = coerce_category(category)
        self.selection = CategorySelection(
            selected_category=selected,
            reason=reason if reason and selected != self.detected_category else None,
        )
        self.document = apply_selection(self.document, self.selection)
        self.state = DisambiguationState.RESOLVED
        return self.document


class CategoryResolver:
    """Store-backed category selection for persisted analyses."""

    def __init__(self, db_path: str | None = None):
        self.store = AnalysisStore(db_path)

    def open_context(self, analysis_id: str) -> DisambiguationContext:
        """
        Build a disambiguation context for a stored analysis.

        Raises:
            UnknownReferenceError: If the analysis does not exist
        """
        document = self.store.require(analysis_id)
        return DisambiguationContext(
            document,
            detected_category=self.store.get_detected_category(analysis_id),
            resolved=len(self.store.get_selection_events(analysis_id)) > 0,
        )

    def get_candidates(self, analysis_id: str) -> list[CategoryCandidate]:
        return self.open_context(analysis_id).candidates()

    def commit_selection(
        self,
        analysis_id: str,
        selected_category: Any,
        reason: Optional[str] = None,
    ) -> SelectionResult:
        """
        Persist a user's category choice for an analysis.

        Re-selecting overwrites the active category and records another event.

        Args:
            analysis_id: The analysis to update
            selected_category: One of the ProductCategory identifiers
            reason: Free-text reason, stored only when the choice differs
                from the detected category

        Returns:
            SelectionResult; success is False when the analysis is unknown

        Raises:
            InvalidCategoryError: If the category is not in the closed set
        """
        category = coerce_category(selected_category)

        try:
            context = self.open_context(analysis_id)
        except UnknownReferenceError as e:
            logger.warning(
                "Category selection for unknown analysis",
                extra={"data": {"analysis_id": analysis_id}},
            )
            return SelectionResult(success=False, analysis_id=analysis_id, error=str(e))

        document = context.select(category, reason)
        event = CategorySelectionEvent(
            id=str(uuid.uuid4()),
            analysis_id=analysis_id,
            detected_category=context.detected_category,
            selected_category=category,
            reason=context.selection.reason,
            created_at=datetime.utcnow(),
        )

        try:
            self.store.save_category_selection(document, event)
        except UnknownReferenceError as e:
            return SelectionResult(success=False, analysis_id=analysis_id, error=str(e))

        logger.info(
            "Category selection saved",
            extra={
                "data": {
                    "analysis_id": analysis_id,
                    "detected_category": (
                        context.detected_category.value if context.detected_category else None
                    ),
                    "selected_category": category.value,
                    "changed": category != context.detected_category,
                }
            },
        )
        return SelectionResult(
            success=True,
            analysis_id=analysis_id,
            selected_category=category,
            event=event,
        )
