"""
Request and response schemas for the label compliance API endpoints.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .category import CategoryCandidate, CategorySelectionEvent
from .comparison import ComparisonResult, ComplianceProgress
from .document import ComplianceDocument
from .enums import DisambiguationState, IterationKind, ProductCategory
from .session import AnalysisSession, Iteration


# ============== REQUEST SCHEMAS ==============

class SelectCategoryRequest(BaseModel):
    """Request to select the category an analysis is evaluated under."""
    model_config = ConfigDict(populate_by_name=True)

    analysis_id: str = Field(alias="analysisId")
    selected_category: str = Field(alias="selectedCategory")
    reason: Optional[str] = None


class CreateSessionRequest(BaseModel):
    """Request to start a session for an existing analysis."""
    model_config = ConfigDict(populate_by_name=True)

    origin_analysis_id: str = Field(alias="originAnalysisId")
    title: Optional[str] = None


class AppendIterationRequest(BaseModel):
    """Request to append one iteration to a session."""
    model_config = ConfigDict(populate_by_name=True)

    kind: IterationKind
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
    analysis_id: Optional[str] = Field(default=None, alias="analysisId", validate_default=True)

    @field_validator("analysis_id")
    @classmethod
    def validate_analysis_id(cls, v: Optional[str], info) -> Optional[str]:
        if info.data.get("kind") == IterationKind.REVISED_UPLOAD and not v:
            raise ValueError("Revised upload iterations must reference an analysisId")
        return v


class CompareRequest(BaseModel):
    """Two raw classifier documents to compare without storing them."""
    previous: dict[str, Any]
    current: dict[str, Any]


# ============== RESPONSE SCHEMAS ==============

class AnalysisResponse(BaseModel):
    """Response for a stored analysis."""
    document: ComplianceDocument
    detected_category: Optional[ProductCategory] = None
    needs_category_selection: bool


class CategoryOptionsResponse(BaseModel):
    """Response for the category comparison view."""
    analysis_id: str
    state: DisambiguationState
    detected_category: Optional[ProductCategory] = None
    current_category: Optional[ProductCategory] = None
    candidates: list[CategoryCandidate] = Field(default_factory=list)


class SelectCategoryResponse(BaseModel):
    """Response for a category selection."""
    success: bool
    analysis_id: str
    selected_category: Optional[ProductCategory] = None
    event: Optional[CategorySelectionEvent] = None
    message: Optional[str] = None


class SessionResponse(BaseModel):
    """Response for a session."""
    session: AnalysisSession


class HistoryResponse(BaseModel):
    """Response for a session's ordered iteration history."""
    session_id: str
    iterations: list[Iteration] = Field(default_factory=list)
    total: int


class ComparisonResponse(BaseModel):
    """Response for a before/after comparison."""
    comparison: ComparisonResult


class ProgressResponse(BaseModel):
    """Response for a session's overall compliance progress."""
    progress: ComplianceProgress


class ErrorResponse(BaseModel):
    """Response for errors."""
    error: str
    message: str
    details: Optional[dict] = None
