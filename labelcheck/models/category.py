"""
Pydantic models for category disambiguation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .enums import ProductCategory


class CategorySelection(BaseModel):
    """A user's explicit category choice (not persisted on its own)."""
    selected_category: ProductCategory
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class CategorySelectionEvent(BaseModel):
    """Recorded selection, kept for downstream analytics."""
    id: str
    analysis_id: str
    detected_category: Optional[ProductCategory] = None
    selected_category: ProductCategory
    reason: Optional[str] = None
    created_at: datetime


class CategoryCandidate(BaseModel):
    """One column of the side-by-side category comparison."""
    category: ProductCategory
    is_detected: bool = False
    is_recommended: bool = False
    current_label_compliant: bool = False
    required_changes: list[str] = Field(default_factory=list)
    allowed_claims: list[str] = Field(default_factory=list)
    prohibited_claims: list[str] = Field(default_factory=list)
    regulatory_requirements: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class SelectionResult(BaseModel):
    """Outcome of committing a category selection."""
    success: bool
    analysis_id: str
    selected_category: Optional[ProductCategory] = None
    event: Optional[CategorySelectionEvent] = None
    error: Optional[str] = None
