"""
Pydantic models for analysis sessions and their iteration log.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator

from .enums import IterationKind


class AnalysisSession(BaseModel):
    """Binds one originating analysis to all of its follow-up activity."""
    id: str
    origin_analysis_id: str
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Iteration(BaseModel):
    """One append-only entry in a session's log."""
    id: str
    session_id: str
    kind: IterationKind
    timestamp: datetime
    payload: dict[str, Any] = Field(default_factory=dict)
    analysis_id: Optional[str] = Field(default=None, validate_default=True)
    sequence: Optional[int] = None  # Store insertion order, assigned on append

    @field_validator("analysis_id")
    @classmethod
    def validate_analysis_id(cls, v: Optional[str], info) -> Optional[str]:
        """Revised uploads must reference the document they introduced."""
        kind = info.data.get("kind")
        if kind == IterationKind.REVISED_UPLOAD and not v:
            raise ValueError("Revised upload iterations must reference an analysis_id")
        return v
