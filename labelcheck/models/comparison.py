"""
Pydantic models for before/after compliance comparison.
"""

from typing import Optional
from pydantic import BaseModel, Field

from .enums import ComplianceStatus


class IssueCounts(BaseModel):
    """Severity buckets counted over one document."""
    critical: int = 0
    warning: int = 0
    compliant: int = 0

    @property
    def issues(self) -> int:
        return self.critical + self.warning


class ComparisonResult(BaseModel):
    """Delta between a previous and a current document. Never persisted."""
    previous_issue_count: int
    current_issue_count: int
    improvement: int
    status_improved: bool
    previous_status: Optional[ComplianceStatus] = None
    current_status: Optional[ComplianceStatus] = None
    previous_counts: IssueCounts = Field(default_factory=IssueCounts)
    current_counts: IssueCounts = Field(default_factory=IssueCounts)


class ComplianceProgress(BaseModel):
    """How far a session has moved from its first document to its latest one."""
    session_id: str
    revision_count: int
    initial_issue_count: int
    current_issue_count: int
    improvement: int
    resolved: bool
    initial_counts: IssueCounts
    current_counts: IssueCounts
