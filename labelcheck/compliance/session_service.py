"""
Service for analysis sessions and their append-only iteration log.
"""

import json
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Optional

from labelcheck.compliance.analysis_store import AnalysisStore
from labelcheck.compliance.delta import chain_comparisons, compare, count_issues
from labelcheck.config import get
from labelcheck.exceptions import SessionComparisonError, UnknownReferenceError
from labelcheck.logging_config import get_logger
from labelcheck.models.comparison import ComparisonResult, ComplianceProgress
from labelcheck.models.database import get_connection
from labelcheck.models.document import ComplianceDocument
from labelcheck.models.enums import IterationKind
from labelcheck.models.session import AnalysisSession, Iteration

logger = get_logger(__name__)


def _row_to_session(row: sqlite3.Row) -> AnalysisSession:
    return AnalysisSession(
        id=row["id"],
        origin_analysis_id=row["origin_analysis_id"],
        title=row["title"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_iteration(row: sqlite3.Row) -> Iteration:
    return Iteration(
        id=row["id"],
        session_id=row["session_id"],
        kind=IterationKind(row["kind"]),
        timestamp=row["timestamp"],
        payload=json.loads(row["payload"]),
        analysis_id=row["analysis_id"],
        sequence=row["seq"],
    )


class SessionTracker:
    """
    Tracks follow-up activity against an originating analysis.

    History is append-only and ordered by when the store accepted each
    entry. The caller's timestamp is recorded but does not affect order.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path
        self.store = AnalysisStore(db_path)

    def start_session(self, origin_analysis_id: str, title: Optional[str] = None) -> AnalysisSession:
        """
        Create a session bound to an existing analysis.

        Raises:
            UnknownReferenceError: If the origin analysis does not exist
        """
        if not self.store.exists(origin_analysis_id):
            raise UnknownReferenceError("Analysis", origin_analysis_id)

        session_id = str(uuid.uuid4())
        now = datetime.utcnow()

        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO analysis_session (id, origin_analysis_id, title, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (session_id, origin_analysis_id, title, now.isoformat(), now.isoformat()),
        )
        conn.commit()
        conn.close()

        logger.info(
            "Session started",
            extra={"data": {"session_id": session_id, "origin_analysis_id": origin_analysis_id}},
        )

        return AnalysisSession(
            id=session_id,
            origin_analysis_id=origin_analysis_id,
            title=title,
            created_at=now,
            updated_at=now,
        )

    def get_session(self, session_id: str) -> Optional[AnalysisSession]:
        """Get a session by ID."""
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM analysis_session WHERE id = ?", (session_id,))
        row = cursor.fetchone()
        conn.close()

        if not row:
            return None
        return _row_to_session(row)

    def require_session(self, session_id: str) -> AnalysisSession:
        session = self.get_session(session_id)
        if session is None:
            raise UnknownReferenceError("Session", session_id)
        return session

    def list_sessions(
        self,
        origin_analysis_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[AnalysisSession], int]:
        """List sessions, most recently active first, with pagination."""
        if limit is None:
            limit = get("sessions", "default_page_size")
        limit = max(1, min(limit, get("sessions", "max_page_size")))

        conn = get_connection(self.db_path)
        cursor = conn.cursor()

        query = "SELECT * FROM analysis_session WHERE 1=1"
        params: list[Any] = []

        if origin_analysis_id:
            query += " AND origin_analysis_id = ?"
            params.append(origin_analysis_id)

        count_query = query.replace("SELECT *", "SELECT COUNT(*)")
        cursor.execute(count_query, params)
        total = cursor.fetchone()[0]

        query += " ORDER BY updated_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()

        return [_row_to_session(row) for row in rows], total

    def ensure_session(self, origin_analysis_id: str) -> AnalysisSession:
        """
        Session for a follow-up on an analysis, created on the first one.

        Returns the most recently active session for the analysis when one
        exists, otherwise starts a new one.

        Raises:
            UnknownReferenceError: If the origin analysis does not exist
        """
        if not self.store.exists(origin_analysis_id):
            raise UnknownReferenceError("Analysis", origin_analysis_id)

        conn = get_connection(self.db_path)
        cursor = conn.cursor()

        # Lookup and insert under one write lock so concurrent first follow-ups share a session
        cursor.execute("BEGIN IMMEDIATE")
        cursor.execute(
            """
            SELECT * FROM analysis_session WHERE origin_analysis_id = ?
            ORDER BY updated_at DESC LIMIT 1
            """,
            (origin_analysis_id,),
        )
        row = cursor.fetchone()
        if row:
            conn.rollback()
            conn.close()
            return _row_to_session(row)

        session_id = str(uuid.uuid4())
        now = datetime.utcnow()
        cursor.execute(
            """
            INSERT INTO analysis_session (id, origin_analysis_id, title, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (session_id, origin_analysis_id, None, now.isoformat(), now.isoformat()),
        )
        conn.commit()
        conn.close()

        logger.info(
            "Session started on first follow-up",
            extra={"data": {"session_id": session_id, "origin_analysis_id": origin_analysis_id}},
        )
        return AnalysisSession(
            id=session_id,
            origin_analysis_id=origin_analysis_id,
            created_at=now,
            updated_at=now,
        )

    def append(
        self,
        session_id: str,
        kind: IterationKind | str,
        payload: Optional[dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
        analysis_id: Optional[str] = None,
    ) -> list[Iteration]:
        """
        Append one iteration to a session's log.

        Args:
            session_id: Target session
            kind: chat, text_check or revised_upload
            payload: Kind-specific content, stored as JSON
            timestamp: Caller-supplied time; defaults to now
            analysis_id: Document introduced by a revised upload (required for that kind)

        Returns:
            The session's full history after the append, in append order

        Raises:
            UnknownReferenceError: If the session or referenced analysis does not exist
            pydantic.ValidationError: If the kind is unknown or a revised upload
                has no analysis_id
        """
        iteration = Iteration(
            id=str(uuid.uuid4()),
            session_id=session_id,
            kind=kind,
            timestamp=timestamp or datetime.utcnow(),
            payload=payload or {},
            analysis_id=analysis_id,
        )

        if iteration.analysis_id and not self.store.exists(iteration.analysis_id):
            raise UnknownReferenceError("Analysis", iteration.analysis_id)

        conn = get_connection(self.db_path)
        cursor = conn.cursor()

        # Write lock held from the existence check through the insert
        cursor.execute("BEGIN IMMEDIATE")
        cursor.execute("SELECT 1 FROM analysis_session WHERE id = ?", (session_id,))
        if not cursor.fetchone():
            conn.rollback()
            conn.close()
            raise UnknownReferenceError("Session", session_id)

        cursor.execute(
            """
            INSERT INTO analysis_iteration (id, session_id, kind, payload, analysis_id, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                iteration.id,
                session_id,
                iteration.kind.value,
                json.dumps(iteration.payload, default=str),
                iteration.analysis_id,
                iteration.timestamp.isoformat(),
            ),
        )
        cursor.execute(
            "UPDATE analysis_session SET updated_at = ? WHERE id = ?",
            (datetime.utcnow().isoformat(), session_id),
        )
        conn.commit()
        conn.close()

        logger.info(
            "Iteration appended",
            extra={
                "data": {
                    "session_id": session_id,
                    "iteration_id": iteration.id,
                    "kind": iteration.kind.value,
                }
            },
        )

        return self.get_history(session_id)

    def get_history(self, session_id: str) -> list[Iteration]:
        """
        Full ordered history of a session.

        Raises:
            UnknownReferenceError: If the session does not exist
        """
        self.require_session(session_id)

        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM analysis_iteration WHERE session_id = ? ORDER BY seq ASC",
            (session_id,),
        )
        rows = cursor.fetchall()
        conn.close()

        return [_row_to_iteration(row) for row in rows]

    def get_latest_iteration(self, session_id: str) -> Optional[Iteration]:
        history = self.get_history(session_id)
        return history[-1] if history else None

    def get_iterations_by_kind(
        self, session_id: str, kind: IterationKind | str
    ) -> list[Iteration]:
        kind = IterationKind(kind)
        return [iteration for iteration in self.get_history(session_id) if iteration.kind == kind]

    def document_timeline(self, session_id: str) -> list[ComplianceDocument]:
        """The origin document followed by each revised upload's document, in order."""
        session = self.require_session(session_id)
        documents = [self.store.require(session.origin_analysis_id)]
        for iteration in self.get_iterations_by_kind(session_id, IterationKind.REVISED_UPLOAD):
            documents.append(self.store.require(iteration.analysis_id))
        return documents

    def compare_latest(self, session_id: str) -> ComparisonResult:
        """
        Compare the most recent revision against the document before it.

        Raises:
            UnknownReferenceError: If the session does not exist
            SessionComparisonError: If the session has no revised upload yet
        """
        documents = self.document_timeline(session_id)
        if len(documents) < 2:
            raise SessionComparisonError(
                f"Session '{session_id}' has no revised upload to compare"
            )
        return compare(documents[-2], documents[-1])

    def comparison_chain(self, session_id: str) -> list[ComparisonResult]:
        """One comparison per revised upload, each against its predecessor."""
        return chain_comparisons(self.document_timeline(session_id))

    def compliance_progress(self, session_id: str) -> ComplianceProgress:
        """
        Issue counts of the session's first document against its latest one.

        Until a revised upload arrives both ends are the origin document, so
        improvement is zero and resolved reflects the origin alone.

        Raises:
            UnknownReferenceError: If the session does not exist
        """
        documents = self.document_timeline(session_id)
        initial = count_issues(documents[0])
        current = count_issues(documents[-1])
        return ComplianceProgress(
            session_id=session_id,
            revision_count=len(documents) - 1,
            initial_issue_count=initial.issues,
            current_issue_count=current.issues,
            improvement=initial.issues - current.issues,
            resolved=current.issues == 0,
            initial_counts=initial,
            current_counts=current,
        )
