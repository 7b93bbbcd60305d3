"""
Persistence for compliance documents and category selection events.
"""

import sqlite3
from datetime import datetime
from typing import Optional

from labelcheck.exceptions import UnknownReferenceError
from labelcheck.logging_config import get_logger
from labelcheck.models.category import CategorySelectionEvent
from labelcheck.models.database import get_connection
from labelcheck.models.document import ComplianceDocument
from labelcheck.models.enums import ProductCategory

logger = get_logger(__name__)


class AnalysisStore:
    """Stores classifier documents; the detected category is written exactly once."""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path

    def save(self, document: ComplianceDocument) -> ComplianceDocument:
        """
        Insert a new document.

        Raises:
            ValueError: If a document with the same id already exists
        """
        now = datetime.utcnow().isoformat()
        category = document.category.value if document.category else None

        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO analysis (id, detected_category, category, overall_status, document,
                                      created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document.id,
                    category,
                    category,
                    document.overall_status.value if document.overall_status else None,
                    document.model_dump_json(),
                    document.created_at.isoformat(),
                    now,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError:
            raise ValueError(f"Analysis {document.id} already exists") from None
        finally:
            conn.close()

        logger.info(
            "Analysis stored",
            extra={"data": {"analysis_id": document.id, "category": category}},
        )
        return document

    def get(self, analysis_id: str) -> Optional[ComplianceDocument]:
        """Get a document by ID."""
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT document FROM analysis WHERE id = ?", (analysis_id,))
        row = cursor.fetchone()
        conn.close()

        if not row:
            return None
        return ComplianceDocument.model_validate_json(row["document"])

    def require(self, analysis_id: str) -> ComplianceDocument:
        """Get a document by ID or raise UnknownReferenceError."""
        document = self.get(analysis_id)
        if document is None:
            raise UnknownReferenceError("Analysis", analysis_id)
        return document

    def exists(self, analysis_id: str) -> bool:
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT 1 FROM analysis WHERE id = ?", (analysis_id,))
        found = cursor.fetchone() is not None
        conn.close()
        return found

    def get_detected_category(self, analysis_id: str) -> Optional[ProductCategory]:
        """Category the classifier originally assigned, regardless of later selections."""
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT detected_category FROM analysis WHERE id = ?", (analysis_id,))
        row = cursor.fetchone()
        conn.close()

        if not row:
            raise UnknownReferenceError("Analysis", analysis_id)
        return ProductCategory(row["detected_category"]) if row["detected_category"] else None

    def save_category_selection(
        self, document: ComplianceDocument, event: CategorySelectionEvent
    ) -> None:
        """
        Write a user-selected category and record the selection event.

        Both writes happen in one transaction; detected_category is untouched.
        """
        conn = get_connection(self.db_path)
        cursor = conn.cursor()

        cursor.execute(
            "UPDATE analysis SET category = ?, document = ?, updated_at = ? WHERE id = ?",
            (
                event.selected_category.value,
                document.model_dump_json(),
                event.created_at.isoformat(),
                document.id,
            ),
        )
        if cursor.rowcount == 0:
            conn.close()
            raise UnknownReferenceError("Analysis", document.id)

        cursor.execute(
            """
            INSERT INTO category_selection (id, analysis_id, detected_category,
                                            selected_category, reason, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.analysis_id,
                event.detected_category.value if event.detected_category else None,
                event.selected_category.value,
                event.reason,
                event.created_at.isoformat(),
            ),
        )
        conn.commit()
        conn.close()

    def get_selection_events(self, analysis_id: str) -> list[CategorySelectionEvent]:
        """Selection history for an analysis, oldest first."""
        conn = get_connection(self.db_path)
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM category_selection WHERE analysis_id = ? ORDER BY rowid",
            (analysis_id,),
        )
        rows = cursor.fetchall()
        conn.close()

        return [
            CategorySelectionEvent(
                id=row["id"],
                analysis_id=row["analysis_id"],
                detected_category=(
                    ProductCategory(row["detected_category"]) if row["detected_category"] else None
                ),
                selected_category=ProductCategory(row["selected_category"]),
                reason=row["reason"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
