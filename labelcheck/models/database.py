"""
SQLite database setup and table creation for the label compliance engine.
"""

import sqlite3
from pathlib import Path

from labelcheck.config import get


def get_db_path() -> str:
    """Database path; LABELCHECK_DB_PATH overrides labelcheck.toml."""
    return get("database", "path")


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """Get a SQLite connection with row factory enabled."""
    path = db_path or get_db_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | None = None) -> None:
    """Initialize all database tables."""
    conn = get_connection(db_path)
    cursor = conn.cursor()

    create_analysis_table(cursor)
    create_analysis_session_table(cursor)
    create_analysis_iteration_table(cursor)
    create_category_selection_table(cursor)
    create_indexes(cursor)

    conn.commit()
    conn.close()


def create_analysis_table(cursor: sqlite3.Cursor) -> None:
    """Create the analysis table holding classifier documents.

    detected_category is written once on insert; category follows user selections.
    """
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS analysis (
            id TEXT PRIMARY KEY,
            detected_category TEXT,
            category TEXT,
            overall_status TEXT,
            document TEXT NOT NULL,
            created_at DATETIME NOT NULL,
            updated_at DATETIME NOT NULL,
            CHECK (detected_category IS NULL OR detected_category IN
                ('CONVENTIONAL_FOOD', 'DIETARY_SUPPLEMENT', 'ALCOHOLIC_BEVERAGE', 'NON_ALCOHOLIC_BEVERAGE')),
            CHECK (category IS NULL OR category IN
                ('CONVENTIONAL_FOOD', 'DIETARY_SUPPLEMENT', 'ALCOHOLIC_BEVERAGE', 'NON_ALCOHOLIC_BEVERAGE'))
        )
    """)


def create_analysis_session_table(cursor: sqlite3.Cursor) -> None:
    """Create the analysis_session table binding follow-ups to an origin analysis."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS analysis_session (
            id TEXT PRIMARY KEY,
            origin_analysis_id TEXT NOT NULL,
            title TEXT,
            created_at DATETIME NOT NULL,
            updated_at DATETIME NOT NULL,
            FOREIGN KEY (origin_analysis_id) REFERENCES analysis(id)
        )
    """)


def create_analysis_iteration_table(cursor: sqlite3.Cursor) -> None:
    """Create the append-only analysis_iteration log.

    seq is the store's insertion order and defines history order.
    """
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS analysis_iteration (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            session_id TEXT NOT NULL,
            kind TEXT NOT NULL,
            payload TEXT NOT NULL,
            analysis_id TEXT,
            timestamp DATETIME NOT NULL,
            CHECK (kind IN ('chat', 'text_check', 'revised_upload')),
            CHECK (kind != 'revised_upload' OR analysis_id IS NOT NULL),
            FOREIGN KEY (session_id) REFERENCES analysis_session(id),
            FOREIGN KEY (analysis_id) REFERENCES analysis(id)
        )
    """)


def create_category_selection_table(cursor: sqlite3.Cursor) -> None:
    """Create the category_selection event table."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS category_selection (
            id TEXT PRIMARY KEY,
            analysis_id TEXT NOT NULL,
            detected_category TEXT,
            selected_category TEXT NOT NULL,
            reason TEXT,
            created_at DATETIME NOT NULL,
            FOREIGN KEY (analysis_id) REFERENCES analysis(id)
        )
    """)


def create_indexes(cursor: sqlite3.Cursor) -> None:
    """Create all indexes for efficient querying."""
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_analysis_category ON analysis(category)")

    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_session_origin ON analysis_session(origin_analysis_id)"
    )
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_session_updated ON analysis_session(updated_at)")

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_iteration_session ON analysis_iteration(session_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_iteration_kind ON analysis_iteration(kind)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_iteration_analysis ON analysis_iteration(analysis_id)")

    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_selection_analysis ON category_selection(analysis_id)"
    )
