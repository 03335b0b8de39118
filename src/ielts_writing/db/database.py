"""SQLite database connection and schema management.

Provides connection management and schema initialization. The database
stands in for the hosted store: users, profiles, the question bank and
the submission log.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/db/ielts.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to data/db/ielts.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Path of the database currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back on error.

    Yields:
        SQLite connection with row factory set to sqlite3.Row
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Login credentials; one row per account
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- Student / staff profile, keyed by the owning user
        CREATE TABLE IF NOT EXISTS profiles (
            user_id TEXT PRIMARY KEY REFERENCES users(user_id) ON DELETE CASCADE,
            email TEXT NOT NULL,
            full_name TEXT NOT NULL,
            age INTEGER,
            address TEXT,
            phone TEXT,
            current_band REAL NOT NULL,
            target_band REAL NOT NULL,
            role TEXT NOT NULL DEFAULT 'student' CHECK(role IN ('student', 'teacher', 'admin')),
            onboarded INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Question bank; task1 rows carry task1_type, task2 rows task2_question_type
        CREATE TABLE IF NOT EXISTS writing_prompts (
            prompt_id TEXT PRIMARY KEY,
            task TEXT NOT NULL CHECK(task IN ('task1', 'task2')),
            task1_type TEXT CHECK(task1_type IN ('graph', 'table', 'process', 'map')),
            task2_question_type TEXT,
            prompt_text TEXT NOT NULL,
            difficulty INTEGER NOT NULL CHECK(difficulty IN (1, 2, 3)),
            topic_tags TEXT NOT NULL DEFAULT '[]',
            visual_description TEXT,
            image_url TEXT,
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            CHECK (
                (task = 'task1' AND task1_type IS NOT NULL AND task2_question_type IS NULL)
                OR (task = 'task2' AND task1_type IS NULL AND task2_question_type IS NOT NULL)
            )
        );

        -- Scored essay attempts; written once, never updated
        CREATE TABLE IF NOT EXISTS submissions (
            submission_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            prompt_id TEXT,
            task_type TEXT NOT NULL CHECK(task_type IN ('task1', 'task2')),
            essay_text TEXT NOT NULL,
            word_count INTEGER,
            overall_band REAL,
            criteria_scores TEXT,
            feedback_json TEXT,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_prompts_task ON writing_prompts(task);
        CREATE INDEX IF NOT EXISTS idx_submissions_student
            ON submissions(student_id, created_at);
        """
    )
