"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository modules for profiles, writing prompts and submissions
"""

from ielts_writing.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
