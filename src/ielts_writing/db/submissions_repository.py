"""Repository functions for the submissions table.

Submissions are written once per successful marking call and never
edited or deleted.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any

import structlog

from ielts_writing.core.prompts import utc_now
from ielts_writing.db.database import get_db

logger = structlog.get_logger(__name__)

HISTORY_LIMIT = 50


@dataclass
class SubmissionRecord:
    """Submission record from database."""

    submission_id: str
    student_id: str
    prompt_id: str | None
    task_type: str
    essay_text: str
    word_count: int | None
    overall_band: float | None
    criteria_scores: dict[str, float | None] | None
    feedback_json: dict[str, Any] | None
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "submission_id": self.submission_id,
            "student_id": self.student_id,
            "prompt_id": self.prompt_id,
            "task_type": self.task_type,
            "essay_text": self.essay_text,
            "word_count": self.word_count,
            "overall_band": self.overall_band,
            "criteria_scores": self.criteria_scores,
            "feedback_json": self.feedback_json,
            "created_at": self.created_at,
        }


def insert_submission(
    student_id: str,
    task_type: str,
    essay_text: str,
    word_count: int | None,
    overall_band: float | None,
    criteria_scores: dict[str, float | None] | None,
    feedback_json: dict[str, Any] | None,
    prompt_id: str | None = None,
) -> SubmissionRecord:
    """Insert a scored attempt.

    Returns:
        The stored SubmissionRecord
    """
    record = SubmissionRecord(
        submission_id=str(uuid.uuid4()),
        student_id=student_id,
        prompt_id=prompt_id,
        task_type=task_type,
        essay_text=essay_text,
        word_count=word_count,
        overall_band=overall_band,
        criteria_scores=criteria_scores,
        feedback_json=feedback_json,
        created_at=utc_now(),
    )

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO submissions (
                submission_id, student_id, prompt_id, task_type,
                essay_text, word_count, overall_band, criteria_scores,
                feedback_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.submission_id,
                record.student_id,
                record.prompt_id,
                record.task_type,
                record.essay_text,
                record.word_count,
                record.overall_band,
                json.dumps(criteria_scores) if criteria_scores is not None else None,
                json.dumps(feedback_json) if feedback_json is not None else None,
                record.created_at,
            ),
        )

    logger.debug(
        "submissions.inserted",
        submission_id=record.submission_id,
        student_id=student_id,
        overall_band=overall_band,
    )
    return record


def list_submissions(student_id: str, limit: int = HISTORY_LIMIT) -> list[SubmissionRecord]:
    """A student's submissions, most recent first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM submissions
            WHERE student_id = ?
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (student_id, limit),
        ).fetchall()

    return [_row_to_record(r) for r in rows]


def count_submissions(student_id: str) -> int:
    """Number of submissions a student has made."""
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM submissions WHERE student_id = ?", (student_id,)
        ).fetchone()[0]


def _row_to_record(row: sqlite3.Row) -> SubmissionRecord:
    """Convert database row to SubmissionRecord."""
    return SubmissionRecord(
        submission_id=row["submission_id"],
        student_id=row["student_id"],
        prompt_id=row["prompt_id"],
        task_type=row["task_type"],
        essay_text=row["essay_text"],
        word_count=row["word_count"],
        overall_band=row["overall_band"],
        criteria_scores=json.loads(row["criteria_scores"]) if row["criteria_scores"] else None,
        feedback_json=json.loads(row["feedback_json"]) if row["feedback_json"] else None,
        created_at=row["created_at"],
    )
