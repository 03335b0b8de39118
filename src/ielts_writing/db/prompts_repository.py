"""Repository functions for the writing_prompts table.

Rows are flat (nullable alternates per task); callers get typed
Task1Prompt / Task2Prompt objects back.
"""

from __future__ import annotations

import json
import random
import sqlite3
import uuid
from typing import Any

import structlog

from ielts_writing.core.prompts import (
    Task1Prompt,
    Task2Prompt,
    WritingPrompt,
    prompt_from_dict,
    prompt_to_dict,
    utc_now,
)
from ielts_writing.db.database import get_db

logger = structlog.get_logger(__name__)

PAGE_SIZE = 20
SAMPLE_LIMIT = 10

# Columns shown to the question writer as style examples
SAMPLE_COLUMNS = (
    "task",
    "task1_type",
    "task2_question_type",
    "prompt_text",
    "difficulty",
    "topic_tags",
    "visual_description",
    "metadata",
)


def insert_prompt(prompt: WritingPrompt) -> WritingPrompt:
    """Insert a validated prompt.

    Assigns a prompt_id and created_at when missing.

    Returns:
        The stored prompt
    """
    if not prompt.prompt_id:
        prompt.prompt_id = str(uuid.uuid4())
    if not prompt.created_at:
        prompt.created_at = utc_now()

    data = prompt_to_dict(prompt)

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO writing_prompts (
                prompt_id, task, task1_type, task2_question_type,
                prompt_text, difficulty, topic_tags, visual_description,
                image_url, metadata, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data["prompt_id"],
                data["task"],
                data["task1_type"],
                data["task2_question_type"],
                data["prompt_text"],
                data["difficulty"],
                json.dumps(data["topic_tags"]),
                data["visual_description"],
                data["image_url"],
                json.dumps(data["metadata"]),
                data["created_at"],
            ),
        )

    logger.debug("prompts.inserted", prompt_id=prompt.prompt_id, task=prompt.task)
    return prompt


def get_prompt_by_id(prompt_id: str) -> WritingPrompt | None:
    """Get prompt by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM writing_prompts WHERE prompt_id = ?", (prompt_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_prompt(row)


def _filters(
    task: str | None,
    task1_type: str | None,
    task2_question_type: str | None,
    difficulty: int | None = None,
) -> tuple[str, list[Any]]:
    """Build a WHERE clause; sub-type filters only apply to their own task."""
    clauses: list[str] = []
    params: list[Any] = []
    if task:
        clauses.append("task = ?")
        params.append(task)
    if task1_type and task != "task2":
        clauses.append("task1_type = ?")
        params.append(task1_type)
    if task2_question_type and task != "task1":
        clauses.append("task2_question_type = ?")
        params.append(task2_question_type)
    if difficulty:
        clauses.append("difficulty = ?")
        params.append(difficulty)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def list_prompts(
    task: str | None = None,
    task1_type: str | None = None,
    task2_question_type: str | None = None,
    difficulty: int | None = None,
    page: int = 0,
    page_size: int = PAGE_SIZE,
) -> tuple[list[WritingPrompt], int]:
    """List prompts, newest first, one page at a time.

    Returns:
        (prompts on this page, total matching count)
    """
    where, params = _filters(task, task1_type, task2_question_type, difficulty)

    with get_db() as conn:
        total = conn.execute(
            f"SELECT COUNT(*) FROM writing_prompts {where}", params
        ).fetchone()[0]
        rows = conn.execute(
            f"SELECT * FROM writing_prompts {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (*params, page_size, page * page_size),
        ).fetchall()

    return [_row_to_prompt(r) for r in rows], total


def random_prompt(task: str, difficulty: int | None = None) -> WritingPrompt | None:
    """Pick one prompt for a task at random."""
    where, params = _filters(task, None, None, difficulty)
    with get_db() as conn:
        rows = conn.execute(f"SELECT * FROM writing_prompts {where}", params).fetchall()
    if not rows:
        return None
    return _row_to_prompt(random.choice(rows))


def sample_prompts(
    task: str,
    task1_type: str | None = None,
    task2_question_type: str | None = None,
    limit: int = SAMPLE_LIMIT,
) -> list[dict[str, Any]]:
    """Existing prompts as style examples for the question writer.

    Only the descriptive columns are returned (no ids or timestamps).
    """
    where, params = _filters(task, task1_type, task2_question_type)
    columns = ", ".join(SAMPLE_COLUMNS)

    with get_db() as conn:
        rows = conn.execute(
            f"SELECT {columns} FROM writing_prompts {where} LIMIT ?",
            (*params, limit),
        ).fetchall()

    samples = []
    for row in rows:
        sample = dict(row)
        sample["topic_tags"] = json.loads(sample["topic_tags"] or "[]")
        sample["metadata"] = json.loads(sample["metadata"] or "{}")
        samples.append(sample)
    return samples


def delete_prompt(prompt_id: str) -> bool:
    """Delete a prompt.

    Returns:
        True if a row was deleted
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM writing_prompts WHERE prompt_id = ?", (prompt_id,)
        )
        deleted = cursor.rowcount > 0

    if deleted:
        logger.info("prompts.deleted", prompt_id=prompt_id)
    return deleted


def _row_to_prompt(row: sqlite3.Row) -> Task1Prompt | Task2Prompt:
    """Convert database row to a typed prompt."""
    data = dict(row)
    data["topic_tags"] = json.loads(data["topic_tags"] or "[]")
    data["metadata"] = json.loads(data["metadata"] or "{}")
    return prompt_from_dict(data)
