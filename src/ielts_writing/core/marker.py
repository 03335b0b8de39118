"""Essay marking.

Responsibilities:
- Build the examiner request (fixed rubric + the student's essay)
- Make exactly one oracle call and validate its verdict
- Record the scored attempt as a best-effort side effect

The oracle's overall band is trusted as returned. A re-derived band is
only compared for logging.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any

import structlog

from ielts_writing.config.app_config import load_app_config
from ielts_writing.core.bands import overall_from_criteria
from ielts_writing.core.feedback import ExaminerFeedback, validate_feedback
from ielts_writing.core.oracle import call_oracle, load_oracle_json
from ielts_writing.core.prompts import TASK_LABELS
from ielts_writing.db.submissions_repository import insert_submission
from ielts_writing.llm.client import LLMClient
from ielts_writing.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

# =============================================================================
# PRACTICE SETTINGS
# =============================================================================


@dataclass(frozen=True)
class TaskSettings:
    """Timing and length targets for a task."""

    time_limit_seconds: int
    min_words: int
    recommended_words: tuple[int, int]


TASK_SETTINGS: dict[str, TaskSettings] = {
    "task1": TaskSettings(time_limit_seconds=20 * 60, min_words=150, recommended_words=(155, 175)),
    "task2": TaskSettings(time_limit_seconds=40 * 60, min_words=250, recommended_words=(250, 280)),
}

# Below this an essay is not worth sending for marking
MIN_MARKABLE_WORDS = 20

_WHITESPACE = re.compile(r"\s+")


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    stripped = (text or "").strip()
    if not stripped:
        return 0
    return len([w for w in _WHITESPACE.split(stripped) if w])


# =============================================================================
# MARKING
# =============================================================================


def build_examiner_message(
    essay: str,
    prompt_text: str,
    task_type: str,
    word_count: int,
) -> str:
    """User message carrying the task, question, word count and essay."""
    return get_prompt(
        "examiner/user",
        task_label=TASK_LABELS.get(task_type, TASK_LABELS["task2"]),
        prompt_text=prompt_text,
        word_count=word_count,
        essay=essay,
    )


def parse_examiner_reply(raw_text: str) -> ExaminerFeedback:
    """Decode and validate the oracle's reply.

    Raises:
        MalformedOracleOutputError: If the reply is not valid feedback JSON
    """
    data = load_oracle_json(raw_text, source="mark")
    return validate_feedback(data)


def mark_essay(
    client: LLMClient,
    essay: str,
    prompt_text: str,
    task_type: str,
    word_count: int,
) -> ExaminerFeedback:
    """Score an essay against the official band descriptors.

    Args:
        client: LLM client for the oracle
        essay: Essay body, sent verbatim
        prompt_text: Question the essay answers
        task_type: "task1" or "task2"
        word_count: Word count as measured by the caller

    Returns:
        Validated examiner feedback

    Raises:
        OracleUnavailableError: If the oracle call fails
        MalformedOracleOutputError: If the reply is not valid feedback
    """
    start_time = time.time()

    raw_text = call_oracle(
        client,
        system_prompt=get_prompt("examiner/system"),
        user_message=build_examiner_message(essay, prompt_text, task_type, word_count),
        max_tokens=load_app_config().oracle.marking_max_tokens,
        source="mark",
    )
    feedback = parse_examiner_reply(raw_text)

    bands = feedback.criteria_scores.bands()
    rederived = overall_from_criteria(bands)
    if rederived != feedback.overall_band:
        logger.warning(
            "marking.overall_band_mismatch",
            oracle_band=feedback.overall_band,
            rederived_band=rederived,
            criteria=bands,
        )

    logger.info(
        "marking.completed",
        task_type=task_type,
        word_count=word_count,
        overall_band=feedback.overall_band,
        marking_time_ms=int((time.time() - start_time) * 1000),
    )
    return feedback


def save_submission_quietly(
    student_id: str,
    task_type: str,
    essay: str,
    word_count: int,
    feedback: ExaminerFeedback,
    prompt_id: str | None = None,
) -> None:
    """Record a scored attempt; failures are logged, never raised.

    Meant to run after the caller already has its feedback.
    """
    feedback_json: dict[str, Any] = feedback.to_json_dict()
    try:
        insert_submission(
            student_id=student_id,
            task_type=task_type,
            essay_text=essay,
            word_count=word_count,
            overall_band=feedback.overall_band,
            criteria_scores=feedback.criteria_scores.bands(),
            feedback_json=feedback_json,
            prompt_id=prompt_id,
        )
    except Exception as e:
        logger.error("marking.submission_save_failed", student_id=student_id, error=str(e))
