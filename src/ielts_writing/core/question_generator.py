"""Question generation.

Asks the oracle for new candidate questions in the catalog's schema,
using existing catalog items as style examples. Candidates are returned
for human review; nothing is written to the catalog here.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from ielts_writing.config.app_config import load_app_config
from ielts_writing.core.errors import ForbiddenError, MalformedOracleOutputError
from ielts_writing.core.oracle import call_oracle, load_oracle_json
from ielts_writing.core.prompts import TASK1_TYPES, TASK2_QUESTION_TYPES, TASK_LABELS
from ielts_writing.db.profiles_repository import STAFF_ROLES
from ielts_writing.db.prompts_repository import sample_prompts
from ielts_writing.llm.client import LLMClient
from ielts_writing.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

MIN_COUNT = 1
MAX_COUNT = 5
DEFAULT_COUNT = 3


def clamp_count(count: Any) -> int:
    """Clamp a requested question count to [1, 5].

    Numeric strings and fractions are accepted and rounded down;
    anything non-numeric falls back to the default.
    """
    try:
        value = int(float(count))
    except (TypeError, ValueError, OverflowError):
        value = DEFAULT_COUNT
    return min(max(value, MIN_COUNT), MAX_COUNT)


def build_generation_message(
    samples: list[dict[str, Any]],
    task: str,
    count: int,
    task1_type: str | None = None,
    task2_question_type: str | None = None,
) -> str:
    """User message with style examples and the required item schema."""
    if task == "task1":
        schema = get_prompt(
            "questions/schema_task1",
            task1_type=task1_type or "<" + "|".join(TASK1_TYPES) + ">",
        )
    else:
        schema = get_prompt(
            "questions/schema_task2",
            task2_question_type=task2_question_type or "<" + "|".join(TASK2_QUESTION_TYPES) + ">",
        )

    type_note = ""
    if task1_type:
        type_note += f" (type: {task1_type})"
    if task2_question_type:
        type_note += f" (type: {task2_question_type})"

    return get_prompt(
        "questions/user",
        examples=json.dumps(samples, indent=2, ensure_ascii=False),
        count=count,
        task_label=TASK_LABELS[task].replace("Writing ", ""),
        type_note=type_note,
        schema=schema,
    )


def parse_candidates(raw_text: str) -> list[Any]:
    """Extract the candidate list from the oracle's reply.

    Accepts either a bare array or an object with a "questions" array.

    Raises:
        MalformedOracleOutputError: If no array can be extracted
    """
    parsed = load_oracle_json(raw_text, source="generate_questions")
    candidates = parsed.get("questions", parsed) if isinstance(parsed, dict) else parsed
    if not isinstance(candidates, list):
        logger.error("questions.not_a_list", got=type(candidates).__name__)
        raise MalformedOracleOutputError(
            "AI returned malformed JSON. Please try again.",
            raw_excerpt=raw_text[:500],
        )
    return candidates


def generate_candidates(
    client: LLMClient,
    requester_role: str,
    task: str = "task2",
    count: Any = DEFAULT_COUNT,
    task1_type: str | None = None,
    task2_question_type: str | None = None,
) -> list[Any]:
    """Generate new candidate questions for staff review.

    Args:
        client: LLM client for the oracle
        requester_role: Role of the calling user
        task: "task1" or "task2"
        count: Number of questions wanted (clamped to 1..5)
        task1_type: Optional Task 1 sub-type
        task2_question_type: Optional Task 2 question type

    Returns:
        Candidate question dicts, unvalidated and unsaved

    Raises:
        ForbiddenError: If the requester is not staff (no oracle call is made)
        OracleUnavailableError: If the oracle call fails
        MalformedOracleOutputError: If the reply holds no candidate list
    """
    if requester_role not in STAFF_ROLES:
        raise ForbiddenError("Forbidden: admin or teacher role required.")

    count = clamp_count(count)
    samples = sample_prompts(task, task1_type, task2_question_type)

    raw_text = call_oracle(
        client,
        system_prompt=get_prompt("questions/system"),
        user_message=build_generation_message(
            samples, task, count, task1_type, task2_question_type
        ),
        max_tokens=load_app_config().oracle.generation_max_tokens,
        source="generate_questions",
    )
    candidates = parse_candidates(raw_text)

    logger.info(
        "questions.generated",
        task=task,
        requested=count,
        returned=len(candidates),
        samples=len(samples),
    )
    return candidates
