"""Personalisation engine.

Turns a student's profile and submission history into a coaching
recommendation: how far they are from their target, which criteria to
work on, which task to practise and at what difficulty tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence

import structlog

from ielts_writing.core.bands import CRITERIA, CRITERION_NAMES, Criterion, compute_recent_band
from ielts_writing.db.profiles_repository import ProfileRecord
from ielts_writing.db.submissions_repository import SubmissionRecord

logger = structlog.get_logger(__name__)

Difficulty = Literal["foundation", "intermediate", "advanced"]
RecommendedTask = Literal["task1", "task2", "both"]

FOUNDATION_CEILING = 5.5
INTERMEDIATE_CEILING = 7.0

WEAK_CRITERIA_WINDOW = 3
EMPHASIS_COUNT = 2

TASK2_UNDER_PRACTISED = 0.3
TASK2_OVER_PRACTISED = 0.7


@dataclass
class Personalisation:
    """Coaching recommendation for one student."""

    effective_band: float
    band_gap: float
    recommended_task: RecommendedTask
    emphasis_criteria: list[Criterion]
    difficulty: Difficulty
    coaching_note: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "effective_band": self.effective_band,
            "band_gap": self.band_gap,
            "recommended_task": self.recommended_task,
            "emphasis_criteria": list(self.emphasis_criteria),
            "difficulty": self.difficulty,
            "coaching_note": self.coaching_note,
        }


def difficulty_tier(band: float) -> Difficulty:
    """Tier for a band; each boundary belongs to the higher tier."""
    if band < FOUNDATION_CEILING:
        return "foundation"
    if band < INTERMEDIATE_CEILING:
        return "intermediate"
    return "advanced"


def weakest_criteria(submissions: Sequence[SubmissionRecord]) -> list[Criterion]:
    """The two criteria with the lowest average over the latest submissions.

    Submissions are expected most recent first. Missing criterion scores
    count as 0; with no history every average is 0 and the criterion
    order decides.
    """
    window = list(submissions[:WEAK_CRITERIA_WINDOW])

    averages: list[tuple[Criterion, float]] = []
    for key in CRITERIA:
        if window:
            total = sum(((s.criteria_scores or {}).get(key) or 0.0) for s in window)
            averages.append((key, total / len(window)))
        else:
            averages.append((key, 0.0))

    # sorted() is stable, so ties keep TR, CC, LR, GRA order
    averages = sorted(averages, key=lambda item: item[1])
    return [key for key, _ in averages[:EMPHASIS_COUNT]]


def recommend_task(submissions: Sequence[SubmissionRecord]) -> RecommendedTask:
    """Point the student at whichever task they practise less."""
    if submissions:
        task2_ratio = sum(1 for s in submissions if s.task_type == "task2") / len(submissions)
    else:
        task2_ratio = 0.5

    if task2_ratio < TASK2_UNDER_PRACTISED:
        return "task2"
    if task2_ratio > TASK2_OVER_PRACTISED:
        return "task1"
    return "both"


def coaching_note(band_gap: float, emphasis: Sequence[str]) -> str:
    """Short coaching message for the dashboard."""
    weak_names = " and ".join(CRITERION_NAMES[key] for key in emphasis)

    if band_gap <= 0:
        return "You have reached your target band. Consider setting a new goal."
    if band_gap <= 0.5:
        return f"You are very close to your target. Focus on {weak_names} for the final push."
    return f"{band_gap:.1f} bands to your target. Prioritise {weak_names}."


def build_personalisation(
    profile: ProfileRecord,
    submissions: Sequence[SubmissionRecord],
) -> Personalisation:
    """Build the coaching recommendation for a student.

    Args:
        profile: The student's profile (baseline and target bands)
        submissions: Submission history, most recent first

    Returns:
        Personalisation for the dashboard
    """
    recent_band = compute_recent_band(submissions)
    effective_band = recent_band if recent_band is not None else profile.current_band
    band_gap = profile.target_band - effective_band

    emphasis = weakest_criteria(submissions)

    result = Personalisation(
        effective_band=effective_band,
        band_gap=band_gap,
        recommended_task=recommend_task(submissions),
        emphasis_criteria=emphasis,
        difficulty=difficulty_tier(effective_band),
        coaching_note=coaching_note(band_gap, emphasis),
    )

    logger.debug(
        "personalisation.built",
        user_id=profile.user_id,
        effective_band=effective_band,
        band_gap=band_gap,
        emphasis=emphasis,
    )
    return result
