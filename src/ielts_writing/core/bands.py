"""Band arithmetic.

Criterion keys, half-band rounding and the recent-band aggregate used
by the dashboard and the personalisation engine.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Literal, Mapping

if TYPE_CHECKING:
    from ielts_writing.db.submissions_repository import SubmissionRecord

Criterion = Literal["TR", "CC", "LR", "GRA"]

# Order matters: ties between criteria keep this order.
CRITERIA: tuple[Criterion, ...] = ("TR", "CC", "LR", "GRA")

CRITERION_NAMES: dict[str, str] = {
    "TR": "Task Response",
    "CC": "Coherence & Cohesion",
    "LR": "Lexical Resource",
    "GRA": "Grammatical Range",
}

BAND_MIN = 0.0
BAND_MAX = 9.0

RECENT_WINDOW = 5


def is_valid_band(value: float) -> bool:
    """True if value lies in [0, 9] on a half-band step."""
    return BAND_MIN <= value <= BAND_MAX and (value * 2) == int(value * 2)


def round_half_band(value: float) -> float:
    """Round to the nearest 0.5, halves going up (6.25 -> 6.5, 6.75 -> 7.0)."""
    return math.floor(value * 2 + 0.5) / 2


def examiner_round(mean: float) -> float:
    """Round a criterion mean the way the examiner instructions require.

    A mean ending in .25 goes down to the whole band below, one ending
    in .75 goes up to the whole band above; anything else goes to the
    nearest half band.
    """
    whole = math.floor(mean)
    fraction = round(mean - whole, 3)
    if fraction == 0.25:
        return float(whole)
    if fraction == 0.75:
        return float(whole + 1)
    return round_half_band(mean)


def overall_from_criteria(scores: Mapping[str, float]) -> float:
    """Overall band from the four criterion bands, examiner rounding."""
    mean = sum(scores[key] for key in CRITERIA) / len(CRITERIA)
    return examiner_round(mean)


def compute_recent_band(
    submissions: Iterable[SubmissionRecord],
    n: int = RECENT_WINDOW,
) -> float | None:
    """Smoothed current band from the most recent scored submissions.

    Args:
        submissions: Submission history in any order
        n: How many of the latest scored submissions to average

    Returns:
        Mean overall band rounded to the nearest 0.5, or None when no
        submission carries an overall band.
    """
    scored = [s for s in submissions if s.overall_band is not None]
    scored.sort(key=lambda s: s.created_at, reverse=True)
    recent = scored[:n]
    if not recent:
        return None

    mean = sum(s.overall_band for s in recent) / len(recent)
    return round_half_band(mean)
