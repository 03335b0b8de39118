"""Examiner feedback schema.

Only the persisted fields are checked strictly: overallBand and the four
criterion bands. Descriptive fields are read if present, whatever their
shape. The decoded reply itself is what gets returned and stored, so the
verdict reaches the student exactly as the oracle wrote it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from ielts_writing.core.errors import MalformedOracleOutputError


class _OracleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", protected_namespaces=())


class CriterionFeedback(_OracleModel):
    """Verdict for one criterion."""

    band: float
    label: Any = None
    feedback: Any = None
    band_rationale: Any = Field(default=None, alias="bandRationale")


class CriteriaFeedback(_OracleModel):
    """Verdicts for all four criteria."""

    TR: CriterionFeedback
    CC: CriterionFeedback
    LR: CriterionFeedback
    GRA: CriterionFeedback

    def bands(self) -> dict[str, float]:
        """Criterion bands keyed by criterion code."""
        return {
            "TR": self.TR.band,
            "CC": self.CC.band,
            "LR": self.LR.band,
            "GRA": self.GRA.band,
        }


class ExaminerFeedback(_OracleModel):
    """Full structured verdict for one essay."""

    criteria_scores: CriteriaFeedback = Field(alias="criteriaScores")
    overall_band: float = Field(alias="overallBand")
    task_type: Any = Field(default=None, alias="taskType")
    word_count: Any = Field(default=None, alias="wordCount")
    word_count_note: Any = Field(default=None, alias="wordCountNote")
    examiner_summary: Any = Field(default=None, alias="examinerSummary")
    task_specific_feedback: Any = Field(default=None, alias="taskSpecificFeedback")
    priority_improvements: Any = Field(default=None, alias="priorityImprovements")
    vocabulary_highlights: Any = Field(default=None, alias="vocabularyHighlights")
    error_annotations: Any = Field(default=None, alias="errorAnnotations")
    model_paragraph: Any = Field(default=None, alias="modelParagraph")
    original_paragraph: Any = Field(default=None, alias="originalParagraph")
    comparative_level: Any = Field(default=None, alias="comparativeLevel")

    _reply: dict[str, Any] | None = PrivateAttr(default=None)

    def improvements(self) -> list[str]:
        """Priority improvements as display strings."""
        tips = self.priority_improvements
        if not tips:
            return []
        if isinstance(tips, list):
            return [str(t) for t in tips]
        return [str(tips)]

    def to_json_dict(self) -> dict[str, Any]:
        """The oracle's reply as decoded, camelCase keys and all."""
        if self._reply is not None:
            return self._reply
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


def validate_feedback(data: Any) -> ExaminerFeedback:
    """Validate decoded oracle JSON as examiner feedback.

    Raises:
        MalformedOracleOutputError: If a band is missing or not a number
    """
    if not isinstance(data, dict):
        raise MalformedOracleOutputError(
            f"AI returned malformed feedback: expected an object, got {type(data).__name__}."
        )
    try:
        feedback = ExaminerFeedback.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MalformedOracleOutputError(
            f"AI returned malformed feedback: invalid fields {', '.join(fields)}."
        ) from e
    feedback._reply = data
    return feedback
