"""Pydantic schemas for the Web API.

Request and response models for auth, profiles, prompts, marking,
submissions and question generation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from ielts_writing.core.prompts import Task1Type, Task2QuestionType

TaskType = Literal["task1", "task2"]


# =============================================================================
# AUTH / PROFILE SCHEMAS
# =============================================================================


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    email: str = Field(..., max_length=200)
    password: str = Field(..., max_length=200)
    full_name: str = Field(..., max_length=200)
    age: int | None = None
    address: str | None = Field(default=None, max_length=300)
    phone: str | None = Field(default=None, max_length=50)
    current_band: float = 5.0
    target_band: float = 6.5


class TokenResponse(BaseModel):
    """Bearer token issued at login."""

    access_token: str
    token_type: str = "bearer"


class ProfileResponse(BaseModel):
    """Response for a profile."""

    user_id: str
    email: str
    full_name: str
    age: int | None
    address: str | None
    phone: str | None
    current_band: float
    target_band: float
    role: str
    onboarded: bool
    created_at: str
    updated_at: str


class ProfileUpdate(BaseModel):
    """Owner edits to a profile; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    age: int | None = Field(default=None, ge=10, le=100)
    address: str | None = Field(default=None, max_length=300)
    phone: str | None = Field(default=None, max_length=50)
    current_band: float | None = Field(default=None, ge=0, le=9, multiple_of=0.5)
    target_band: float | None = Field(default=None, ge=0, le=9, multiple_of=0.5)
    onboarded: bool | None = None


# =============================================================================
# PROMPT SCHEMAS
# =============================================================================


class _PromptBase(BaseModel):
    prompt_text: str = Field(..., min_length=1)
    difficulty: Literal[1, 2, 3] = 2
    topic_tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Task1PromptCreate(_PromptBase):
    """New Task 1 prompt."""

    task: Literal["task1"]
    task1_type: Task1Type
    visual_description: str = Field(..., min_length=1)


class Task2PromptCreate(_PromptBase):
    """New Task 2 prompt."""

    task: Literal["task2"]
    task2_question_type: Task2QuestionType


PromptCreate = Annotated[
    Union[Task1PromptCreate, Task2PromptCreate],
    Field(discriminator="task"),
]


class PromptResponse(BaseModel):
    """A catalog prompt in its flat shape."""

    prompt_id: str
    task: TaskType
    task1_type: str | None
    task2_question_type: str | None
    prompt_text: str
    difficulty: int
    topic_tags: list[str]
    visual_description: str | None
    image_url: str | None
    metadata: dict[str, Any]
    created_at: str


class PromptListResponse(BaseModel):
    """One page of catalog prompts."""

    prompts: list[PromptResponse]
    count: int
    total: int
    page: int


# =============================================================================
# MARKING SCHEMAS
# =============================================================================


class MarkRequest(BaseModel):
    """Essay to be scored."""

    essay: str = Field(..., min_length=1)
    promptText: str = Field(..., min_length=1)
    taskType: TaskType = "task2"
    wordCount: int = Field(default=0, ge=0)
    promptId: str | None = None


class MarkResponse(BaseModel):
    """Examiner verdict, in the oracle's camelCase shape."""

    feedback: dict[str, Any]


class SubmissionResponse(BaseModel):
    """A recorded attempt."""

    submission_id: str
    prompt_id: str | None
    task_type: str
    essay_text: str
    word_count: int | None
    overall_band: float | None
    criteria_scores: dict[str, float | None] | None
    feedback_json: dict[str, Any] | None
    created_at: str


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionResponse]
    count: int


class PersonalisationResponse(BaseModel):
    """Coaching recommendation."""

    effective_band: float
    band_gap: float
    recommended_task: Literal["task1", "task2", "both"]
    emphasis_criteria: list[str]
    difficulty: Literal["foundation", "intermediate", "advanced"]
    coaching_note: str


class DashboardResponse(BaseModel):
    """Everything the student dashboard shows."""

    profile: ProfileResponse
    recent_band: float | None
    submission_count: int
    personalisation: PersonalisationResponse
    submissions: list[SubmissionResponse]


class PracticeSettingsResponse(BaseModel):
    """Timing and length targets for a task."""

    task: TaskType
    time_limit_seconds: int
    min_words: int
    recommended_words: tuple[int, int]


# =============================================================================
# QUESTION GENERATION SCHEMAS
# =============================================================================


class GenerateQuestionsRequest(BaseModel):
    """Staff request for new candidate questions."""

    task: TaskType = "task2"
    count: float | str | None = 3
    task1_type: Task1Type | None = None
    task2_question_type: Task2QuestionType | None = None


class CandidatesResponse(BaseModel):
    candidates: list[Any]


class ApproveQuestionsRequest(BaseModel):
    """Candidates approved by a reviewer for insertion."""

    questions: list[dict[str, Any]] = Field(..., min_length=1)


class RejectedQuestion(BaseModel):
    index: int
    error: str


class ApproveQuestionsResponse(BaseModel):
    inserted: list[PromptResponse]
    rejected: list[RejectedQuestion]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
