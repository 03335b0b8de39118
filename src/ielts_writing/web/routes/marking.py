"""Marking endpoints: score an essay, practice settings."""

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ielts_writing.core.errors import MalformedOracleOutputError, OracleUnavailableError
from ielts_writing.core.marker import (
    MIN_MARKABLE_WORDS,
    TASK_SETTINGS,
    count_words,
    mark_essay,
    save_submission_quietly,
)
from ielts_writing.core.prompts import examiner_prompt_text, prompt_subtype
from ielts_writing.db.profiles_repository import ProfileRecord
from ielts_writing.db.prompts_repository import get_prompt_by_id
from ielts_writing.llm.client import LLMClient
from ielts_writing.web.auth import get_current_user
from ielts_writing.web.dependencies import get_oracle_client
from ielts_writing.web.schemas import (
    MarkRequest,
    MarkResponse,
    PracticeSettingsResponse,
    TaskType,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["marking"])


@router.post("/mark", response_model=MarkResponse)
def mark(
    request: MarkRequest,
    background_tasks: BackgroundTasks,
    user: ProfileRecord = Depends(get_current_user),
    client: LLMClient = Depends(get_oracle_client),
) -> MarkResponse:
    """Score an essay and record the attempt.

    The attempt is saved after the response is sent; a failed save is
    logged and does not affect the response.
    """
    essay = request.essay.strip()
    prompt_text = request.promptText.strip()
    if not essay or not prompt_text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must include essay and promptText.",
        )
    if count_words(essay) < MIN_MARKABLE_WORDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please write at least {MIN_MARKABLE_WORDS} words.",
        )

    word_count = request.wordCount or count_words(essay)

    # A catalog question gives the examiner its full text, visual included
    if request.promptId:
        catalog_prompt = get_prompt_by_id(request.promptId)
        if catalog_prompt is not None:
            prompt_text = examiner_prompt_text(catalog_prompt)
            logger.debug(
                "marking.catalog_prompt",
                prompt_id=request.promptId,
                subtype=prompt_subtype(catalog_prompt),
            )

    try:
        feedback = mark_essay(
            client,
            essay=request.essay,
            prompt_text=prompt_text,
            task_type=request.taskType,
            word_count=word_count,
        )
    except OracleUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"AI marking failed: {e}",
        )
    except MalformedOracleOutputError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="AI returned malformed feedback. Please try again.",
        )

    background_tasks.add_task(
        save_submission_quietly,
        student_id=user.user_id,
        task_type=request.taskType,
        essay=request.essay,
        word_count=word_count,
        feedback=feedback,
        prompt_id=request.promptId,
    )

    return MarkResponse(feedback=feedback.to_json_dict())


@router.get("/practice/{task}", response_model=PracticeSettingsResponse)
async def practice_settings(
    task: TaskType,
    user: ProfileRecord = Depends(get_current_user),
) -> PracticeSettingsResponse:
    """Time limit and word targets for a task."""
    settings = TASK_SETTINGS[task]
    return PracticeSettingsResponse(
        task=task,
        time_limit_seconds=settings.time_limit_seconds,
        min_words=settings.min_words,
        recommended_words=settings.recommended_words,
    )
