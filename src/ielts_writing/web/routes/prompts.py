"""Question bank endpoints.

Any logged-in user can browse; only staff can add or delete.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ielts_writing.core.errors import PromptValidationError
from ielts_writing.core.prompts import WritingPrompt, prompt_from_dict, prompt_to_dict
from ielts_writing.db.profiles_repository import ProfileRecord
from ielts_writing.db.prompts_repository import (
    PAGE_SIZE,
    delete_prompt,
    get_prompt_by_id,
    insert_prompt,
    list_prompts,
    random_prompt,
)
from ielts_writing.web.auth import get_current_user, require_staff
from ielts_writing.web.schemas import (
    PromptCreate,
    PromptListResponse,
    PromptResponse,
    TaskType,
)

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


def prompt_to_response(prompt: WritingPrompt) -> PromptResponse:
    return PromptResponse(**prompt_to_dict(prompt))


@router.get("", response_model=PromptListResponse)
async def list_catalog(
    task: TaskType | None = None,
    task1_type: str | None = None,
    task2_question_type: str | None = None,
    difficulty: int | None = Query(default=None, ge=1, le=3),
    page: int = Query(default=0, ge=0),
    user: ProfileRecord = Depends(get_current_user),
) -> PromptListResponse:
    """List prompts, newest first."""
    prompts, total = list_prompts(
        task=task,
        task1_type=task1_type,
        task2_question_type=task2_question_type,
        difficulty=difficulty,
        page=page,
        page_size=PAGE_SIZE,
    )
    items = [prompt_to_response(p) for p in prompts]
    return PromptListResponse(prompts=items, count=len(items), total=total, page=page)


@router.get("/random", response_model=PromptResponse)
async def pick_random(
    task: TaskType = "task2",
    difficulty: int | None = Query(default=None, ge=1, le=3),
    user: ProfileRecord = Depends(get_current_user),
) -> PromptResponse:
    """Pick a practice prompt at random."""
    prompt = random_prompt(task, difficulty)
    if prompt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {task} prompts available",
        )
    return prompt_to_response(prompt)


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: str,
    user: ProfileRecord = Depends(get_current_user),
) -> PromptResponse:
    """Get a specific prompt by ID."""
    prompt = get_prompt_by_id(prompt_id)
    if prompt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Prompt '{prompt_id}' not found",
        )
    return prompt_to_response(prompt)


@router.post("", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    body: PromptCreate = Body(...),
    user: ProfileRecord = Depends(require_staff),
) -> PromptResponse:
    """Add a prompt to the catalog."""
    try:
        prompt = prompt_from_dict(body.model_dump())
    except PromptValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return prompt_to_response(insert_prompt(prompt))


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_prompt(
    prompt_id: str,
    user: ProfileRecord = Depends(require_staff),
) -> None:
    """Delete a prompt by ID."""
    if not delete_prompt(prompt_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Prompt '{prompt_id}' not found",
        )
