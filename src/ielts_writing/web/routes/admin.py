"""Staff endpoints: AI question generation and approval."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ielts_writing.core.errors import (
    ForbiddenError,
    MalformedOracleOutputError,
    OracleUnavailableError,
    PromptValidationError,
)
from ielts_writing.core.prompts import prompt_from_dict
from ielts_writing.core.question_generator import generate_candidates
from ielts_writing.db.profiles_repository import ProfileRecord
from ielts_writing.db.prompts_repository import insert_prompt
from ielts_writing.llm.client import LLMClient
from ielts_writing.web.auth import get_current_user, require_staff
from ielts_writing.web.dependencies import get_oracle_client
from ielts_writing.web.routes.prompts import prompt_to_response
from ielts_writing.web.schemas import (
    ApproveQuestionsRequest,
    ApproveQuestionsResponse,
    CandidatesResponse,
    GenerateQuestionsRequest,
    RejectedQuestion,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/generate-questions", response_model=CandidatesResponse)
def generate_questions(
    request: GenerateQuestionsRequest,
    user: ProfileRecord = Depends(get_current_user),
    client: LLMClient = Depends(get_oracle_client),
) -> CandidatesResponse:
    """Ask the oracle for new candidate questions; nothing is saved."""
    try:
        candidates = generate_candidates(
            client,
            requester_role=user.role,
            task=request.task,
            count=request.count,
            task1_type=request.task1_type,
            task2_question_type=request.task2_question_type,
        )
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except OracleUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Generation failed: {e}",
        )
    except MalformedOracleOutputError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="AI returned malformed JSON. Please try again.",
        )

    return CandidatesResponse(candidates=candidates)


@router.post(
    "/questions",
    response_model=ApproveQuestionsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def approve_questions(
    request: ApproveQuestionsRequest,
    user: ProfileRecord = Depends(require_staff),
) -> ApproveQuestionsResponse:
    """Insert reviewer-approved candidates into the catalog.

    Each item is validated on its own; invalid items are reported and
    skipped.
    """
    inserted = []
    rejected = []
    for index, item in enumerate(request.questions):
        try:
            prompt = prompt_from_dict(item)
        except PromptValidationError as e:
            rejected.append(RejectedQuestion(index=index, error=str(e)))
            continue
        # Candidates never carry over ids or timestamps from the oracle
        prompt.prompt_id = None
        prompt.created_at = ""
        inserted.append(prompt_to_response(insert_prompt(prompt)))

    logger.info(
        "questions.approved",
        user_id=user.user_id,
        inserted=len(inserted),
        rejected=len(rejected),
    )
    return ApproveQuestionsResponse(inserted=inserted, rejected=rejected)
