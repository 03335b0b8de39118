"""Progress endpoints: submission history and the student dashboard."""

from fastapi import APIRouter, Depends, Query

from ielts_writing.core.bands import compute_recent_band
from ielts_writing.core.personalisation import build_personalisation
from ielts_writing.db.profiles_repository import ProfileRecord
from ielts_writing.db.submissions_repository import (
    HISTORY_LIMIT,
    SubmissionRecord,
    count_submissions,
    list_submissions,
)
from ielts_writing.web.auth import get_current_user
from ielts_writing.web.routes.profile import profile_to_response
from ielts_writing.web.schemas import (
    DashboardResponse,
    PersonalisationResponse,
    SubmissionListResponse,
    SubmissionResponse,
)

router = APIRouter(prefix="/api", tags=["progress"])

DASHBOARD_LIMIT = 20


def submission_to_response(submission: SubmissionRecord) -> SubmissionResponse:
    data = submission.to_dict()
    data.pop("student_id")
    return SubmissionResponse(**data)


@router.get("/submissions", response_model=SubmissionListResponse)
async def my_submissions(
    limit: int = Query(default=HISTORY_LIMIT, ge=1, le=200),
    user: ProfileRecord = Depends(get_current_user),
) -> SubmissionListResponse:
    """The caller's submissions, most recent first."""
    submissions = [submission_to_response(s) for s in list_submissions(user.user_id, limit)]
    return SubmissionListResponse(submissions=submissions, count=len(submissions))


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(user: ProfileRecord = Depends(get_current_user)) -> DashboardResponse:
    """Profile, smoothed band and coaching recommendation."""
    submissions = list_submissions(user.user_id, DASHBOARD_LIMIT)
    personalisation = build_personalisation(user, submissions)

    return DashboardResponse(
        profile=profile_to_response(user),
        recent_band=compute_recent_band(submissions),
        submission_count=count_submissions(user.user_id),
        personalisation=PersonalisationResponse(**personalisation.to_dict()),
        submissions=[submission_to_response(s) for s in submissions],
    )
