"""Profile endpoints for the logged-in user."""

from fastapi import APIRouter, Depends, HTTPException, status

from ielts_writing.db.profiles_repository import ProfileRecord, update_profile
from ielts_writing.web.auth import get_current_user
from ielts_writing.web.schemas import ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])


def profile_to_response(profile: ProfileRecord) -> ProfileResponse:
    return ProfileResponse(**profile.to_dict())


@router.get("", response_model=ProfileResponse)
async def get_my_profile(user: ProfileRecord = Depends(get_current_user)) -> ProfileResponse:
    """Get the caller's profile."""
    return profile_to_response(user)


@router.patch("", response_model=ProfileResponse)
async def update_my_profile(
    changes: ProfileUpdate,
    user: ProfileRecord = Depends(get_current_user),
) -> ProfileResponse:
    """Update the caller's own profile fields."""
    updated = update_profile(user.user_id, **changes.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return profile_to_response(updated)
