"""Account endpoints: register, log in, who am I."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ielts_writing.core.errors import ProfileValidationError
from ielts_writing.db.profiles_repository import (
    DuplicateEmailError,
    ProfileRecord,
    create_account,
    get_user_by_email,
    validate_registration,
)
from ielts_writing.web.auth import (
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from ielts_writing.web.routes.profile import profile_to_response
from ielts_writing.web.schemas import ProfileResponse, RegisterRequest, TokenResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> ProfileResponse:
    """Create a student account and its profile."""
    try:
        validate_registration(
            email=request.email,
            password=request.password,
            full_name=request.full_name,
            age=request.age,
            current_band=request.current_band,
            target_band=request.target_band,
        )
    except ProfileValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        profile = create_account(
            email=request.email,
            password_hash=hash_password(request.password),
            full_name=request.full_name,
            age=request.age,
            address=(request.address or "").strip() or None,
            phone=(request.phone or "").strip() or None,
            current_band=request.current_band,
            target_band=request.target_band,
        )
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return profile_to_response(profile)


@router.post("/token", response_model=TokenResponse)
async def login(form_data: OAuth2PasswordRequestForm = Depends()) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    user = get_user_by_email(form_data.username)
    if user is None or not verify_password(form_data.password, user.password_hash):
        logger.info("auth.login_failed", email=form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    return TokenResponse(access_token=create_access_token(user.user_id))


@router.get("/me", response_model=ProfileResponse)
async def me(user: ProfileRecord = Depends(get_current_user)) -> ProfileResponse:
    """Profile of the logged-in user."""
    return profile_to_response(user)
