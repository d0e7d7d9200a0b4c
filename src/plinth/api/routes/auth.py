"""
Authentication API endpoints.

Local registration/login, token refresh, OAuth sign-in callback and the
current user's profile.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from plinth.api.auth import get_current_user
from plinth.api.schemas import (
    LoginRequest,
    OAuthProfile,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from plinth.db.connection import get_db
from plinth.exceptions import AuthenticationError, ConflictError
from plinth.models.db import User
from plinth.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: RegisterRequest,
    session: Session = Depends(get_db),
) -> TokenResponse:
    """
    Create a local account.

    A default workspace with a generated name is created and owned by the
    new user.
    """
    try:
        result = AuthService(session).register(
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return TokenResponse(**result)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    session: Session = Depends(get_db),
) -> TokenResponse:
    try:
        result = AuthService(session).login(data.email, data.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return TokenResponse(**result)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    data: RefreshRequest,
    session: Session = Depends(get_db),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    try:
        result = AuthService(session).refresh(data.refresh_token)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )
    return TokenResponse(**result)


@router.post("/oauth/callback", response_model=TokenResponse)
async def oauth_callback(
    profile: OAuthProfile,
    session: Session = Depends(get_db),
) -> TokenResponse:
    """
    Sign in with a verified OAuth provider profile.

    Links the external identity to an existing account with the same email,
    or creates a new passwordless account.
    """
    result = AuthService(session).validate_oauth_user(
        email=profile.email,
        provider=profile.provider,
        provider_id=profile.provider_id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        avatar_url=profile.avatar_url,
    )
    return TokenResponse(**result)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
