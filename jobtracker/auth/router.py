"""
Job Tracker - Authentication Router

API endpoints for user authentication.

Endpoints:
    GET  /auth/status             - Check auth system status
    POST /auth/register           - Email/password registration
    POST /auth/login              - Email/password login -> JWT tokens
    POST /auth/refresh            - Refresh access token
    POST /auth/logout             - Revoke refresh token and end the tracker session
    GET  /auth/me                 - Get current user
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from typing import Optional
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..config import settings
from ..rate_limit import limiter, RATE_LIMIT_AUTH
from ..sessions import StateRegistry, get_state_registry
from .models import User
from .schemas import (
    UserCreate, UserResponse, Token, TokenRefresh,
    RegisterResponse, LoginResponse,
)
from .service import auth_service, AuthServiceError
from .dependencies import get_current_active_user, get_or_create_local_user, is_single_user_mode

logger = logging.getLogger("jobtracker.auth")
router = APIRouter()


@router.get("/status")
async def get_auth_status():
    """Report whether single-user mode is on and how long tokens last."""
    return {
        "single_user_mode": is_single_user_mode(),
        "settings": {
            "access_token_expire_minutes": settings.auth.access_token_expire_minutes,
            "refresh_token_expire_days": settings.auth.refresh_token_expire_days
        }
    }


# -----------------------------------------------------------------------------
# Registration & Login
# -----------------------------------------------------------------------------

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_AUTH)
async def register(
    request: Request,
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user with email and password.

    Password needs at least 8 characters, including uppercase, lowercase, and number.
    """
    if is_single_user_mode():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Registration disabled in single-user mode"
        )

    try:
        user = auth_service.create_user(
            email=user_data.email,
            password=user_data.password,
            name=user_data.name,
            db=db
        )
    except AuthServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return RegisterResponse(user=_user_to_response(user))


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMIT_AUTH)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login with email and password to get JWT tokens.

    Uses OAuth2 password flow; the 'username' field holds the email address.
    """
    if is_single_user_mode():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Login not required in single-user mode"
        )

    user = auth_service.authenticate_user(
        email=form_data.username,
        password=form_data.password,
        db=db
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    access_token, _ = auth_service.create_access_token(user)
    refresh_token, _ = auth_service.create_refresh_token(user, db)

    return LoginResponse(
        user=_user_to_response(user),
        token=Token(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.auth.access_token_expire_minutes * 60
        )
    )


@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_data: TokenRefresh,
    db: Session = Depends(get_db)
):
    """Exchange a refresh token for new tokens; the old refresh token is revoked."""
    user = auth_service.verify_refresh_token(token_data.refresh_token, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    auth_service.revoke_refresh_token(token_data.refresh_token, db)
    access_token, _ = auth_service.create_access_token(user)
    new_refresh_token, _ = auth_service.create_refresh_token(user, db)

    return Token(
        access_token=access_token,
        refresh_token=new_refresh_token,
        expires_in=settings.auth.access_token_expire_minutes * 60
    )


@router.post("/logout")
async def logout(
    token_data: Optional[TokenRefresh] = None,
    db: Session = Depends(get_db),
    registry: StateRegistry = Depends(get_state_registry)
):
    """
    Sign out: revoke the refresh token and drop the user's cached applications.

    The body is only needed with real accounts; single-user mode ignores it.
    Idempotent: missing or unknown tokens still return success.
    """
    if is_single_user_mode():
        user_id = get_or_create_local_user(db).id
    elif token_data is not None:
        user_id = auth_service.revoke_refresh_token(token_data.refresh_token, db)
    else:
        user_id = None

    if user_id is not None:
        registry.sign_out(user_id)

    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_active_user)
):
    """Get the current authenticated user's profile."""
    return _user_to_response(current_user)


def _user_to_response(user: User) -> UserResponse:
    """Convert User model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        is_active=user.is_active,
        created_at=user.created_at,
        has_password=user.hashed_password is not None
    )
