"""
Job Tracker - Authentication Dependencies

FastAPI dependencies for route protection and user injection.

Usage in routers:
    from ..auth.dependencies import get_current_active_user

    @router.get("/protected")
    def protected_route(current_user: User = Depends(get_current_active_user)):
        return {"user_id": current_user.id}

Dependency hierarchy:
    get_current_user          - Base: extracts user from token or single-user mode
    get_current_active_user   - Adds: user must be active
"""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..config import settings
from .models import User
from .service import auth_service

logger = logging.getLogger("jobtracker.auth")

# auto_error=False so a missing token is reported as AuthRequired below
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

LOCAL_USER_EMAIL = "local-user@jobtracker.dev"


class AuthRequired(HTTPException):
    """No usable session: the client should send the user to the login page."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from JWT token.

    In single-user mode (default for local installs) a local user is
    returned without requiring authentication. Otherwise a valid
    "Bearer <token>" Authorization header is required.

    Raises:
        AuthRequired: if not authenticated or token invalid
    """
    if settings.auth.single_user_mode:
        return get_or_create_local_user(db)

    if not token:
        logger.debug("No token provided")
        raise AuthRequired()

    token_data = auth_service.verify_access_token(token)
    if not token_data:
        logger.debug("Invalid or expired token")
        raise AuthRequired("Invalid or expired token")

    user = db.query(User).filter(User.id == token_data.user_id).first()
    if not user:
        logger.warning(f"Token valid but user {token_data.user_id} not found")
        raise AuthRequired("User not found")

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current user and verify they are active.

    Raises:
        HTTPException: 403 if user account is deactivated
    """
    if not current_user.is_active:
        logger.warning(f"Inactive user {current_user.id} attempted access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )
    return current_user


def get_or_create_local_user(db: Session) -> User:
    """Get or create the user that owns all data in single-user mode."""
    local_user = db.query(User).filter(User.email == LOCAL_USER_EMAIL).first()

    if not local_user:
        logger.info("Creating local single-user mode user")
        local_user = User(
            email=LOCAL_USER_EMAIL,
            name="Local User",
            is_active=True,
        )
        db.add(local_user)
        db.commit()
        db.refresh(local_user)

    return local_user


def is_single_user_mode() -> bool:
    return settings.auth.single_user_mode
