"""
Job Tracker - Authentication Module

JWT authentication with an optional single-user mode for local installs.

Usage:
    from jobtracker.auth import get_current_active_user, User

    @router.get("/protected")
    def protected_route(current_user: User = Depends(get_current_active_user)):
        return {"user_id": current_user.id}

Configuration (environment variables):
    JOBTRACKER_SINGLE_USER_MODE=true     - Skip auth for local single-user mode
    JOBTRACKER_SECRET_KEY=<key>          - JWT signing key (required in production)
    JOBTRACKER_ACCESS_TOKEN_EXPIRE_MINUTES=30
    JOBTRACKER_REFRESH_TOKEN_EXPIRE_DAYS=7
"""

# Models
from .models import User, RefreshToken

# Service
from .service import auth_service, AuthServiceError

# Dependencies (for use in routers)
from .dependencies import (
    AuthRequired,
    get_current_user,
    get_current_active_user,
    is_single_user_mode,
)

# Router (for mounting in main.py)
from .router import router

__all__ = [
    "User",
    "RefreshToken",
    "auth_service",
    "AuthServiceError",
    "AuthRequired",
    "get_current_user",
    "get_current_active_user",
    "is_single_user_mode",
    "router",
]
